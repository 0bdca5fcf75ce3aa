import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import List, Optional

from . import config
from .exceptions import FileOperationError, OutputPathError


@dataclass(frozen=True)
class Options:
    """
    Resolved run configuration, shared read-only by every component.
    """
    input_dir: Path
    output_dir: Path
    thumbnail_dir: Path
    display_dir: Path
    per_page: int = config.PHOTOS_PER_PAGE

    @classmethod
    def resolve(cls,
                input_dir: Optional[Path] = None,
                output_dir: Optional[Path] = None,
                per_page: int = config.PHOTOS_PER_PAGE) -> "Options":
        """
        Applies defaults and creates the derivative subdirectories if absent.

        The default output directory is a `web` sibling of the input directory.
        """
        input_dir = Path(input_dir or ".").resolve()
        if output_dir is None:
            output_dir = input_dir.parent / config.DEFAULT_OUTPUT_DIRNAME
        output_dir = Path(output_dir).resolve()

        thumbnail_dir = output_dir / config.THUMBNAIL_DIRNAME
        display_dir = output_dir / config.DISPLAY_DIRNAME
        for d in (thumbnail_dir, display_dir):
            if not d.exists():
                logging.debug(f"Creating {d}")
                try:
                    d.mkdir(parents=True, exist_ok=True)
                except OSError as e:
                    raise FileOperationError(f"Cannot create output directory {d}: {e}") from e

        return cls(
            input_dir=input_dir,
            output_dir=output_dir,
            thumbnail_dir=thumbnail_dir,
            display_dir=display_dir,
            per_page=per_page,
        )

    def relative_path(self, path: Path) -> str:
        """Path relative to the output root, with forward slashes for use in HTML."""
        try:
            return path.relative_to(self.output_dir).as_posix()
        except ValueError as e:
            raise OutputPathError(f"{path} is not under output directory {self.output_dir}") from e


@dataclass(frozen=True)
class Photo:
    """
    One source image and its two derivatives.

    `captured_at` is the wall clock at the photo's own UTC offset, zone-stripped.
    """
    original_path: Path
    captured_at: datetime
    thumbnail_path: Path
    display_path: Path

    @property
    def date(self) -> date:
        return self.captured_at.date()


@dataclass
class DayGroup:
    """All photos sharing one capture date, most recent first."""
    date: date
    photos: List[Photo]

    def __len__(self) -> int:
        return len(self.photos)


@dataclass
class Page:
    index: int
    groups: List[DayGroup]

    @property
    def photo_count(self) -> int:
        return sum(len(g) for g in self.groups)

    @property
    def first_date(self) -> date:
        # Groups run most-recent first, so this is the latest date on the page
        return self.groups[0].date

    @property
    def last_date(self) -> date:
        return self.groups[-1].date

    @property
    def label(self) -> str:
        """Date span shown in the navigation, earliest to latest."""
        if self.first_date == self.last_date:
            return self.first_date.isoformat()
        return f"{self.last_date.isoformat()}–{self.first_date.isoformat()}"

    @property
    def filename(self) -> str:
        return config.PAGE_FILENAME.format(index=self.index)


@dataclass
class PhotoFailure:
    path: Path
    reason: str

    def __str__(self) -> str:
        return f"{self.path}: {self.reason}"


@dataclass
class RunReport:
    """Outcome of one full pipeline run."""
    photos: List[Photo] = field(default_factory=list)
    failures: List[PhotoFailure] = field(default_factory=list)
    pages: List[Page] = field(default_factory=list)
    pruned: List[Path] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures
