import logging
import subprocess
from pathlib import Path
from typing import Callable, Iterable, List, Tuple

from .. import config
from ..exceptions import ConversionError, FileOperationError
from ..models import Options
from ..scanning.filesystem import derivative_name


class DerivativeCache:
    """
    Produces or reuses the thumbnail and display derivatives of a photo.

    A derivative is reused when it is strictly newer than its source; the
    file timestamps are the only cache state kept between runs.
    """

    def __init__(self, options: Options, runner: Callable = subprocess.run):
        self.options = options
        self.runner = runner

    def thumbnail_path(self, source: Path) -> Path:
        return self.options.thumbnail_dir / derivative_name(source)

    def display_path(self, source: Path) -> Path:
        return self.options.display_dir / derivative_name(source)

    def ensure(self, source: Path) -> Tuple[Path, Path]:
        """Returns (thumbnail_path, display_path), regenerating stale ones."""
        thumbnail = self._ensure_variant(source, self.thumbnail_path(source), thumbnail=True)
        display = self._ensure_variant(source, self.display_path(source), thumbnail=False)
        return thumbnail, display

    def is_fresh(self, output: Path, source: Path) -> bool:
        if not output.exists():
            return False
        try:
            return output.stat().st_mtime > source.stat().st_mtime
        except OSError as e:
            raise FileOperationError(f"Cannot stat {source}: {e}") from e

    def build_command(self, source: Path, output: Path, thumbnail: bool) -> List[str]:
        cmd = [config.CONVERT_COMMAND, str(source), "-strip"]
        if thumbnail:
            # '>' only shrinks; the box bounds the longer edge
            edge = config.THUMBNAIL_MAX_EDGE
            cmd += ["-quality", config.THUMBNAIL_QUALITY, "-resize", f"{edge}x{edge}>"]
        cmd += ["-sampling-factor", config.CHROMA_SUBSAMPLING, str(output)]
        return cmd

    def prune(self, keep_names: Iterable[str]) -> List[Path]:
        """
        Deletes derivatives that no current source photo produces.
        Returns the removed paths.
        """
        keep = set(keep_names)
        removed = []
        for d in (self.options.thumbnail_dir, self.options.display_dir):
            for p in sorted(d.iterdir()):
                if not p.is_file() or p.name in keep:
                    continue
                try:
                    p.unlink()
                except OSError as e:
                    raise FileOperationError(f"Cannot remove orphaned derivative {p}: {e}") from e
                logging.info(f"Removed orphaned derivative {self.options.relative_path(p)}")
                removed.append(p)
        return removed

    def _ensure_variant(self, source: Path, output: Path, thumbnail: bool) -> Path:
        if self.is_fresh(output, source):
            logging.debug(f"Cache hit: {output}")
            return output

        cmd = self.build_command(source, output, thumbnail)
        logging.debug(f"Running: {' '.join(cmd)}")
        try:
            self.runner(cmd, check=True, capture_output=True, text=True)
        except subprocess.CalledProcessError as e:
            stderr = (e.stderr or "").strip()
            raise ConversionError(
                f"{config.CONVERT_COMMAND} exited with status {e.returncode} for {source.name}: {stderr}"
            ) from e
        except OSError as e:
            raise ConversionError(f"Cannot run {config.CONVERT_COMMAND}: {e}") from e
        return output
