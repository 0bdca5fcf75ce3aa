import os
import logging
from pathlib import Path
from typing import Dict, List

from .. import config
from ..exceptions import FileOperationError


def derivative_name(path: Path) -> str:
    """Filename shared by both derivatives of a source photo."""
    return path.stem + config.DERIVATIVE_EXT


class SourceScanner:
    """
    Lists the photos of a flat input directory.
    """

    def scan(self, input_dir: Path) -> List[Path]:
        """
        Returns every photo file directly inside input_dir, ordered by name.
        Subdirectories are not descended into.
        """
        try:
            with os.scandir(input_dir) as it:
                entries = list(it)
        except OSError as e:
            raise FileOperationError(f"Cannot read input directory {input_dir}: {e}") from e

        # Sort for stable order; equal capture times keep this order later on
        entries.sort(key=lambda e: e.name.lower())

        photos = []
        skipped = 0
        for e in entries:
            if e.name.startswith('.') or not e.is_file():
                skipped += 1
                continue
            if Path(e.name).suffix.lower() not in config.PHOTO_EXTS:
                logging.debug(f"Skipping non-photo {e.name}")
                skipped += 1
                continue
            photos.append(Path(e.path))

        logging.info(f"Found {len(photos)} photos in {input_dir} ({skipped} entries skipped)")
        return photos

    def find_collisions(self, paths: List[Path]) -> Dict[Path, Path]:
        """
        Maps each source whose derivative name is already taken by an earlier
        source (e.g. IMG_1.jpg and IMG_1.png) to that earlier source.
        """
        claimed: Dict[str, Path] = {}
        collisions: Dict[Path, Path] = {}
        for p in paths:
            name = derivative_name(p)
            if name in claimed:
                collisions[p] = claimed[name]
            else:
                claimed[name] = p
        return collisions
