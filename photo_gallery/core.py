import logging
from pathlib import Path
from typing import Optional

from tqdm import tqdm

from .derivatives.cache import DerivativeCache
from .exceptions import DerivativeCollisionError, GalleryError
from .layout.grouping import build_pages
from .metadata.extract import MetadataExtractor
from .models import Options, Photo, PhotoFailure, RunReport
from .rendering.html import PageRenderer, render_navigation
from .scanning.filesystem import SourceScanner, derivative_name


class GalleryApp:
    def __init__(self,
                 options: Options,
                 extractor: Optional[MetadataExtractor] = None,
                 cache: Optional[DerivativeCache] = None):
        self.options = options
        self.scanner = SourceScanner()
        self.extractor = extractor or MetadataExtractor()
        self.cache = cache or DerivativeCache(options)
        self.renderer = PageRenderer(options)

    def generate(self) -> RunReport:
        """
        Runs the full pipeline once.
        1. Scan the input directory
        2. Prune derivatives of removed photos
        3. Extract metadata and build derivatives, photo by photo
        4. Group and paginate
        5. Render every page

        Per-photo failures end up in the report; the remaining photos are
        still published. Anything else propagates and aborts the run.
        """
        report = RunReport()

        # --- Step 1: Scanning ---
        sources = self.scanner.scan(self.options.input_dir)
        collisions = self.scanner.find_collisions(sources)

        # --- Step 2: Pruning ---
        report.pruned = self.cache.prune(derivative_name(p) for p in sources)

        # --- Step 3: Per-photo processing ---
        for path in tqdm(sources, desc="Processing", unit="photo"):
            if path in collisions:
                err = DerivativeCollisionError(
                    f"derivative name {derivative_name(path)} already used by {collisions[path].name}"
                )
                self._record_failure(report, path, err)
                continue
            try:
                report.photos.append(self._process(path))
            except GalleryError as e:
                self._record_failure(report, path, e)

        # --- Step 4: Layout ---
        report.pages = build_pages(report.photos, self.options.per_page)

        # --- Step 5: Rendering ---
        navigation = render_navigation(report.pages)
        for page in report.pages:
            self.renderer.write(page, navigation)
        if report.pages:
            self.renderer.write_index(report.pages)
        else:
            logging.warning(f"No photos to publish from {self.options.input_dir}")
            self.renderer.remove_index()
        self.renderer.prune_pages(len(report.pages))

        logging.info(
            f"Run complete: {len(report.photos)} photos on {len(report.pages)} pages, "
            f"{len(report.failures)} failed, {len(report.pruned)} orphaned derivatives removed."
        )
        return report

    def _process(self, path: Path) -> Photo:
        captured_at = self.extractor.get_capture_datetime(path)
        thumbnail_path, display_path = self.cache.ensure(path)
        return Photo(
            original_path=path,
            captured_at=captured_at,
            thumbnail_path=thumbnail_path,
            display_path=display_path,
        )

    def _record_failure(self, report: RunReport, path: Path, err: Exception):
        logging.error(f"Failed to process {path}: {err}")
        report.failures.append(PhotoFailure(path=path, reason=str(err)))
