import argparse
import logging
import sys
from pathlib import Path

from . import config
from .core import GalleryApp
from .models import Options, RunReport
from .watching.watcher import WatchLoop


def setup_logging(verbose: bool):
    """Sets up console logging."""
    log_level = logging.DEBUG if verbose else logging.INFO

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)]
    )

    # Silence chatty libraries
    logging.getLogger("exifread").setLevel(logging.ERROR)
    logging.getLogger("watchdog").setLevel(logging.WARNING)


def parse_args(argv=None):
    p = argparse.ArgumentParser(description="Photo Gallery: build a static HTML gallery from a photo directory")

    p.add_argument("input_dir", type=Path, nargs="?", default=Path("."),
                   help="Directory of photos (default: current directory)")
    p.add_argument("-o", "--output-dir", type=Path, default=None,
                   help="Output directory (default: 'web' next to the input directory)")
    p.add_argument("-w", "--watch", action="store_true", help="Rebuild whenever the input directory changes")
    p.add_argument("-p", "--per-page", type=int, default=config.PHOTOS_PER_PAGE,
                   help=f"Maximum photos per page before a new page starts (default: {config.PHOTOS_PER_PAGE})")
    p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    args = p.parse_args(argv)
    if args.per_page < 1:
        p.error("--per-page must be at least 1")
    return args


def log_report(report: RunReport):
    if report.ok:
        return
    logging.error(f"{len(report.failures)} photo(s) could not be published:")
    for failure in report.failures:
        logging.error(f"  {failure}")


def main(argv=None) -> int:
    args = parse_args(argv)
    setup_logging(args.verbose)

    logging.info("=== Photo Gallery Started ===")

    try:
        options = Options.resolve(args.input_dir, args.output_dir, per_page=args.per_page)
        logging.info(f"Input:  {options.input_dir}")
        logging.info(f"Output: {options.output_dir}")

        app = GalleryApp(options)
        report = app.generate()
        log_report(report)

        if not args.watch:
            return 0 if report.ok else 1

        def regenerate():
            log_report(app.generate())

        with WatchLoop(options.input_dir, regenerate) as loop:
            loop.run_forever()
    except KeyboardInterrupt:
        logging.warning("Stopped by user.")
        return 1
    except Exception:
        logging.exception("Fatal error during gallery generation.")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
