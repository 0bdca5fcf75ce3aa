import logging
import re
import struct
from datetime import datetime, timedelta, timezone
from pathlib import Path

import exifread

from .. import config
from ..exceptions import MetadataExtractionError

# EXIF 2.31 OffsetTime* values look like "+09:00" or "-05:30"
_OFFSET_RE = re.compile(r'^([+-])(\d{2}):(\d{2})$')


def parse_utc_offset(offset_str: str) -> timezone:
    """Parses a signed HH:MM offset string into a fixed UTC offset."""
    m = _OFFSET_RE.match(offset_str.strip())
    if not m:
        raise MetadataExtractionError(f"Malformed UTC offset {offset_str!r}")
    sign, hours, minutes = m.groups()
    delta = timedelta(hours=int(hours), minutes=int(minutes))
    if sign == '-':
        delta = -delta
    try:
        return timezone(delta)
    except ValueError as e:
        raise MetadataExtractionError(f"UTC offset out of range {offset_str!r}") from e


def parse_capture_datetime(date_str: str, offset_str: str) -> datetime:
    """
    Combines the EXIF capture date string with its offset string.

    The date is read as wall-clock time at the given offset and returned as the
    same wall clock with the zone stripped. The offset is only validated here;
    it is never used to convert into another zone.
    """
    try:
        naive = datetime.strptime(date_str.strip(), config.EXIF_DATETIME_FORMAT)
    except ValueError as e:
        raise MetadataExtractionError(f"Malformed capture date {date_str!r}") from e

    offset = parse_utc_offset(offset_str)
    aware = naive.replace(tzinfo=offset)
    return aware.astimezone(offset).replace(tzinfo=None)


class MetadataExtractor:
    """
    Reads the capture timestamp of a photo with 'exifread'.
    """

    def get_capture_datetime(self, path: Path) -> datetime:
        """
        Returns the local capture timestamp of the photo at `path`.

        Raises:
            MetadataExtractionError: a tag is missing or malformed.
        """
        try:
            with path.open('rb') as f:
                # details=False skips makernotes and thumbnails
                tags = exifread.process_file(f, details=False)
        except OSError as e:
            raise MetadataExtractionError(f"Cannot read {path}: {e}") from e
        except (IndexError, KeyError, ValueError, struct.error) as e:
            # exifread has no error type of its own for corrupt or truncated files
            raise MetadataExtractionError(f"Cannot parse EXIF in {path}: {e}") from e

        date_str = self._get_ascii(tags, config.EXIF_DATETIME_TAG, path)
        offset_str = self._get_ascii(tags, config.EXIF_OFFSET_TAG, path)
        dt = parse_capture_datetime(date_str, offset_str)
        logging.debug(f"{path.name}: captured {dt} (offset {offset_str.strip()})")
        return dt

    def _get_ascii(self, tags, tag: str, path: Path) -> str:
        if tag not in tags:
            raise MetadataExtractionError(f"{tag} missing in {path.name}")
        # ASCII values can carry trailing NULs from the writer
        return str(tags[tag]).strip().strip('\x00')
