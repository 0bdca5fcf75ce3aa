import os
import struct
import subprocess
import time
from pathlib import Path

import pytest
from PIL import Image

from photo_gallery.models import Options

# Old enough that any derivative written during a test is strictly newer
SOURCE_MTIME = time.time() - 86400


def build_exif(date_str=None, offset_str=None) -> bytes:
    """
    Builds a big-endian APP1 EXIF payload holding DateTimeOriginal and/or
    OffsetTimeOriginal in the Exif sub-IFD.
    """
    values = []
    if date_str is not None:
        values.append((0x9003, date_str.encode('ascii') + b'\x00'))
    if offset_str is not None:
        values.append((0x9011, offset_str.encode('ascii') + b'\x00'))

    ifd0_size = 2 + 12 + 4
    exif_ifd_offset = 8 + ifd0_size
    exif_ifd_size = 2 + 12 * len(values) + 4
    data_offset = exif_ifd_offset + exif_ifd_size

    ifd0 = struct.pack('>H', 1) + struct.pack('>HHII', 0x8769, 4, 1, exif_ifd_offset) + struct.pack('>I', 0)

    entries = b''
    data = b''
    for tag, raw in values:
        entries += struct.pack('>HHII', tag, 2, len(raw), data_offset + len(data))
        data += raw
    exif_ifd = struct.pack('>H', len(values)) + entries + struct.pack('>I', 0)

    tiff = b'MM\x00\x2a' + struct.pack('>I', 8) + ifd0 + exif_ifd + data
    return b'Exif\x00\x00' + tiff


def make_photo(path: Path, date_str=None, offset_str="+00:00", exif=True) -> Path:
    """Writes a tiny JPEG with capture metadata and backdates its mtime."""
    img = Image.new("RGB", (8, 8), "red")
    if exif:
        img.save(path, "JPEG", exif=build_exif(date_str, offset_str))
    else:
        img.save(path, "JPEG")
    os.utime(path, (SOURCE_MTIME, SOURCE_MTIME))
    return path


class FakeConverter:
    """Stands in for ImageMagick: records commands and writes the output file."""

    def __init__(self, returncode=0, stderr=""):
        self.calls = []
        self.returncode = returncode
        self.stderr = stderr

    def __call__(self, cmd, check=False, capture_output=False, text=False):
        self.calls.append(cmd)
        if self.returncode != 0:
            raise subprocess.CalledProcessError(self.returncode, cmd, output="", stderr=self.stderr)
        Path(cmd[-1]).write_bytes(b"derivative of " + Path(cmd[1]).name.encode())
        return subprocess.CompletedProcess(cmd, 0, stdout="", stderr="")


@pytest.fixture
def input_dir(tmp_path):
    d = tmp_path / "photos"
    d.mkdir()
    return d


@pytest.fixture
def options(input_dir):
    return Options.resolve(input_dir, per_page=50)


@pytest.fixture
def converter():
    return FakeConverter()
