import os
import time

import pytest

from photo_gallery.derivatives.cache import DerivativeCache
from photo_gallery.exceptions import ConversionError

from conftest import FakeConverter, make_photo


@pytest.fixture
def source(input_dir):
    return make_photo(input_dir / "IMG_0001.jpg", "2024:01:02 10:00:00")


def test_derivative_paths(options, source):
    cache = DerivativeCache(options)
    assert cache.thumbnail_path(source) == options.output_dir / "thumbnail" / "IMG_0001.avif"
    assert cache.display_path(source) == options.output_dir / "img" / "IMG_0001.avif"


def test_thumbnail_command(options, source):
    cache = DerivativeCache(options)
    out = cache.thumbnail_path(source)

    cmd = cache.build_command(source, out, thumbnail=True)

    assert cmd == [
        "magick", str(source), "-strip",
        "-quality", "65%", "-resize", "512x512>",
        "-sampling-factor", "4:2:0", str(out),
    ]


def test_display_command_keeps_size_and_quality(options, source):
    cache = DerivativeCache(options)
    out = cache.display_path(source)

    cmd = cache.build_command(source, out, thumbnail=False)

    assert cmd == ["magick", str(source), "-strip", "-sampling-factor", "4:2:0", str(out)]


def test_ensure_generates_then_reuses(options, source, converter):
    cache = DerivativeCache(options, runner=converter)

    thumb, display = cache.ensure(source)
    assert thumb.exists() and display.exists()
    assert len(converter.calls) == 2

    thumb_bytes = thumb.read_bytes()
    cache.ensure(source)
    assert len(converter.calls) == 2
    assert thumb.read_bytes() == thumb_bytes


def test_touched_source_forces_regeneration(options, source, converter):
    cache = DerivativeCache(options, runner=converter)
    cache.ensure(source)

    later = time.time() + 60
    os.utime(source, (later, later))
    cache.ensure(source)

    assert len(converter.calls) == 4


def test_equal_mtime_is_stale(options, source, converter):
    cache = DerivativeCache(options, runner=converter)
    thumb, _ = cache.ensure(source)

    st = source.stat()
    os.utime(thumb, ns=(st.st_atime_ns, st.st_mtime_ns))

    assert not cache.is_fresh(thumb, source)


def test_conversion_failure(options, source):
    cache = DerivativeCache(options, runner=FakeConverter(returncode=1, stderr="no decode delegate"))

    with pytest.raises(ConversionError, match="no decode delegate"):
        cache.ensure(source)


def test_missing_tool(options, source):
    def runner(cmd, **kwargs):
        raise FileNotFoundError(2, "No such file or directory", cmd[0])

    with pytest.raises(ConversionError, match="Cannot run magick"):
        DerivativeCache(options, runner=runner).ensure(source)


def test_prune_removes_orphans_only(options, source, converter):
    cache = DerivativeCache(options, runner=converter)
    cache.ensure(source)
    orphan_thumb = options.thumbnail_dir / "gone.avif"
    orphan_img = options.display_dir / "gone.avif"
    orphan_thumb.write_bytes(b"old")
    orphan_img.write_bytes(b"old")

    removed = cache.prune(["IMG_0001.avif"])

    assert sorted(removed) == sorted([orphan_thumb, orphan_img])
    assert not orphan_thumb.exists() and not orphan_img.exists()
    assert cache.thumbnail_path(source).exists()
    assert cache.display_path(source).exists()
