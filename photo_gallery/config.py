"""
Configuration constants for the photo gallery generator.
"""

# --- Source Files ---
PHOTO_EXTS = {
    '.jpg', '.jpeg', '.jpe', '.png', '.tif', '.tiff',
    '.heic', '.heif', '.webp', '.avif',
}

# --- Output Layout ---
DEFAULT_OUTPUT_DIRNAME = "web"
THUMBNAIL_DIRNAME = "thumbnail"
DISPLAY_DIRNAME = "img"
# Both derivative kinds share one extension
DERIVATIVE_EXT = ".avif"

PAGE_FILENAME = "page_{index}.html"
INDEX_FILENAME = "index.html"

# Soft bound: a single day-group larger than this still gets one page
PHOTOS_PER_PAGE = 50

# --- Conversion Tool (ImageMagick) ---
CONVERT_COMMAND = "magick"
THUMBNAIL_QUALITY = "65%"
THUMBNAIL_MAX_EDGE = 512
CHROMA_SUBSAMPLING = "4:2:0"

# --- Metadata Parsing ---
EXIF_DATETIME_TAG = 'EXIF DateTimeOriginal'
EXIF_OFFSET_TAG = 'EXIF OffsetTimeOriginal'
EXIF_DATETIME_FORMAT = "%Y:%m:%d %H:%M:%S"

# --- Watch Mode ---
# Quiet period after the last filesystem event before a rebuild starts
WATCH_SETTLE_SECONDS = 1.0
# Upper bound on the wait, so a directory that never goes quiet still gets rebuilt
WATCH_MAX_WAIT_SECONDS = 10.0
