"""
Custom exception hierarchy for the photo gallery generator.

Per-photo errors are collected into the run report; the rest abort the run.
"""


class GalleryError(Exception):
    """Base exception for all gallery errors."""
    pass


class MetadataExtractionError(GalleryError):
    """Raised when the capture timestamp is missing or malformed."""
    pass


class FileOperationError(GalleryError):
    """Raised when a filesystem path cannot be read or written."""
    pass


class ConversionError(GalleryError):
    """Raised when the external conversion tool fails or cannot be launched."""
    pass


class OutputPathError(GalleryError):
    """Raised when a derivative path does not live under the output directory."""
    pass


class DerivativeCollisionError(GalleryError):
    """Raised when two source photos map to the same derivative filename."""
    pass
