"""Exception types raised across the document scan pipeline.

Only malformed input and collaborator failures are exceptions. A missing
document boundary or an unclassifiable text are ordinary results.
"""


class DocScanError(Exception):
    """Base class for all pipeline errors."""


class InvalidImageError(DocScanError, ValueError):
    """The input image is missing, undecodable, or has zero size."""


class RecognitionError(DocScanError, RuntimeError):
    """The OCR engine failed to recognize an image."""


class InvalidCropError(InvalidImageError):
    """User-supplied crop corners are malformed or fall outside the image."""
