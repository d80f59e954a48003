class ExtractionError(Exception):
    """Base exception for document text extraction errors."""


class ExtractionFailed(ExtractionError):
    """Raised when no extraction tier produced text for a document."""


class UnsupportedFormat(ExtractionError):
    """Raised when a document's mime type cannot be read."""

    def __init__(self, mime_type: str, message: str | None = None) -> None:
        self.mime_type = mime_type
        super().__init__(message or f"Unsupported file type: {mime_type}")


class RasterizationError(ExtractionError):
    """Raised when the rasterization service cannot render a PDF."""


class OcrError(ExtractionError):
    """Raised when local OCR cannot process an image."""
