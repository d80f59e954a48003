import posixpath
from dataclasses import dataclass

PAGES_SUBDIRECTORY = "pages"

PDF_MIME_TYPE = "application/pdf"
DOCX_MIME_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
LEGACY_DOC_MIME_TYPE = "application/msword"
IMAGE_MIME_TYPES = frozenset(
    {
        "image/png",
        "image/jpeg",
        "image/jpg",
        "image/gif",
        "image/bmp",
        "image/tiff",
        "image/webp",
    }
)


@dataclass(frozen=True)
class DocumentSource:
    """The stored file a document's text is extracted from."""

    document_id: str
    object_key: str
    original_name: str
    mime_type: str

    @property
    def pages_prefix(self) -> str:
        """Working prefix for rasterized pages, unique per document."""
        return posixpath.join(
            posixpath.dirname(self.object_key), PAGES_SUBDIRECTORY, self.document_id
        )


@dataclass(frozen=True)
class RasterizedPage:
    key: str
    data: bytes


@dataclass(frozen=True)
class OcrResult:
    text: str
    confidence: float
