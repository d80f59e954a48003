import io

import pytest
from docx import Document as DocxDocument
from PIL import Image
from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas

from docworker.storage.base import BaseBlobStore
from docworker.storage.exceptions import BlobNotFound
from docworker.storage.models import PresignedUploadForm


class InMemoryBlobStore(BaseBlobStore):
    """Dict-backed blob store; URLs are fake but stable per key."""

    def __init__(self, objects: dict[str, bytes] | None = None) -> None:
        self.objects: dict[str, bytes] = dict(objects or {})
        self.metadata: dict[str, dict[str, str]] = {}

    async def put(
        self,
        key: str,
        data: bytes,
        size: int | None = None,
        metadata: dict[str, str] | None = None,
    ) -> str:
        self.objects[key] = data
        self.metadata[key] = dict(metadata or {})
        return f"memory://bucket/{key}"

    async def get(self, key: str) -> bytes:
        try:
            return self.objects[key]
        except KeyError:
            raise BlobNotFound(f"Object not found: {key}") from None

    async def presigned_get_url(self, key: str, ttl_seconds: int | None = None) -> str:
        return f"https://blobs.test/{key}?ttl={ttl_seconds or 86400}"

    async def presigned_upload_form(
        self,
        key: str,
        max_size: int,
        ttl_seconds: int | None = None,
    ) -> PresignedUploadForm:
        return PresignedUploadForm(
            url="https://blobs.test/upload",
            fields={"key": key, "max": str(max_size)},
        )

    async def delete(self, key: str) -> None:
        self.objects.pop(key, None)


@pytest.fixture()
def blob_store() -> InMemoryBlobStore:
    return InMemoryBlobStore()


@pytest.fixture()
def sample_pdf_bytes() -> bytes:
    """Generate a minimal single-page PDF with known text content."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.drawString(72, 720, "Hello PDF World")
    c.save()
    return buf.getvalue()


@pytest.fixture()
def text_layer_pdf_bytes() -> bytes:
    """Two pages whose text layer is comfortably above the 50-character threshold."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.drawString(72, 720, "Discharge summary: patient admitted with community acquired pneumonia.")
    c.showPage()
    c.drawString(72, 720, "Treatment: amoxicillin 500 mg three times daily for seven days.")
    c.save()
    return buf.getvalue()


@pytest.fixture()
def empty_pdf_bytes() -> bytes:
    """Generate a valid PDF with no text content (blank page)."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.showPage()
    c.save()
    return buf.getvalue()


@pytest.fixture()
def docx_bytes() -> bytes:
    document = DocxDocument()
    document.add_paragraph("Referral letter")
    document.add_paragraph("Blood pressure 120/80 mmHg")
    table = document.add_table(rows=1, cols=2)
    table.rows[0].cells[0].text = "Hemoglobin"
    table.rows[0].cells[1].text = "135 g/L"
    buf = io.BytesIO()
    document.save(buf)
    return buf.getvalue()


@pytest.fixture()
def png_bytes() -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (20, 20), "white").save(buf, format="PNG")
    return buf.getvalue()
