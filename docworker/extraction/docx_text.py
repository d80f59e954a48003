import io

from docx import Document as DocxDocument

from docworker.extraction.exceptions import ExtractionFailed


def read_docx_text(docx_bytes: bytes) -> str:
    """Paragraph text followed by table rows (cells joined with tabs)."""
    try:
        document = DocxDocument(io.BytesIO(docx_bytes))
    except Exception as exc:
        raise ExtractionFailed(f"Failed to extract text from Word document: {exc}") from exc

    parts = [paragraph.text for paragraph in document.paragraphs]
    for table in document.tables:
        for row in table.rows:
            cells = [cell.text.strip() for cell in row.cells]
            if any(cells):
                parts.append("\t".join(cells))
    return "\n".join(parts).strip()
