from unittest.mock import MagicMock

import pytest

from docworker.extraction.exceptions import ExtractionError
from docworker.extraction.pdf_text import (
    PdfPlumberReader,
    PdfTextReaderFactory,
    PyMuPdfReader,
)


@pytest.mark.parametrize("reader_cls", [PdfPlumberReader, PyMuPdfReader])
class TestPdfTextReaders:
    def test_extracts_text_from_single_page(self, reader_cls, sample_pdf_bytes: bytes) -> None:
        assert "Hello PDF World" in reader_cls().read(sample_pdf_bytes)

    def test_reads_pages_in_order(self, reader_cls, text_layer_pdf_bytes: bytes) -> None:
        pages = reader_cls().read_pages(text_layer_pdf_bytes)
        assert len(pages) == 2
        assert "pneumonia" in pages[0]
        assert "amoxicillin" in pages[1]

    def test_blank_pdf_yields_empty_text(self, reader_cls, empty_pdf_bytes: bytes) -> None:
        assert reader_cls().read(empty_pdf_bytes) == ""

    def test_invalid_bytes_raise(self, reader_cls) -> None:
        with pytest.raises(ExtractionError):
            reader_cls().read(b"not a pdf at all")


class TestPdfTextReaderFactory:
    def test_creates_pdfplumber(self) -> None:
        reader = PdfTextReaderFactory.create(MagicMock(pdf_engine="pdfplumber"))
        assert isinstance(reader, PdfPlumberReader)

    def test_creates_pymupdf_case_insensitive(self) -> None:
        reader = PdfTextReaderFactory.create(MagicMock(pdf_engine="PyMuPDF"))
        assert isinstance(reader, PyMuPdfReader)

    def test_unknown_engine_raises(self) -> None:
        with pytest.raises(ValueError, match="Unknown PDF engine"):
            PdfTextReaderFactory.create(MagicMock(pdf_engine="tika"))
