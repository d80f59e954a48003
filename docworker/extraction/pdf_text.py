import io
from abc import ABC, abstractmethod

import pdfplumber
import pymupdf

from docworker.config.settings import Settings
from docworker.extraction.exceptions import ExtractionError


class BasePdfTextReader(ABC):
    """Contract for PDF text-layer readers."""

    @abstractmethod
    def read_pages(self, pdf_bytes: bytes) -> list[str]:
        """Return the text layer of every page, in page order.

        Raises:
            ExtractionError: if the PDF cannot be parsed.
        """

    def read(self, pdf_bytes: bytes) -> str:
        return "\n".join(self.read_pages(pdf_bytes)).strip()


class PdfPlumberReader(BasePdfTextReader):
    def read_pages(self, pdf_bytes: bytes) -> list[str]:
        try:
            with pdfplumber.open(io.BytesIO(pdf_bytes)) as pdf:
                return [page.extract_text() or "" for page in pdf.pages]
        except Exception as exc:
            raise ExtractionError(f"pdfplumber could not read PDF: {exc}") from exc


class PyMuPdfReader(BasePdfTextReader):
    def read_pages(self, pdf_bytes: bytes) -> list[str]:
        try:
            with pymupdf.open(stream=pdf_bytes, filetype="pdf") as doc:  # type: ignore[no-untyped-call]
                return [page.get_text() for page in doc]
        except Exception as exc:
            raise ExtractionError(f"pymupdf could not read PDF: {exc}") from exc


class PdfTextReaderFactory:
    """Creates the PDF text reader selected by ``pdf_engine``."""

    READERS: dict[str, type[BasePdfTextReader]] = {
        "pdfplumber": PdfPlumberReader,
        "pymupdf": PyMuPdfReader,
    }

    @classmethod
    def create(cls, settings: Settings) -> BasePdfTextReader:
        engine = settings.pdf_engine.lower()
        reader_cls = cls.READERS.get(engine)
        if reader_cls is None:
            raise ValueError(f"Unknown PDF engine '{engine}'. Choose from: {list(cls.READERS)}")
        return reader_cls()
