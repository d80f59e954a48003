import asyncio

from docworker.extraction.base import ExtractionContext, ExtractionTier
from docworker.extraction.docx_text import read_docx_text
from docworker.extraction.exceptions import ExtractionError, OcrError, UnsupportedFormat
from docworker.extraction.models import RasterizedPage
from docworker.extraction.ocr import TesseractOcr
from docworker.extraction.pdf_text import BasePdfTextReader
from docworker.extraction.rasterizer import PdfRasterizer
from docworker.extraction.vision import VisionOcr
from docworker.logging.logger import Log
from docworker.storage.exceptions import BlobStoreError


async def _rasterized_pages(
    context: ExtractionContext, rasterizer: PdfRasterizer
) -> list[RasterizedPage]:
    if context.pages is None:
        context.pages = await rasterizer.rasterize(
            await context.content(), context.source.pages_prefix
        )
    return context.pages


class PdfTextLayerTier(ExtractionTier):
    """Accepts the embedded text layer when it holds more than ``min_chars``."""

    name = "pdf-text-layer"

    def __init__(self, reader: BasePdfTextReader, *, min_chars: int = 50) -> None:
        self._reader = reader
        self._min_chars = min_chars

    async def attempt(self, context: ExtractionContext) -> str | None:
        content = await context.content()
        try:
            text = await asyncio.to_thread(self._reader.read, content)
        except ExtractionError as exc:
            Log.warning(f"Direct PDF text extraction failed for {context.source.original_name}: {exc}")
            return None
        if len(text.strip()) > self._min_chars:
            return text
        Log.info(
            f"Text layer of {context.source.original_name} too short "
            f"({len(text.strip())} chars), falling back to OCR"
        )
        return None


class PdfLocalOcrTier(ExtractionTier):
    """Tesseract over rasterized pages; every page must clear ``min_confidence``."""

    name = "pdf-local-ocr"

    def __init__(
        self,
        rasterizer: PdfRasterizer,
        ocr: TesseractOcr,
        *,
        min_confidence: float = 90.0,
    ) -> None:
        self._rasterizer = rasterizer
        self._ocr = ocr
        self._min_confidence = min_confidence

    async def attempt(self, context: ExtractionContext) -> str | None:
        pages = await _rasterized_pages(context, self._rasterizer)
        try:
            results = await asyncio.gather(*(self._ocr.recognize(page.data) for page in pages))
        except OcrError as exc:
            Log.warning(f"Local OCR failed for {context.source.original_name}: {exc}")
            return None
        lowest = min(result.confidence for result in results)
        if lowest > self._min_confidence:
            return "\n".join(result.text for result in results)
        Log.info(
            f"OCR confidence too low for {context.source.original_name}: {lowest}%"
        )
        return None


class PdfVisionTier(ExtractionTier):
    name = "pdf-vision"

    def __init__(self, rasterizer: PdfRasterizer, vision: VisionOcr) -> None:
        self._rasterizer = rasterizer
        self._vision = vision

    async def attempt(self, context: ExtractionContext) -> str | None:
        pages = await _rasterized_pages(context, self._rasterizer)
        urls = await asyncio.gather(
            *(context.blob_store.presigned_get_url(page.key) for page in pages)
        )
        Log.info(
            f"Sending {len(urls)} page image(s) of {context.source.original_name} to vision OCR"
        )
        return await self._vision.transcribe(list(urls))


class DocxTier(ExtractionTier):
    name = "docx"

    async def attempt(self, context: ExtractionContext) -> str | None:
        return await asyncio.to_thread(read_docx_text, await context.content())


class ImageLocalOcrTier(ExtractionTier):
    name = "image-local-ocr"

    def __init__(self, ocr: TesseractOcr, *, min_confidence: float = 80.0) -> None:
        self._ocr = ocr
        self._min_confidence = min_confidence

    async def attempt(self, context: ExtractionContext) -> str | None:
        content = await context.content()
        try:
            result = await self._ocr.recognize(content)
        except OcrError as exc:
            Log.warning(f"Local OCR failed for {context.source.original_name}: {exc}")
            return None
        if result.confidence > self._min_confidence:
            return result.text
        Log.info(
            f"OCR confidence too low for {context.source.original_name}: {result.confidence}%"
        )
        return None


class ImageVisionTier(ExtractionTier):
    name = "image-vision"

    def __init__(self, vision: VisionOcr) -> None:
        self._vision = vision

    async def attempt(self, context: ExtractionContext) -> str | None:
        url = await context.blob_store.presigned_get_url(context.source.object_key)
        return await self._vision.transcribe([url])


class PlainTextTier(ExtractionTier):
    """Reads any other file as UTF-8 text."""

    name = "plain-text"

    async def attempt(self, context: ExtractionContext) -> str | None:
        try:
            content = await context.content()
        except BlobStoreError as exc:
            raise UnsupportedFormat(context.source.mime_type) from exc
        return content.decode("utf-8", errors="replace")
