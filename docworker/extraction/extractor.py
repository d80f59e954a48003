from docworker.config.settings import Settings
from docworker.extraction.base import ExtractionContext, ExtractionTier
from docworker.extraction.exceptions import ExtractionFailed, UnsupportedFormat
from docworker.extraction.models import (
    DOCX_MIME_TYPE,
    IMAGE_MIME_TYPES,
    LEGACY_DOC_MIME_TYPE,
    PDF_MIME_TYPE,
    DocumentSource,
)
from docworker.extraction.ocr import TesseractOcr
from docworker.extraction.pdf_text import PdfTextReaderFactory
from docworker.extraction.rasterizer import PdfRasterizer
from docworker.extraction.tiers import (
    DocxTier,
    ImageLocalOcrTier,
    ImageVisionTier,
    PdfLocalOcrTier,
    PdfTextLayerTier,
    PdfVisionTier,
    PlainTextTier,
)
from docworker.extraction.vision import VisionOcr
from docworker.inference.client_base import BaseChatClient
from docworker.logging.logger import Log
from docworker.storage.base import BaseBlobStore


class TextExtractor:
    """Runs the tier chain matching a document's mime type."""

    def __init__(
        self,
        blob_store: BaseBlobStore,
        *,
        pdf_tiers: list[ExtractionTier],
        docx_tiers: list[ExtractionTier],
        image_tiers: list[ExtractionTier],
        text_tiers: list[ExtractionTier],
    ) -> None:
        self._blob_store = blob_store
        self._pdf_tiers = pdf_tiers
        self._docx_tiers = docx_tiers
        self._image_tiers = image_tiers
        self._text_tiers = text_tiers

    def tiers_for(self, mime_type: str) -> list[ExtractionTier]:
        mime = mime_type.lower()
        if mime == PDF_MIME_TYPE:
            return self._pdf_tiers
        if mime == DOCX_MIME_TYPE:
            return self._docx_tiers
        if mime == LEGACY_DOC_MIME_TYPE:
            raise UnsupportedFormat(
                mime_type,
                "Legacy DOC format is not supported. Please convert to DOCX or PDF.",
            )
        if mime in IMAGE_MIME_TYPES:
            return self._image_tiers
        return self._text_tiers

    async def extract(self, source: DocumentSource) -> str:
        """Extract the text of one document.

        Raises:
            UnsupportedFormat: the mime type cannot be read.
            ExtractionFailed: every tier declined, the accepted text is
                empty, or a tier raised.
        """
        Log.info(f"Extracting text from {source.original_name} ({source.mime_type})")
        context = ExtractionContext(source=source, blob_store=self._blob_store)
        try:
            for tier in self.tiers_for(source.mime_type):
                text = await tier.attempt(context)
                if text is None:
                    continue
                if not text.strip():
                    raise ExtractionFailed(f"{tier.name} returned no text")
                Log.info(
                    f"Extracted {len(text)} characters from {source.original_name} via {tier.name}"
                )
                return text
            raise ExtractionFailed("no extraction method produced text")
        except UnsupportedFormat:
            raise
        except Exception as exc:
            Log.error(f"Failed to extract text from {source.original_name}: {exc}")
            raise ExtractionFailed(
                f"Text extraction failed for {source.original_name}: {exc}"
            ) from exc


class TextExtractorFactory:
    """Wires the tier chains from settings."""

    @staticmethod
    def create(
        settings: Settings,
        blob_store: BaseBlobStore,
        chat_client: BaseChatClient,
        rasterizer: PdfRasterizer | None = None,
    ) -> TextExtractor:
        """Build the extractor. Pass ``rasterizer`` to keep ownership of its HTTP client."""
        if rasterizer is None:
            rasterizer = PdfRasterizer.from_settings(settings, blob_store)
        vision = VisionOcr(
            chat_client,
            model=settings.inference_model_vision,
            max_tokens=settings.inference_max_tokens,
        )

        pdf_tiers: list[ExtractionTier] = [
            PdfTextLayerTier(
                PdfTextReaderFactory.create(settings),
                min_chars=settings.pdf_min_text_chars,
            )
        ]
        image_tiers: list[ExtractionTier] = []
        if settings.local_ocr_enabled:
            ocr = TesseractOcr(settings.ocr_languages)
            pdf_tiers.append(
                PdfLocalOcrTier(rasterizer, ocr, min_confidence=settings.pdf_ocr_min_confidence)
            )
            image_tiers.append(
                ImageLocalOcrTier(ocr, min_confidence=settings.image_ocr_min_confidence)
            )
        pdf_tiers.append(PdfVisionTier(rasterizer, vision))
        image_tiers.append(ImageVisionTier(vision))

        return TextExtractor(
            blob_store,
            pdf_tiers=pdf_tiers,
            docx_tiers=[DocxTier()],
            image_tiers=image_tiers,
            text_tiers=[PlainTextTier()],
        )
