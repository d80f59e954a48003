import asyncio
import io

import pytesseract
from PIL import Image, UnidentifiedImageError

from docworker.extraction.exceptions import OcrError
from docworker.extraction.models import OcrResult


class TesseractOcr:
    """Local OCR through the tesseract binary, run off the event loop."""

    def __init__(self, languages: str) -> None:
        self._languages = languages

    async def recognize(self, image_bytes: bytes) -> OcrResult:
        return await asyncio.to_thread(self._recognize, image_bytes)

    def _recognize(self, image_bytes: bytes) -> OcrResult:
        try:
            with Image.open(io.BytesIO(image_bytes)) as image:
                data = pytesseract.image_to_data(
                    image,
                    lang=self._languages,
                    output_type=pytesseract.Output.DICT,
                )
        except (UnidentifiedImageError, OSError) as exc:
            raise OcrError(f"Cannot open image for OCR: {exc}") from exc
        except pytesseract.TesseractError as exc:
            raise OcrError(f"Tesseract failed: {exc}") from exc
        return words_to_result(data)


def words_to_result(data: dict[str, list]) -> OcrResult:
    """Rebuild line-broken text from ``image_to_data`` output.

    Confidence is the mean over recognised words; tesseract reports ``-1``
    for layout boxes that hold no word.
    """
    lines: dict[tuple[int, int, int], list[str]] = {}
    confidences: list[float] = []
    for index, word in enumerate(data.get("text", [])):
        confidence = float(data["conf"][index])
        if confidence < 0 or not str(word).strip():
            continue
        line_key = (data["block_num"][index], data["par_num"][index], data["line_num"][index])
        lines.setdefault(line_key, []).append(str(word))
        confidences.append(confidence)

    text = "\n".join(" ".join(words) for words in lines.values())
    confidence = sum(confidences) / len(confidences) if confidences else 0.0
    return OcrResult(text=text, confidence=round(confidence, 2))
