from typing import Any

from docworker.inference.client_base import BaseChatClient

VISION_INSTRUCTION = (
    "Extract all text from this image(s). Return only the extracted text, "
    "no markdown formatting or comments. Only in the original languages. "
    "No complicated guesses. Use - instead"
)


class VisionOcr:
    """Transcribes page images with a vision-capable chat model."""

    def __init__(self, client: BaseChatClient, *, model: str, max_tokens: int = 4000) -> None:
        self._client = client
        self._model = model
        self._max_tokens = max_tokens

    async def transcribe(self, image_urls: list[str]) -> str:
        content: list[dict[str, Any]] = [{"type": "text", "text": VISION_INSTRUCTION}]
        content.extend({"type": "image_url", "image_url": {"url": url}} for url in image_urls)
        return await self._client.chat_complete(
            model=self._model,
            messages=[{"role": "user", "content": content}],
            max_tokens=self._max_tokens,
        )
