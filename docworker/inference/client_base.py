from abc import ABC, abstractmethod
from typing import Any


class BaseChatClient(ABC):
    """Contract for provider-specific chat completion clients."""

    @abstractmethod
    async def chat_complete(
        self,
        *,
        model: str,
        messages: list[dict[str, Any]],
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> str:
        """Return the first choice's message content as plain text.

        ``messages`` follow the OpenAI chat format; ``content`` may be a string
        or a list of text/image_url parts for vision models.

        Raises:
            InferenceNetworkError: on transport or provider API failures.
            InferenceError: when the provider returns no usable content.
        """
