from typing import Any

import httpx
import openai

from docworker.inference.client_base import BaseChatClient
from docworker.inference.exceptions import InferenceError, InferenceNetworkError


class OpenAIClientAdapter(BaseChatClient):
    """Chat client built on the OpenAI-compatible async chat API."""

    def __init__(
        self,
        *,
        api_key: str,
        timeout_seconds: int,
        base_url: str | None = None,
    ) -> None:
        self._client = openai.AsyncOpenAI(
            api_key=api_key,
            timeout=timeout_seconds,
            base_url=base_url,
        )

    async def chat_complete(
        self,
        *,
        model: str,
        messages: list[dict[str, Any]],
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> str:
        options: dict[str, Any] = {}
        if temperature is not None:
            options["temperature"] = temperature
        if max_tokens is not None:
            options["max_tokens"] = max_tokens
        try:
            response = await self._client.chat.completions.create(
                model=model,
                messages=messages,  # type: ignore[arg-type]
                **options,
            )
        except (openai.APIConnectionError, httpx.ConnectError, httpx.TimeoutException) as exc:
            raise InferenceNetworkError(f"AI provider network error: {exc}") from exc
        except openai.APIError as exc:
            raise InferenceNetworkError(f"AI provider API error: {exc}") from exc

        if not response.choices:
            raise InferenceError("AI returned no choices")
        content = response.choices[0].message.content
        if content is None:
            raise InferenceError("AI returned empty response")
        return content
