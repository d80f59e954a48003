"""Offline chat client.

Use this provider for local development and pipeline tests: it makes no
network calls and answers every request in the fenced-JSON shape the result
cleaner understands.
"""

import json
from typing import Any

from docworker.inference.client_base import BaseChatClient


class ExampleClientAdapter(BaseChatClient):
    """Echoes the last user message back as ```json {"text": ..., "error": null}```."""

    async def chat_complete(
        self,
        *,
        model: str,
        messages: list[dict[str, Any]],
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> str:
        _ = model, temperature, max_tokens
        text = ""
        for message in reversed(messages):
            if message.get("role") == "user":
                text = _text_of(message.get("content"))
                break
        payload = json.dumps({"text": text, "error": None}, ensure_ascii=False)
        return f"```json\n{payload}\n```"


def _text_of(content: Any) -> str:
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        return "\n".join(
            part.get("text", "")
            for part in content
            if isinstance(part, dict) and part.get("type") == "text"
        )
    return ""
