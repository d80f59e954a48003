from typing import Any
from urllib.parse import quote

import httpx

from docworker.processing.models import ChatMessage
from docworker.prompts.base import BasePromptRegistry
from docworker.prompts.exceptions import PromptRegistryError
from docworker.prompts.models import ChatPrompt, PromptMeta, PromptType, TextPrompt


class LangfusePromptRegistry(BasePromptRegistry):
    """Prompt registry backed by the Langfuse public REST API."""

    def __init__(
        self,
        *,
        base_url: str,
        public_key: str,
        secret_key: str,
        label: str = "production",
        timeout_seconds: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._label = label
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            auth=(public_key, secret_key),
            timeout=timeout_seconds,
            transport=transport,
        )

    async def list_prompts(self, *, tag: str, limit: int) -> list[PromptMeta]:
        body = await self._get_json(
            "/api/public/v2/prompts", params={"tag": tag, "limit": limit}
        )
        data = body.get("data")
        if not isinstance(data, list):
            raise PromptRegistryError("Langfuse prompt listing has no 'data' array")
        prompts: list[PromptMeta] = []
        for item in data:
            prompt_type = _prompt_type(item.get("type"))
            if prompt_type is None:
                continue
            prompts.append(
                PromptMeta(
                    name=str(item.get("name", "")),
                    type=prompt_type,
                    tags=frozenset(item.get("tags") or []),
                )
            )
        return prompts

    async def get_prompt(self, name: str, prompt_type: PromptType) -> ChatPrompt | TextPrompt:
        body = await self._get_json(
            f"/api/public/v2/prompts/{quote(name, safe='')}",
            params={"label": self._label},
        )
        actual_type = _prompt_type(body.get("type"))
        raw_prompt = body.get("prompt")
        if actual_type == PromptType.TEXT and isinstance(raw_prompt, str):
            return TextPrompt(name=name, prompt=raw_prompt)
        if actual_type == PromptType.CHAT and isinstance(raw_prompt, list):
            return ChatPrompt(name=name, messages=tuple(_chat_messages(raw_prompt)))
        raise PromptRegistryError(
            f"Prompt '{name}' has unexpected shape (type={body.get('type')!r}, "
            f"requested {prompt_type.value})"
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def _get_json(self, path: str, params: dict[str, Any]) -> dict[str, Any]:
        try:
            response = await self._client.get(path, params=params)
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPError as exc:
            raise PromptRegistryError(f"Langfuse request {path} failed: {exc}") from exc
        except ValueError as exc:
            raise PromptRegistryError(f"Langfuse returned invalid JSON for {path}") from exc
        if not isinstance(body, dict):
            raise PromptRegistryError(f"Langfuse returned unexpected payload for {path}")
        return body


def _prompt_type(value: Any) -> PromptType | None:
    try:
        return PromptType(value)
    except ValueError:
        return None


def _chat_messages(raw: list[Any]) -> list[ChatMessage]:
    # Placeholder entries carry no role/content and are skipped.
    return [
        ChatMessage(role=str(entry["role"]), content=str(entry.get("content", "")))
        for entry in raw
        if isinstance(entry, dict) and "role" in entry
    ]
