import json

import httpx
import pytest

from docworker.processing.models import ChatMessage
from docworker.prompts.exceptions import PromptRegistryError
from docworker.prompts.langfuse_registry import LangfusePromptRegistry
from docworker.prompts.models import ChatPrompt, PromptType, TextPrompt


def _registry(handler) -> LangfusePromptRegistry:
    return LangfusePromptRegistry(
        base_url="https://langfuse.test/",
        public_key="pk",
        secret_key="sk",
        label="production",
        transport=httpx.MockTransport(handler),
    )


class TestListPrompts:
    @pytest.mark.asyncio
    async def test_queries_tag_and_limit_with_basic_auth(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                200,
                json={
                    "data": [
                        {"name": "ocr", "type": "chat", "tags": ["mis", "ocr", "chat"]},
                        {"name": "glossary-ru", "type": "text", "tags": ["mis", "glossary", "ru"]},
                    ],
                    "meta": {"page": 1},
                },
            )

        listing = await _registry(handler).list_prompts(tag="mis", limit=100)

        request = seen[0]
        assert request.url.path == "/api/public/v2/prompts"
        assert request.url.params["tag"] == "mis"
        assert request.url.params["limit"] == "100"
        assert request.headers["authorization"].startswith("Basic ")
        assert [p.name for p in listing] == ["ocr", "glossary-ru"]
        assert listing[0].has_tags("ocr", "chat")
        assert listing[1].type is PromptType.TEXT

    @pytest.mark.asyncio
    async def test_http_error_is_wrapped(self) -> None:
        registry = _registry(lambda request: httpx.Response(500, text="down"))
        with pytest.raises(PromptRegistryError, match="failed"):
            await registry.list_prompts(tag="mis", limit=100)

    @pytest.mark.asyncio
    async def test_missing_data_array_raises(self) -> None:
        registry = _registry(lambda request: httpx.Response(200, json={"items": []}))
        with pytest.raises(PromptRegistryError, match="data"):
            await registry.list_prompts(tag="mis", limit=100)


class TestGetPrompt:
    @pytest.mark.asyncio
    async def test_chat_prompt_skips_placeholders(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/api/public/v2/prompts/translate ru-en"
            assert request.url.params["label"] == "production"
            return httpx.Response(
                200,
                content=json.dumps(
                    {
                        "name": "translate ru-en",
                        "type": "chat",
                        "prompt": [
                            {"role": "system", "content": "Translate."},
                            {"type": "placeholder", "name": "history"},
                        ],
                    }
                ),
                headers={"content-type": "application/json"},
            )

        prompt = await _registry(handler).get_prompt("translate ru-en", PromptType.CHAT)
        assert prompt == ChatPrompt("translate ru-en", (ChatMessage("system", "Translate."),))

    @pytest.mark.asyncio
    async def test_text_prompt(self) -> None:
        registry = _registry(
            lambda request: httpx.Response(200, json={"name": "g", "type": "text", "prompt": "Glossary"})
        )
        assert await registry.get_prompt("g", PromptType.TEXT) == TextPrompt("g", "Glossary")

    @pytest.mark.asyncio
    async def test_unexpected_shape_raises(self) -> None:
        registry = _registry(
            lambda request: httpx.Response(200, json={"name": "g", "type": "chat", "prompt": "flat"})
        )
        with pytest.raises(PromptRegistryError, match="unexpected shape"):
            await registry.get_prompt("g", PromptType.CHAT)
