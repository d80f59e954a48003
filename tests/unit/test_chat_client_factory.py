from unittest.mock import MagicMock, patch

import pytest

from docworker.inference.example_client_adapter import ExampleClientAdapter
from docworker.inference.factory import ChatClientFactory
from docworker.inference.openai_client_adapter import OpenAIClientAdapter


def _settings(provider: str, base_url: str = "") -> MagicMock:
    return MagicMock(
        inference_provider=provider,
        inference_api_key="key",
        inference_base_url=base_url,
        inference_timeout_seconds=60,
    )


class TestChatClientFactory:
    def test_example_provider(self) -> None:
        assert isinstance(ChatClientFactory.create(_settings("example")), ExampleClientAdapter)

    @pytest.mark.parametrize(
        ("provider", "expected_base_url"),
        [
            ("openrouter", "https://openrouter.ai/api/v1"),
            ("groq", "https://api.groq.com/openai/v1"),
            ("OpenRouter", "https://openrouter.ai/api/v1"),
        ],
    )
    def test_compatible_providers_use_known_base_url(
        self, provider: str, expected_base_url: str
    ) -> None:
        with patch("docworker.inference.openai_client_adapter.openai.AsyncOpenAI") as mock_openai:
            client = ChatClientFactory.create(_settings(provider))
        assert isinstance(client, OpenAIClientAdapter)
        assert mock_openai.call_args.kwargs["base_url"] == expected_base_url

    def test_override_wins_over_default(self) -> None:
        with patch("docworker.inference.openai_client_adapter.openai.AsyncOpenAI") as mock_openai:
            ChatClientFactory.create(_settings("openrouter", "https://proxy.test/v1"))
        assert mock_openai.call_args.kwargs["base_url"] == "https://proxy.test/v1"

    def test_openai_without_override_uses_sdk_default(self) -> None:
        with patch("docworker.inference.openai_client_adapter.openai.AsyncOpenAI") as mock_openai:
            ChatClientFactory.create(_settings("openai"))
        assert mock_openai.call_args.kwargs["base_url"] is None

    def test_openai_compatible_requires_base_url(self) -> None:
        with pytest.raises(ValueError, match="inference_base_url is required"):
            ChatClientFactory.create(_settings("openai_compatible"))

    def test_unknown_provider_raises(self) -> None:
        with pytest.raises(ValueError, match="Unknown inference provider"):
            ChatClientFactory.create(_settings("nope"))
