from typing import ClassVar

from docworker.config.settings import Settings
from docworker.inference.client_base import BaseChatClient
from docworker.inference.example_client_adapter import ExampleClientAdapter
from docworker.inference.openai_client_adapter import OpenAIClientAdapter


class ChatClientFactory:
    """Creates the configured chat client."""

    OPENAI_COMPATIBLE_BASE_URLS: ClassVar[dict[str, str]] = {
        "openrouter": "https://openrouter.ai/api/v1",
        "groq": "https://api.groq.com/openai/v1",
        "together": "https://api.together.xyz/v1",
        "deepseek": "https://api.deepseek.com/v1",
        "ollama": "http://localhost:11434/v1",
    }

    @classmethod
    def create(cls, settings: Settings) -> BaseChatClient:
        """Create a chat client from application settings."""
        provider = settings.inference_provider.lower()
        if provider == "example":
            return ExampleClientAdapter()
        return OpenAIClientAdapter(
            api_key=settings.inference_api_key,
            timeout_seconds=settings.inference_timeout_seconds,
            base_url=cls._resolve_base_url(provider, settings),
        )

    @classmethod
    def _resolve_base_url(cls, provider: str, settings: Settings) -> str | None:
        override = settings.inference_base_url.strip()
        if provider == "openai":
            return override or None
        if provider == "openai_compatible":
            if not override:
                raise ValueError(
                    "inference_base_url is required for inference_provider=openai_compatible"
                )
            return override
        default_base_url = cls.OPENAI_COMPATIBLE_BASE_URLS.get(provider)
        if default_base_url is not None:
            return override or default_base_url
        supported = [
            "example",
            "openai",
            "openai_compatible",
            *sorted(cls.OPENAI_COMPATIBLE_BASE_URLS),
        ]
        raise ValueError(f"Unknown inference provider '{provider}'. Choose from: {supported}")
