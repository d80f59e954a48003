from pathlib import Path

from docworker.config.settings import Settings
from docworker.prompts.base import BasePromptRegistry
from docworker.prompts.langfuse_registry import LangfusePromptRegistry
from docworker.prompts.local_registry import LocalPromptRegistry


class PromptRegistryFactory:
    """Creates the configured prompt registry."""

    @staticmethod
    def create(settings: Settings) -> BasePromptRegistry:
        registry = settings.prompt_registry.lower()
        if registry == "langfuse":
            return LangfusePromptRegistry(
                base_url=settings.langfuse_base_url,
                public_key=settings.langfuse_public_key,
                secret_key=settings.langfuse_secret_key,
                label=settings.prompt_label,
            )
        if registry == "local":
            prompts_dir = settings.local_prompts_dir.strip()
            return LocalPromptRegistry(Path(prompts_dir) if prompts_dir else None)
        raise ValueError(f"Unknown prompt registry '{registry}'. Choose from: ['langfuse', 'local']")
