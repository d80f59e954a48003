from abc import ABC, abstractmethod

from docworker.prompts.models import ChatPrompt, PromptMeta, PromptType, TextPrompt


class BasePromptRegistry(ABC):
    """Contract for prompt-template registries."""

    @abstractmethod
    async def list_prompts(self, *, tag: str, limit: int) -> list[PromptMeta]:
        """Metadata of prompts carrying ``tag``, at most ``limit`` entries.

        Raises:
            PromptRegistryError: if the registry cannot be queried.
        """

    @abstractmethod
    async def get_prompt(self, name: str, prompt_type: PromptType) -> ChatPrompt | TextPrompt:
        """Fetch one prompt by name.

        Raises:
            PromptRegistryError: if the prompt cannot be fetched.
        """

    async def close(self) -> None:
        """Release the registry's connections. Nothing to release by default."""
