from docworker.logging.logger import Log
from docworker.processing.models import ChatMessage, ProcessingMode
from docworker.prompts.base import BasePromptRegistry
from docworker.prompts.exceptions import InvalidPromptConfiguration
from docworker.prompts.models import ChatPrompt, PromptType, TextPrompt
from docworker.prompts.selector import select_prompts


class PromptResolver:
    """Turns (mode, source, target) into the ordered message list for the model."""

    def __init__(
        self,
        registry: BasePromptRegistry,
        *,
        project_tag: str = "mis",
        limit: int = 100,
    ) -> None:
        self._registry = registry
        self._project_tag = project_tag
        self._limit = limit

    async def resolve(
        self,
        mode: ProcessingMode,
        source_language: str,
        target_language: str | None,
    ) -> list[ChatMessage]:
        """Compiled chat prompt followed by one system message per glossary.

        Raises:
            InvalidPromptConfiguration: no chat prompt matches, or the registry
                returned a prompt of the wrong type.
            PromptRegistryError: the registry could not be queried.
        """
        listing = await self._registry.list_prompts(tag=self._project_tag, limit=self._limit)
        selection = select_prompts(listing, mode, source_language, target_language)
        if selection.chat_prompt is None:
            raise InvalidPromptConfiguration(
                f"No chat prompt configured for mode {mode.value} "
                f"({source_language} -> {target_language or '-'})"
            )

        chat = await self._registry.get_prompt(selection.chat_prompt, PromptType.CHAT)
        if not isinstance(chat, ChatPrompt):
            raise InvalidPromptConfiguration(
                f"Prompt '{selection.chat_prompt}' is not a chat prompt"
            )
        messages = chat.compile({})

        for name in selection.glossary_prompts:
            glossary = await self._registry.get_prompt(name, PromptType.TEXT)
            if not isinstance(glossary, TextPrompt):
                raise InvalidPromptConfiguration(f"Prompt '{name}' is not a text prompt")
            messages.append(ChatMessage(role="system", content=glossary.prompt))

        Log.info(
            f"Resolved prompt '{selection.chat_prompt}' for mode {mode.value} "
            f"with {len(selection.glossary_prompts)} glossary prompt(s)"
        )
        return messages
