"""File-based prompt registry.

Each ``*.json`` file in the directory holds one prompt::

    {"name": "...", "type": "chat" | "text", "tags": ["mis", ...],
     "prompt": "text" | [{"role": "system", "content": "..."}, ...]}

The bundled ``defaults`` directory is used when no directory is configured,
so development setups run without a Langfuse project.
"""

import json
from pathlib import Path
from typing import Any

from docworker.processing.models import ChatMessage
from docworker.prompts.base import BasePromptRegistry
from docworker.prompts.exceptions import PromptRegistryError
from docworker.prompts.models import ChatPrompt, PromptMeta, PromptType, TextPrompt

DEFAULT_PROMPTS_DIR = Path(__file__).parent / "defaults"


class LocalPromptRegistry(BasePromptRegistry):
    def __init__(self, prompts_dir: Path | None = None) -> None:
        self._prompts_dir = prompts_dir or DEFAULT_PROMPTS_DIR

    async def list_prompts(self, *, tag: str, limit: int) -> list[PromptMeta]:
        metas = [
            PromptMeta(name=entry["name"], type=PromptType(entry["type"]), tags=frozenset(entry["tags"]))
            for entry in self._load_all()
            if tag in entry["tags"]
        ]
        return metas[:limit]

    async def get_prompt(self, name: str, prompt_type: PromptType) -> ChatPrompt | TextPrompt:
        for entry in self._load_all():
            if entry["name"] != name:
                continue
            if entry["type"] == PromptType.CHAT.value:
                return ChatPrompt(
                    name=name,
                    messages=tuple(
                        ChatMessage(role=m["role"], content=m["content"]) for m in entry["prompt"]
                    ),
                )
            return TextPrompt(name=name, prompt=entry["prompt"])
        raise PromptRegistryError(f"Prompt '{name}' ({prompt_type.value}) not found in {self._prompts_dir}")

    def _load_all(self) -> list[dict[str, Any]]:
        if not self._prompts_dir.is_dir():
            raise PromptRegistryError(f"Prompt directory not found: {self._prompts_dir}")
        entries = []
        for path in sorted(self._prompts_dir.glob("*.json")):
            entries.append(_load_entry(path))
        return entries


def _load_entry(path: Path) -> dict[str, Any]:
    try:
        entry = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise PromptRegistryError(f"Cannot read prompt file {path.name}: {exc}") from exc

    if not isinstance(entry, dict) or not isinstance(entry.get("name"), str):
        raise PromptRegistryError(f"Prompt file {path.name} has no 'name'")
    if entry.get("type") not in (PromptType.CHAT.value, PromptType.TEXT.value):
        raise PromptRegistryError(f"Prompt file {path.name} has invalid 'type'")
    if not isinstance(entry.get("tags"), list):
        raise PromptRegistryError(f"Prompt file {path.name} has no 'tags' list")
    prompt = entry.get("prompt")
    if entry["type"] == PromptType.TEXT.value and not isinstance(prompt, str):
        raise PromptRegistryError(f"Text prompt file {path.name} must have a string 'prompt'")
    if entry["type"] == PromptType.CHAT.value and not (
        isinstance(prompt, list)
        and all(isinstance(m, dict) and "role" in m and "content" in m for m in prompt)
    ):
        raise PromptRegistryError(
            f"Chat prompt file {path.name} must have a list of role/content messages"
        )
    return entry
