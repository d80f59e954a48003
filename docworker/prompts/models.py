import re
from dataclasses import dataclass, field
from enum import Enum

from docworker.processing.models import ChatMessage

_VARIABLE_RE = re.compile(r"\{\{\s*([A-Za-z_][A-Za-z0-9_]*)\s*\}\}")


class PromptType(str, Enum):
    CHAT = "chat"
    TEXT = "text"


@dataclass(frozen=True)
class PromptMeta:
    """Registry listing entry used for tag-based selection."""

    name: str
    type: PromptType
    tags: frozenset[str] = field(default_factory=frozenset)

    def has_tags(self, *tags: str) -> bool:
        return all(tag in self.tags for tag in tags)


@dataclass(frozen=True)
class ChatPrompt:
    name: str
    messages: tuple[ChatMessage, ...]
    type: PromptType = PromptType.CHAT

    def compile(self, variables: dict[str, str]) -> list[ChatMessage]:
        """Substitute ``{{variable}}`` placeholders. Unknown placeholders are kept."""
        return [
            ChatMessage(role=m.role, content=_substitute(m.content, variables))
            for m in self.messages
        ]


@dataclass(frozen=True)
class TextPrompt:
    name: str
    prompt: str
    type: PromptType = PromptType.TEXT


def _substitute(template: str, variables: dict[str, str]) -> str:
    def replace(match: re.Match[str]) -> str:
        return variables.get(match.group(1), match.group(0))

    return _VARIABLE_RE.sub(replace, template)
