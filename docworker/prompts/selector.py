"""Tag-based prompt selection.

Pure functions over registry listings: given the prompts tagged with the
project tag, pick the chat prompt for a processing mode and the glossary
text prompts for the language pair. Fetching and compiling happen in
:mod:`docworker.prompts.resolver`.
"""

import re
from dataclasses import dataclass, field
from typing import Iterable

from docworker.processing.models import ProcessingMode
from docworker.prompts.models import PromptMeta, PromptType

TAG_CHAT = "chat"
TAG_OCR = "ocr"
TAG_SUMMARY = "summary"
TAG_ONCOLOGY = "oncology"
TAG_TRANSLATE = "translate"
TAG_FROM_ANY_LANG = "from-any-lang"
TAG_JURIDICAL = "jur"
TAG_GLOSSARY = "glossary"

_NAME_TOKEN_SPLIT = re.compile(r"[^a-z0-9]+")


@dataclass(frozen=True)
class PromptSelection:
    chat_prompt: str | None
    glossary_prompts: list[str] = field(default_factory=list)


def select_prompts(
    prompts: list[PromptMeta],
    mode: ProcessingMode,
    source_language: str,
    target_language: str | None,
) -> PromptSelection:
    """Choose the chat prompt and glossary prompts for one batch."""
    chats = [p for p in prompts if p.type == PromptType.CHAT]

    if mode == ProcessingMode.OCR:
        chat = _first(p for p in chats if p.has_tags(TAG_OCR, TAG_CHAT))
        return PromptSelection(chat, _glossaries(prompts, [source_language]))

    if mode == ProcessingMode.SUMMARISE:
        chat = _first(p for p in chats if p.has_tags(TAG_SUMMARY))
        return PromptSelection(chat, _glossaries(prompts, [source_language]))

    if mode == ProcessingMode.SUMMARISE_ONCO:
        chat = _first(p for p in chats if p.has_tags(TAG_ONCOLOGY))
        return PromptSelection(chat, _glossaries(prompts, [source_language]))

    if mode in (ProcessingMode.TRANSLATE, ProcessingMode.TRANSLATE_JUR):
        if not target_language:
            return PromptSelection(None)
        chat = _translate_prompt(
            chats,
            source_language,
            target_language,
            juridical=mode == ProcessingMode.TRANSLATE_JUR,
        )
        return PromptSelection(
            chat, _glossaries(prompts, [source_language, target_language])
        )

    raise ValueError(f"Unsupported processing mode: {mode}")


def name_orders_pair(name: str, source_language: str, target_language: str) -> bool:
    """True when ``name`` mentions the source language before the target one.

    Names are split on non-alphanumerics so ``Mis-ru-en-Chat`` and ``ru->en``
    both qualify, while a code buried inside a word (``translate`` holds
    ``la``) does not.
    """
    tokens = [t for t in _NAME_TOKEN_SPLIT.split(name.lower()) if t]
    source, target = source_language.lower(), target_language.lower()
    if source not in tokens or target not in tokens:
        return False
    return tokens.index(source) < tokens.index(target)


def _translate_prompt(
    chats: list[PromptMeta],
    source_language: str,
    target_language: str,
    *,
    juridical: bool,
) -> str | None:
    translate = [p for p in chats if p.has_tags(TAG_TRANSLATE)]
    pair = [
        p
        for p in translate
        if p.has_tags(source_language, target_language)
        and name_orders_pair(p.name, source_language, target_language)
    ]
    any_lang = [p for p in translate if p.has_tags(TAG_FROM_ANY_LANG, target_language)]

    if juridical:
        order = [
            [p for p in pair if p.has_tags(TAG_JURIDICAL)],
            [p for p in any_lang if p.has_tags(TAG_JURIDICAL)],
            pair,
            any_lang,
        ]
    else:
        order = [
            [p for p in pair if not p.has_tags(TAG_JURIDICAL)],
            [p for p in any_lang if not p.has_tags(TAG_JURIDICAL)],
            pair,
            any_lang,
        ]
    for candidates in order:
        if candidates:
            return candidates[0].name
    return None


def _glossaries(prompts: list[PromptMeta], languages: list[str]) -> list[str]:
    names: list[str] = []
    for language in languages:
        name = _first(
            p
            for p in prompts
            if p.type == PromptType.TEXT and p.has_tags(TAG_GLOSSARY, language)
        )
        if name is not None and name not in names:
            names.append(name)
    return names


def _first(prompts: Iterable[PromptMeta]) -> str | None:
    for prompt in prompts:
        return prompt.name
    return None
