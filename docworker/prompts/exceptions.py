class PromptError(Exception):
    """Base exception for prompt registry and resolution errors."""


class PromptRegistryError(PromptError):
    """Raised when the prompt registry cannot be reached or returns garbage."""


class InvalidPromptConfiguration(PromptError):
    """Raised when no usable prompt is configured for a mode/language pair."""
