class InferenceError(Exception):
    """Raised when the inference endpoint returns an unusable response."""


class InferenceNetworkError(InferenceError):
    """Raised when the inference call fails due to network/infrastructure issues."""
