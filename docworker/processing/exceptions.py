class PipelineError(Exception):
    """Base exception for all batch pipeline errors."""


class InvalidLanguage(PipelineError):
    """Raised when a language code is outside the supported set."""


class InsufficientBudget(PipelineError):
    """Raised when the user's remaining tokens are below the estimate."""

    def __init__(self, needed: int, remaining: int) -> None:
        super().__init__(f"Insufficient tokens. Need {needed}, have {remaining}")
        self.needed = needed
        self.remaining = remaining


class UserNotFound(PipelineError):
    """Raised when the submitting user does not exist."""


class BatchNotFound(PipelineError):
    """Raised when a batch id does not resolve to a stored batch."""


class DocumentNotFound(PipelineError):
    """Raised when a document is missing or not owned by the caller."""


class BatchNotClaimable(PipelineError):
    """Raised when a batch is no longer Pending at claim time."""


class BatchInProgress(PipelineError):
    """Raised when a re-submission targets a batch that is not terminal."""


class InvalidStateTransition(PipelineError):
    """Raised when a batch or document is moved along an illegal edge."""


class ModelReportedError(PipelineError):
    """Raised when the model's own output says it could not process the input."""


class PersistenceFailure(PipelineError):
    """Raised when a store transaction fails."""


class EmptySubmission(PipelineError):
    """Raised when a submission carries no files."""


class BatchNoLongerProcessing(PipelineError):
    """Raised when a batch left Processing before its completion was committed."""
