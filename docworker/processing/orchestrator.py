import uuid
from collections.abc import Callable

from docworker.logging.logger import Log
from docworker.processing.exceptions import (
    EmptySubmission,
    InsufficientBudget,
    InvalidLanguage,
    UserNotFound,
)
from docworker.processing.models import (
    Language,
    ProcessingMode,
    SubmissionRequest,
    SubmissionResult,
)
from docworker.processing.pipeline import PipelineContext
from docworker.processing.processor import BatchProcessor
from docworker.processing.queue import BaseBatchQueue
from docworker.processing.store import BatchStore
from docworker.processing.tokens import estimate_tokens_needed

STALE_BATCH_ERROR = "Processing interrupted before completion"

_LANGUAGES = frozenset(language.value for language in Language)


def validate_languages(
    source_language: str,
    target_language: str | None,
    mode: ProcessingMode,
) -> str | None:
    """Check both codes against the supported set; return the target to store.

    OCR ignores the target (stored as null). Every other mode needs a
    concrete target: ``auto`` only makes sense as a source.

    Raises:
        InvalidLanguage: if a code is unknown or a required target is missing.
    """
    if source_language not in _LANGUAGES:
        raise InvalidLanguage(f"Invalid source language: {source_language!r}")
    if not mode.requires_target_language:
        if target_language and target_language not in _LANGUAGES:
            raise InvalidLanguage(f"Invalid target language: {target_language!r}")
        return None
    if not target_language or target_language not in _LANGUAGES:
        raise InvalidLanguage(f"Invalid target language: {target_language!r}")
    if target_language == Language.AUTO.value:
        raise InvalidLanguage(f"Target language cannot be {Language.AUTO.value!r}")
    return target_language


class BatchOrchestrator:
    """Accepts submissions and drives batch execution."""

    def __init__(
        self,
        store: BatchStore,
        processor: BatchProcessor,
        queue: BaseBatchQueue,
        id_factory: Callable[[], str] = lambda: str(uuid.uuid4()),
    ) -> None:
        self._store = store
        self._processor = processor
        self._queue = queue
        self._id_factory = id_factory

    async def submit(self, request: SubmissionRequest) -> SubmissionResult:
        """Validate, check the budget, create Pending records and enqueue.

        Nothing is written when validation or the budget check fails, and no
        tokens are debited here.

        Raises:
            EmptySubmission: no files were given.
            InvalidLanguage: a language code is not supported.
            UserNotFound: the user does not exist.
            InsufficientBudget: the estimate exceeds the user's remaining tokens.
        """
        if not request.files:
            raise EmptySubmission("No files submitted")
        target_language = validate_languages(
            request.source_language, request.target_language, request.mode
        )
        if target_language != request.target_language:
            request = SubmissionRequest(
                files=request.files,
                source_language=request.source_language,
                target_language=target_language,
                mode=request.mode,
                user_id=request.user_id,
            )

        needed = estimate_tokens_needed(request.files, request.mode)
        user = await self._store.find_user(request.user_id)
        if user is None:
            raise UserNotFound(f"User {request.user_id} not found")
        if user.tokens_remaining < needed:
            Log.warning(
                f"Submission rejected for user {request.user_id}: "
                f"needs {needed} tokens, has {user.tokens_remaining}"
            )
            raise InsufficientBudget(needed, user.tokens_remaining)

        batch_id = self._id_factory()
        document_ids = [self._id_factory() for _ in request.files]
        await self._store.create_batch(request, batch_id, document_ids)
        Log.info(
            f"Batch {batch_id} accepted: {len(document_ids)} file(s), mode {request.mode.value}, "
            f"{request.source_language} -> {target_language or '-'}, estimate {needed} tokens"
        )
        await self._queue.enqueue(batch_id)
        return SubmissionResult(
            batch_id=batch_id,
            document_id=document_ids[0],
            document_ids=document_ids,
        )

    async def execute(self, batch_id: str) -> PipelineContext:
        return await self._processor.execute(batch_id)

    async def reconcile_stale(self, lease_seconds: int) -> list[str]:
        """Fail batches left in Processing longer than the lease."""
        stale = await self._store.fail_stale_batches(lease_seconds, STALE_BATCH_ERROR)
        for batch_id in stale:
            Log.warning(f"Batch {batch_id} failed: {STALE_BATCH_ERROR}")
        return stale
