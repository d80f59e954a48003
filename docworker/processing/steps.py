import asyncio
import uuid
from collections.abc import Callable
from datetime import datetime, timezone

from docworker.extraction.extractor import TextExtractor
from docworker.extraction.models import DocumentSource
from docworker.inference.client_base import BaseChatClient
from docworker.logging.logger import Log
from docworker.processing.cleaner import clean_model_output
from docworker.processing.exceptions import BatchNotClaimable, BatchNotFound, PipelineError
from docworker.processing.models import BatchStatus, job_type_for
from docworker.processing.pipeline import PipelineContext, PipelineStep
from docworker.processing.state import DocumentState
from docworker.processing.store import BatchStore
from docworker.processing.tokens import estimate_tokens_used
from docworker.prompts.resolver import PromptResolver

COMBINED_TEXT_PREFIX = "Extracted document text (combined documents):\n"


def merge_documents(documents: list[DocumentState]) -> str:
    """Concatenate extracted texts in original-name order under labelled separators."""
    ordered = sorted(documents, key=lambda d: d.original_name)
    return "\n\n".join(
        f"--- Document: {doc.original_name} ---\n{doc.extracted_text or ''}" for doc in ordered
    )


class LoadBatchStep(PipelineStep):
    def __init__(self, store: BatchStore) -> None:
        self._store = store

    async def run(self, context: PipelineContext) -> PipelineContext:
        batch = await self._store.load_batch(context.batch_id)
        if batch is None:
            raise BatchNotFound(f"Batch {context.batch_id} not found")
        if not batch.documents:
            raise PipelineError("No documents in batch")
        context.batch = batch
        Log.info(
            f"Loaded batch {batch.id}: {len(batch.documents)} document(s), mode {batch.mode.value}"
        )
        return context


class MarkProcessingStep(PipelineStep):
    """Claims the batch and opens its single Running job."""

    def __init__(
        self,
        store: BatchStore,
        id_factory: Callable[[], str] = lambda: str(uuid.uuid4()),
    ) -> None:
        self._store = store
        self._id_factory = id_factory

    async def run(self, context: PipelineContext) -> PipelineContext:
        batch = context.require_batch()
        if batch.status is not BatchStatus.PENDING:
            raise BatchNotClaimable(f"Batch {batch.id} is {batch.status.value}, not PENDING")

        job_id = self._id_factory()
        claimed = await self._store.claim_batch(
            batch,
            job_id=job_id,
            job_type=job_type_for(batch.mode).value,
            input_data={
                "sourceLanguage": batch.source_language,
                "targetLanguage": batch.target_language,
                "mode": batch.mode.value,
                "documentIds": batch.document_ids,
            },
        )
        if not claimed:
            raise BatchNotClaimable(f"Batch {batch.id} was claimed by another worker")
        batch.start()
        context.job_id = job_id
        Log.info(f"Batch {batch.id} marked as processing (job {job_id})")
        return context


class MarkFailedStep(PipelineStep):
    def __init__(self, store: BatchStore) -> None:
        self._store = store

    async def run(self, context: PipelineContext) -> PipelineContext:
        elapsed = context.elapsed_ms()
        await self._store.record_failure(context.batch_id, context.error_message, elapsed)
        if context.batch is not None and not context.batch.status.is_terminal:
            context.batch.fail(context.error_message, elapsed)
        Log.error(f"Batch {context.batch_id} marked as failed: {context.error_message}")
        return context


class ExtractTextStep(PipelineStep):
    """Extracts every document concurrently, persisting each text as it arrives."""

    def __init__(self, extractor: TextExtractor, store: BatchStore) -> None:
        self._extractor = extractor
        self._store = store

    async def run(self, context: PipelineContext) -> PipelineContext:
        batch = context.require_batch()
        results = await asyncio.gather(
            *(self._extract_one(doc) for doc in batch.documents),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, BaseException):
                raise result
        return context

    async def _extract_one(self, document: DocumentState) -> None:
        text = await self._extractor.extract(
            DocumentSource(
                document_id=document.id,
                object_key=document.object_key,
                original_name=document.original_name,
                mime_type=document.mime_type,
            )
        )
        await self._store.save_extracted_text(document.id, text)
        document.record_extraction(text)


class MergeTextStep(PipelineStep):
    async def run(self, context: PipelineContext) -> PipelineContext:
        context.combined_text = merge_documents(context.require_batch().documents)
        Log.info(f"Merged batch {context.batch_id}: {len(context.combined_text)} chars")
        return context


class ResolvePromptStep(PipelineStep):
    def __init__(self, resolver: PromptResolver) -> None:
        self._resolver = resolver

    async def run(self, context: PipelineContext) -> PipelineContext:
        batch = context.require_batch()
        context.messages = await self._resolver.resolve(
            batch.mode, batch.source_language, batch.target_language
        )
        return context


class GenerateStep(PipelineStep):
    """One inference call over the resolved prompt plus the combined text."""

    def __init__(
        self,
        client: BaseChatClient,
        *,
        model: str,
        temperature: float = 0.3,
        max_tokens: int = 4000,
    ) -> None:
        self._client = client
        self._model = model
        self._temperature = temperature
        self._max_tokens = max_tokens

    async def run(self, context: PipelineContext) -> PipelineContext:
        messages = [m.to_dict() for m in context.messages]
        messages.append(
            {"role": "user", "content": f"{COMBINED_TEXT_PREFIX}{context.combined_text}"}
        )
        Log.info(f"Calling {self._model} for batch {context.batch_id} with {len(messages)} messages")
        context.raw_output = await self._client.chat_complete(
            model=self._model,
            messages=messages,
            temperature=self._temperature,
            max_tokens=self._max_tokens,
        )
        return context


class CleanResultStep(PipelineStep):
    async def run(self, context: PipelineContext) -> PipelineContext:
        context.result_text = clean_model_output(context.raw_output)
        return context


class MeasureUsageStep(PipelineStep):
    async def run(self, context: PipelineContext) -> PipelineContext:
        context.tokens_used = estimate_tokens_used(context.combined_text, context.result_text)
        context.processing_time_ms = context.elapsed_ms()
        return context


class CommitResultsStep(PipelineStep):
    """Completes batch, documents and job and debits the user in one transaction."""

    def __init__(
        self,
        store: BatchStore,
        now: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self._store = store
        self._now = now

    async def run(self, context: PipelineContext) -> PipelineContext:
        batch = context.require_batch()
        if context.job_id is None:
            raise ValueError("PipelineContext.job_id must be set before commit")
        batch.complete(
            context.result_text,
            context.tokens_used,
            context.processing_time_ms,
            self._now(),
        )
        await self._store.commit_completion(
            batch,
            job_id=context.job_id,
            tokens_used=context.tokens_used,
            processing_time_ms=context.processing_time_ms,
        )
        Log.info(
            f"Batch {batch.id} completed: {context.tokens_used} tokens, "
            f"{context.processing_time_ms} ms"
        )
        return context
