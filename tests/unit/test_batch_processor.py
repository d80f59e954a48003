import math
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from docworker.database.models import BatchRecord, DocumentRecord
from docworker.extraction.exceptions import ExtractionFailed
from docworker.processing.exceptions import (
    BatchNoLongerProcessing,
    BatchNotClaimable,
    BatchNotFound,
    ModelReportedError,
)
from docworker.processing.models import BatchStatus, ChatMessage, DocumentStatus
from docworker.processing.processor import BatchProcessor
from docworker.processing.state import BatchState
from docworker.processing.steps import (
    COMBINED_TEXT_PREFIX,
    CleanResultStep,
    CommitResultsStep,
    ExtractTextStep,
    GenerateStep,
    LoadBatchStep,
    MarkFailedStep,
    MarkProcessingStep,
    MeasureUsageStep,
    MergeTextStep,
    ResolvePromptStep,
    merge_documents,
)
from docworker.processing.store import BatchStore
from docworker.processing.tokens import estimate_tokens_used

_NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def _document(doc_id: str, name: str, mime_type: str = "application/pdf") -> DocumentRecord:
    return DocumentRecord(
        id=doc_id,
        user_id="user-1",
        object_key=f"user-1/1700000000000/{name}",
        original_name=name,
        mime_type=mime_type,
        file_size=2048,
        mode="TRANSLATE",
        source_language="ru",
        target_language="en",
        status="PENDING",
        batch_id="batch-1",
    )


def _batch_state(*names: str, status: str = "PENDING") -> BatchState:
    return BatchState.from_records(
        BatchRecord(id="batch-1", mode="TRANSLATE", status=status),
        [_document(f"doc-{i}", name) for i, name in enumerate(names)],
    )


def _store(batch: BatchState | None, *, claimed: bool = True) -> AsyncMock:
    store = AsyncMock(spec=BatchStore)
    store.load_batch.return_value = batch
    store.claim_batch.return_value = claimed
    return store


def _extractor(texts: dict[str, str | Exception]) -> MagicMock:
    async def extract(source):
        value = texts[source.original_name]
        if isinstance(value, Exception):
            raise value
        return value

    extractor = MagicMock()
    extractor.extract = AsyncMock(side_effect=extract)
    return extractor


def _resolver() -> MagicMock:
    resolver = MagicMock()
    resolver.resolve = AsyncMock(return_value=[ChatMessage("system", "Translate ru->en.")])
    return resolver


def _client(raw: str) -> MagicMock:
    client = MagicMock()
    client.chat_complete = AsyncMock(return_value=raw)
    return client


def _processor(store, extractor, resolver, client, clock_values=(100.0, 102.0)) -> BatchProcessor:
    clock = MagicMock(side_effect=list(clock_values) + [102.0] * 5)
    steps = [
        LoadBatchStep(store),
        MarkProcessingStep(store, id_factory=lambda: "job-1"),
        ExtractTextStep(extractor, store),
        MergeTextStep(),
        ResolvePromptStep(resolver),
        GenerateStep(client, model="general-model", temperature=0.3, max_tokens=4000),
        CleanResultStep(),
        MeasureUsageStep(),
        CommitResultsStep(store, now=lambda: _NOW),
    ]
    return BatchProcessor(steps, MarkFailedStep(store), clock=clock)


class TestMergeDocuments:
    def test_sorted_by_original_name_with_labels(self) -> None:
        batch = _batch_state("b.pdf", "a.pdf")
        batch.start()
        batch.document("doc-0").record_extraction("BBB")
        batch.document("doc-1").record_extraction("AAA")
        assert merge_documents(batch.documents) == (
            "--- Document: a.pdf ---\nAAA\n\n--- Document: b.pdf ---\nBBB"
        )

    def test_order_independent_of_completion_order(self) -> None:
        first = _batch_state("x.pdf", "m.pdf", "c.pdf")
        second = _batch_state("c.pdf", "x.pdf", "m.pdf")
        for batch in (first, second):
            batch.start()
            for doc in batch.documents:
                doc.record_extraction(doc.original_name.upper())
        assert merge_documents(first.documents) == merge_documents(second.documents)


class TestSuccessfulExecution:
    @pytest.mark.asyncio
    async def test_runs_pipeline_and_commits_once(self) -> None:
        batch = _batch_state("b.pdf", "a.pdf")
        store = _store(batch)
        client = _client('```json\n{"text": "Translated result", "error": null}\n```')
        processor = _processor(store, _extractor({"a.pdf": "AAA", "b.pdf": "BBB"}), _resolver(), client)

        context = await processor.execute("batch-1")

        combined = "--- Document: a.pdf ---\nAAA\n\n--- Document: b.pdf ---\nBBB"
        expected_tokens = estimate_tokens_used(combined, "Translated result")
        assert context.combined_text == combined
        assert context.result_text == "Translated result"
        assert context.tokens_used == expected_tokens
        assert context.processing_time_ms == 2000

        store.claim_batch.assert_awaited_once()
        claim_kwargs = store.claim_batch.call_args.kwargs
        assert claim_kwargs["job_id"] == "job-1"
        assert claim_kwargs["job_type"] == "TRANSLATION"
        assert claim_kwargs["input_data"]["documentIds"] == ["doc-0", "doc-1"]

        assert store.save_extracted_text.await_count == 2
        store.save_extracted_text.assert_any_await("doc-0", "BBB")
        store.save_extracted_text.assert_any_await("doc-1", "AAA")

        store.commit_completion.assert_awaited_once_with(
            batch, job_id="job-1", tokens_used=expected_tokens, processing_time_ms=2000
        )
        store.record_failure.assert_not_called()

        assert batch.status is BatchStatus.COMPLETED
        for doc in batch.documents:
            assert doc.status is DocumentStatus.COMPLETED
            assert doc.result_text == "Translated result"
            assert doc.tokens_used == math.ceil(expected_tokens / 2)
            assert doc.processing_time_ms == 1000
            assert doc.completed_at == _NOW

    @pytest.mark.asyncio
    async def test_model_call_uses_prompt_plus_combined_text(self) -> None:
        store = _store(_batch_state("only.pdf"))
        client = _client("plain answer")
        processor = _processor(store, _extractor({"only.pdf": "Body"}), _resolver(), client)

        context = await processor.execute("batch-1")

        client.chat_complete.assert_awaited_once_with(
            model="general-model",
            messages=[
                {"role": "system", "content": "Translate ru->en."},
                {
                    "role": "user",
                    "content": f"{COMBINED_TEXT_PREFIX}--- Document: only.pdf ---\nBody",
                },
            ],
            temperature=0.3,
            max_tokens=4000,
        )
        assert context.result_text == "plain answer"


class TestFailedExecution:
    @pytest.mark.asyncio
    async def test_extraction_error_fails_batch_without_debit(self) -> None:
        batch = _batch_state("good.pdf", "bad.pdf")
        store = _store(batch)
        client = _client("unused")
        extractor = _extractor(
            {"good.pdf": "fine", "bad.pdf": ExtractionFailed("Text extraction failed for bad.pdf: corrupt")}
        )
        processor = _processor(store, extractor, _resolver(), client)

        with pytest.raises(ExtractionFailed):
            await processor.execute("batch-1")

        store.save_extracted_text.assert_awaited_once_with("doc-0", "fine")
        store.record_failure.assert_awaited_once_with(
            "batch-1", "Text extraction failed for bad.pdf: corrupt", 2000
        )
        store.commit_completion.assert_not_called()
        client.chat_complete.assert_not_called()
        assert batch.status is BatchStatus.FAILED
        assert all(d.error_message for d in batch.documents)

    @pytest.mark.asyncio
    async def test_model_reported_error_fails_batch(self) -> None:
        batch = _batch_state("a.pdf")
        store = _store(batch)
        client = _client('```json\n{"text": null, "error": "Not a medical document"}\n```')
        processor = _processor(store, _extractor({"a.pdf": "text"}), _resolver(), client)

        with pytest.raises(ModelReportedError):
            await processor.execute("batch-1")

        store.record_failure.assert_awaited_once()
        assert store.record_failure.call_args.args[1] == "Not a medical document"
        store.commit_completion.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_batch_is_recorded_as_failure(self) -> None:
        store = _store(None)
        processor = _processor(store, _extractor({}), _resolver(), _client(""))

        with pytest.raises(BatchNotFound):
            await processor.execute("batch-1")

        store.record_failure.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_failure_while_recording_failure_keeps_original_error(self) -> None:
        store = _store(_batch_state("a.pdf"))
        store.record_failure.side_effect = RuntimeError("db down")
        extractor = _extractor({"a.pdf": ExtractionFailed("broken")})
        processor = _processor(store, extractor, _resolver(), _client(""))

        with pytest.raises(ExtractionFailed, match="broken"):
            await processor.execute("batch-1")

    @pytest.mark.asyncio
    async def test_commit_refused_after_stale_recovery_is_reraised(self) -> None:
        store = _store(_batch_state("a.pdf"))
        store.commit_completion.side_effect = BatchNoLongerProcessing("Batch batch-1 is no longer Processing")
        processor = _processor(store, _extractor({"a.pdf": "text"}), _resolver(), _client("answer"))

        with pytest.raises(BatchNoLongerProcessing):
            await processor.execute("batch-1")

        store.commit_completion.assert_awaited_once()
        store.record_failure.assert_awaited_once()


class TestClaim:
    @pytest.mark.asyncio
    async def test_lost_claim_is_not_failed(self) -> None:
        store = _store(_batch_state("a.pdf"), claimed=False)
        extractor = _extractor({"a.pdf": "text"})
        processor = _processor(store, extractor, _resolver(), _client(""))

        with pytest.raises(BatchNotClaimable):
            await processor.execute("batch-1")

        store.record_failure.assert_not_called()
        extractor.extract.assert_not_called()

    @pytest.mark.asyncio
    async def test_terminal_batch_is_not_run_again(self) -> None:
        store = _store(_batch_state("a.pdf", status="COMPLETED"))
        processor = _processor(store, _extractor({}), _resolver(), _client(""))

        with pytest.raises(BatchNotClaimable):
            await processor.execute("batch-1")

        store.claim_batch.assert_not_called()
        store.record_failure.assert_not_called()
