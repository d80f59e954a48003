from typing import Any

from docworker.database.connection import get_connection, transaction
from docworker.database.models import BatchRecord, DocumentRecord, UserRecord
from docworker.database.repositories.batch_repository import BatchRepository
from docworker.database.repositories.document_repository import DocumentRepository
from docworker.database.repositories.job_repository import JobRepository
from docworker.database.repositories.user_repository import UserRepository
from docworker.processing.exceptions import BatchNoLongerProcessing
from docworker.processing.models import LedgerEntryType, SubmissionRequest
from docworker.processing.state import BatchState


class BatchStore:
    """Batch-level persistence operations, each on its own pooled connection.

    Operations that change more than one row run in a single transaction.
    """

    def __init__(
        self,
        batch_repo: BatchRepository | None = None,
        document_repo: DocumentRepository | None = None,
        job_repo: JobRepository | None = None,
        user_repo: UserRepository | None = None,
    ) -> None:
        self._batch_repo = batch_repo or BatchRepository()
        self._document_repo = document_repo or DocumentRepository()
        self._job_repo = job_repo or JobRepository()
        self._user_repo = user_repo or UserRepository()

    async def find_user(self, user_id: str) -> UserRecord | None:
        async with get_connection() as conn:
            return await self._user_repo.find_by_id(conn, user_id)

    async def find_batch(self, batch_id: str) -> BatchRecord | None:
        async with get_connection() as conn:
            return await self._batch_repo.find_by_id(conn, batch_id)

    async def find_document(self, document_id: str) -> DocumentRecord | None:
        async with get_connection() as conn:
            return await self._document_repo.find_by_id(conn, document_id)

    async def create_batch(
        self,
        request: SubmissionRequest,
        batch_id: str,
        document_ids: list[str],
    ) -> None:
        """Insert one Pending batch and one Pending document per file."""
        async with transaction() as conn:
            await self._batch_repo.create(conn, batch_id, request.mode.value)
            for document_id, file in zip(document_ids, request.files, strict=True):
                await self._document_repo.create(
                    conn,
                    document_id=document_id,
                    user_id=request.user_id,
                    batch_id=batch_id,
                    object_key=file.object_key,
                    original_name=file.original_name,
                    mime_type=file.mime_type,
                    file_size=file.size,
                    mode=request.mode.value,
                    source_language=request.source_language,
                    target_language=request.target_language,
                )

    async def load_batch(self, batch_id: str) -> BatchState | None:
        async with get_connection() as conn:
            batch = await self._batch_repo.find_by_id(conn, batch_id)
            if batch is None:
                return None
            documents = await self._document_repo.find_by_batch(conn, batch_id)
        return BatchState.from_records(batch, documents)

    async def next_pending_batch_id(self) -> str | None:
        async with get_connection() as conn:
            return await self._batch_repo.find_next_pending_id(conn)

    async def claim_batch(
        self,
        batch: BatchState,
        *,
        job_id: str,
        job_type: str,
        input_data: dict[str, Any],
    ) -> bool:
        """Pending -> Processing plus the Running job, or nothing if not Pending."""
        async with transaction() as conn:
            if not await self._batch_repo.claim(conn, batch.id):
                return False
            await self._document_repo.mark_processing_for_batch(conn, batch.id)
            await self._job_repo.create_running(
                conn,
                job_id=job_id,
                batch_id=batch.id,
                job_type=job_type,
                input_data=input_data,
            )
        return True

    async def save_extracted_text(self, document_id: str, text: str) -> None:
        async with get_connection() as conn:
            await self._document_repo.update_extracted_text(conn, document_id, text)

    async def commit_completion(
        self,
        batch: BatchState,
        *,
        job_id: str,
        tokens_used: int,
        processing_time_ms: int,
    ) -> None:
        """Persist a completed batch, its documents, its job and the single ledger debit.

        Raises:
            BatchNoLongerProcessing: if the batch was failed meanwhile (for example
                by stale-batch recovery). Nothing is written and nothing is debited.
        """
        async with transaction() as conn:
            if not await self._batch_repo.mark_completed(conn, batch.id, batch.combined_result or ""):
                raise BatchNoLongerProcessing(f"Batch {batch.id} is no longer Processing")
            for document in batch.documents:
                await self._document_repo.mark_completed(conn, document)
            await self._job_repo.mark_completed(
                conn,
                job_id,
                output_data={"result": batch.combined_result},
                tokens_used=tokens_used,
                processing_time_ms=processing_time_ms,
            )
            await self._user_repo.debit(
                conn,
                user_id=batch.user_id,
                amount=tokens_used,
                entry_type=LedgerEntryType.PROCESSING_USE.value,
                reason=f"Batch processing: {len(batch.documents)} files",
            )

    async def record_failure(
        self,
        batch_id: str,
        error_message: str,
        processing_time_ms: int | None,
    ) -> None:
        """Fail the batch, its non-terminal documents and its Running jobs."""
        async with transaction() as conn:
            await self._mark_failed(conn, batch_id, error_message, processing_time_ms)

    async def fail_stale_batches(self, lease_seconds: int, error_message: str) -> list[str]:
        """Fail Processing batches whose claim is older than ``lease_seconds``."""
        async with transaction() as conn:
            stale_ids = await self._batch_repo.lock_stale_processing_ids(conn, lease_seconds)
            for batch_id in stale_ids:
                await self._mark_failed(conn, batch_id, error_message, None)
        return stale_ids

    async def _mark_failed(
        self,
        conn: Any,
        batch_id: str,
        error_message: str,
        processing_time_ms: int | None,
    ) -> None:
        await self._batch_repo.mark_failed(conn, batch_id)
        await self._document_repo.mark_failed_for_batch(
            conn, batch_id, error_message, processing_time_ms
        )
        await self._job_repo.mark_running_failed_for_batch(
            conn, batch_id, error_message, processing_time_ms
        )
