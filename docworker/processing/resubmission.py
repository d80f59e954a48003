from docworker.database.models import DocumentRecord
from docworker.logging.logger import Log
from docworker.processing.exceptions import BatchInProgress, DocumentNotFound
from docworker.processing.models import (
    BatchStatus,
    DocumentStatus,
    FileSubmission,
    ProcessingMode,
    SubmissionRequest,
    SubmissionResult,
)
from docworker.processing.orchestrator import BatchOrchestrator
from docworker.processing.store import BatchStore


class ResubmissionService:
    """Submits an existing document again as a fresh batch.

    Terminal states are final: a retry never reopens the old batch, it
    creates a new one referencing the same stored file.
    """

    def __init__(self, store: BatchStore, orchestrator: BatchOrchestrator) -> None:
        self._store = store
        self._orchestrator = orchestrator

    async def retry_document(self, document_id: str, user_id: str) -> SubmissionResult:
        document = await self._owned_document(document_id, user_id)
        if document.batch_id is not None:
            batch = await self._store.find_batch(document.batch_id)
            if batch is not None and not BatchStatus(batch.status).is_terminal:
                raise BatchInProgress(f"Batch {batch.id} is still {batch.status}")

        Log.info(f"Retrying document {document_id} for user {user_id}")
        return await self._orchestrator.submit(
            _request_for(
                document,
                target_language=document.target_language,
                mode=ProcessingMode(document.mode),
            )
        )

    async def retranslate_document(
        self,
        document_id: str,
        user_id: str,
        target_language: str,
        mode: ProcessingMode = ProcessingMode.TRANSLATE,
    ) -> SubmissionResult:
        document = await self._owned_document(document_id, user_id)
        if document.status != DocumentStatus.COMPLETED.value:
            raise DocumentNotFound(f"Document {document_id} not found or not completed")

        Log.info(f"Resubmitting document {document_id} as {mode.value} to {target_language}")
        return await self._orchestrator.submit(
            _request_for(document, target_language=target_language, mode=mode)
        )

    async def _owned_document(self, document_id: str, user_id: str) -> DocumentRecord:
        document = await self._store.find_document(document_id)
        if document is None or document.user_id != user_id:
            raise DocumentNotFound(f"Document {document_id} not found")
        return document


def _request_for(
    document: DocumentRecord,
    *,
    target_language: str | None,
    mode: ProcessingMode,
) -> SubmissionRequest:
    return SubmissionRequest(
        files=[
            FileSubmission(
                object_key=document.object_key,
                original_name=document.original_name,
                mime_type=document.mime_type,
                size=document.file_size,
            )
        ],
        source_language=document.source_language,
        target_language=target_language,
        mode=mode,
        user_id=document.user_id,
    )
