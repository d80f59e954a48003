"""Two-level batch/document state machine.

A BatchState owns its DocumentStates; every status change goes through a
transition method so a Completed document always carries result text and a
Failed document always carries an error message.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime

from docworker.database.models import BatchRecord, DocumentRecord
from docworker.processing.exceptions import InvalidStateTransition
from docworker.processing.models import BatchStatus, DocumentStatus, ProcessingMode


@dataclass
class DocumentState:
    id: str
    user_id: str
    object_key: str
    original_name: str
    mime_type: str
    file_size: int
    source_language: str
    target_language: str | None
    status: DocumentStatus = DocumentStatus.PENDING
    extracted_text: str | None = None
    result_text: str | None = None
    error_message: str | None = None
    tokens_used: int | None = None
    processing_time_ms: int | None = None
    completed_at: datetime | None = None

    @classmethod
    def from_record(cls, record: DocumentRecord) -> "DocumentState":
        return cls(
            id=record.id,
            user_id=record.user_id,
            object_key=record.object_key,
            original_name=record.original_name,
            mime_type=record.mime_type,
            file_size=record.file_size,
            source_language=record.source_language,
            target_language=record.target_language,
            status=DocumentStatus(record.status),
            extracted_text=record.extracted_text,
            result_text=record.result_text,
            error_message=record.error_message,
            tokens_used=record.tokens_used,
            processing_time_ms=record.processing_time_ms,
            completed_at=record.completed_at,
        )

    def start(self) -> None:
        self._require(DocumentStatus.PENDING, "start")
        self.status = DocumentStatus.PROCESSING

    def record_extraction(self, text: str) -> None:
        self._require(DocumentStatus.PROCESSING, "record extraction for")
        self.extracted_text = text

    def complete(
        self,
        result_text: str,
        tokens_used: int,
        processing_time_ms: int,
        completed_at: datetime,
    ) -> None:
        self._require(DocumentStatus.PROCESSING, "complete")
        self.status = DocumentStatus.COMPLETED
        self.result_text = result_text
        self.tokens_used = tokens_used
        self.processing_time_ms = processing_time_ms
        self.completed_at = completed_at

    def fail(self, error_message: str, processing_time_ms: int) -> None:
        if self.status.is_terminal:
            raise InvalidStateTransition(
                f"Cannot fail document {self.id} in status {self.status.value}"
            )
        self.status = DocumentStatus.FAILED
        self.error_message = error_message or "Unknown error"
        self.processing_time_ms = processing_time_ms

    def _require(self, expected: DocumentStatus, action: str) -> None:
        if self.status is not expected:
            raise InvalidStateTransition(
                f"Cannot {action} document {self.id} in status {self.status.value}"
            )


@dataclass
class BatchState:
    id: str
    mode: ProcessingMode
    status: BatchStatus
    documents: list[DocumentState] = field(default_factory=list)
    combined_result: str | None = None
    error_message: str | None = None

    @classmethod
    def from_records(
        cls,
        batch: BatchRecord,
        documents: list[DocumentRecord],
    ) -> "BatchState":
        return cls(
            id=batch.id,
            mode=ProcessingMode(batch.mode),
            status=BatchStatus(batch.status),
            documents=[DocumentState.from_record(d) for d in documents],
            combined_result=batch.combined_result,
        )

    @property
    def user_id(self) -> str:
        return self._first_document().user_id

    @property
    def source_language(self) -> str:
        return self._first_document().source_language

    @property
    def target_language(self) -> str | None:
        return self._first_document().target_language

    @property
    def document_ids(self) -> list[str]:
        return [d.id for d in self.documents]

    def document(self, document_id: str) -> DocumentState:
        for doc in self.documents:
            if doc.id == document_id:
                return doc
        raise KeyError(document_id)

    def start(self) -> None:
        """Pending -> Processing for the batch and every document."""
        if self.status is not BatchStatus.PENDING:
            raise InvalidStateTransition(
                f"Cannot start batch {self.id} in status {self.status.value}"
            )
        self._first_document()
        self.status = BatchStatus.PROCESSING
        for doc in self.documents:
            doc.start()

    def complete(
        self,
        result_text: str,
        tokens_used: int,
        processing_time_ms: int,
        completed_at: datetime,
    ) -> None:
        """Processing -> Completed; usage is split evenly (rounded up) per document."""
        if self.status is not BatchStatus.PROCESSING:
            raise InvalidStateTransition(
                f"Cannot complete batch {self.id} in status {self.status.value}"
            )
        count = len(self.documents)
        tokens_share = math.ceil(tokens_used / count)
        time_share = math.ceil(processing_time_ms / count)
        self.status = BatchStatus.COMPLETED
        self.combined_result = result_text
        for doc in self.documents:
            doc.complete(result_text, tokens_share, time_share, completed_at)

    def fail(self, error_message: str, processing_time_ms: int) -> None:
        if self.status.is_terminal:
            raise InvalidStateTransition(
                f"Cannot fail batch {self.id} in status {self.status.value}"
            )
        self.status = BatchStatus.FAILED
        self.error_message = error_message or "Unknown error"
        for doc in self.documents:
            if not doc.status.is_terminal:
                doc.fail(self.error_message, processing_time_ms)

    def _first_document(self) -> DocumentState:
        if not self.documents:
            raise InvalidStateTransition(f"Batch {self.id} has no documents")
        return self.documents[0]
