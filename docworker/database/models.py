from dataclasses import dataclass
from datetime import datetime
from typing import Any


@dataclass
class UserRecord:
    """Represents the token-bearing subset of a row from the users table."""

    id: str
    tokens_remaining: int
    tokens_used: int


@dataclass
class BatchRecord:
    """Represents a row from the document_batches table."""

    id: str
    mode: str
    status: str
    combined_result: str | None = None
    locked_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class DocumentRecord:
    """Represents a row from the documents table."""

    id: str
    user_id: str
    object_key: str
    original_name: str
    mime_type: str
    file_size: int
    mode: str
    source_language: str
    target_language: str | None
    status: str
    batch_id: str | None = None
    extracted_text: str | None = None
    result_text: str | None = None
    error_message: str | None = None
    tokens_used: int | None = None
    processing_time_ms: int | None = None
    completed_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class JobRecord:
    """Represents a row from the processing_jobs table."""

    id: str
    batch_id: str
    type: str
    status: str
    input_data: dict[str, Any] | None = None
    output_data: dict[str, Any] | None = None
    tokens_used: int | None = None
    processing_time_ms: int | None = None
    error_message: str | None = None
    completed_at: datetime | None = None
    created_at: datetime | None = None


@dataclass
class LedgerEntryRecord:
    """Represents a row from the token_transactions table."""

    id: str
    user_id: str
    type: str
    amount: int
    reason: str
    document_id: str | None = None
    created_at: datetime | None = None
