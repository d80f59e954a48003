from typing import Any

import psycopg
from psycopg.rows import dict_row

from docworker.database.models import DocumentRecord
from docworker.processing.state import DocumentState

_COLUMNS = """
    id, user_id, batch_id, object_key, original_name, mime_type, file_size,
    mode, source_language, target_language, status, extracted_text,
    result_text, error_message, tokens_used, processing_time_ms,
    completed_at, created_at, updated_at
"""


class DocumentRepository:
    """Database operations for the documents table."""

    async def create(
        self,
        conn: psycopg.AsyncConnection[Any],
        *,
        document_id: str,
        user_id: str,
        batch_id: str | None,
        object_key: str,
        original_name: str,
        mime_type: str,
        file_size: int,
        mode: str,
        source_language: str,
        target_language: str | None,
    ) -> DocumentRecord:
        async with conn.cursor(row_factory=dict_row) as cur:
            await cur.execute(
                f"""
                INSERT INTO documents
                (id, user_id, batch_id, object_key, original_name, mime_type,
                 file_size, mode, source_language, target_language, status)
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, 'PENDING')
                RETURNING {_COLUMNS}
                """,
                (
                    document_id,
                    user_id,
                    batch_id,
                    object_key,
                    original_name,
                    mime_type,
                    file_size,
                    mode,
                    source_language,
                    target_language,
                ),
            )
            row = await cur.fetchone()
        assert row is not None
        return _to_record(row)

    async def find_by_id(
        self,
        conn: psycopg.AsyncConnection[Any],
        document_id: str,
    ) -> DocumentRecord | None:
        async with conn.cursor(row_factory=dict_row) as cur:
            await cur.execute(
                f"SELECT {_COLUMNS} FROM documents WHERE id = %s",
                (document_id,),
            )
            row = await cur.fetchone()
        return _to_record(row) if row is not None else None

    async def find_by_batch(
        self,
        conn: psycopg.AsyncConnection[Any],
        batch_id: str,
    ) -> list[DocumentRecord]:
        async with conn.cursor(row_factory=dict_row) as cur:
            await cur.execute(
                f"SELECT {_COLUMNS} FROM documents WHERE batch_id = %s ORDER BY created_at, id",
                (batch_id,),
            )
            rows = await cur.fetchall()
        return [_to_record(row) for row in rows]

    async def mark_processing_for_batch(
        self,
        conn: psycopg.AsyncConnection[Any],
        batch_id: str,
    ) -> None:
        await conn.execute(
            """
            UPDATE documents
            SET status = 'PROCESSING', updated_at = NOW()
            WHERE batch_id = %s
            """,
            (batch_id,),
        )

    async def update_extracted_text(
        self,
        conn: psycopg.AsyncConnection[Any],
        document_id: str,
        extracted_text: str,
    ) -> None:
        await conn.execute(
            """
            UPDATE documents
            SET extracted_text = %s, updated_at = NOW()
            WHERE id = %s
            """,
            (extracted_text, document_id),
        )

    async def mark_completed(
        self,
        conn: psycopg.AsyncConnection[Any],
        document: DocumentState,
    ) -> None:
        await conn.execute(
            """
            UPDATE documents
            SET status = 'COMPLETED',
                result_text = %s,
                tokens_used = %s,
                processing_time_ms = %s,
                completed_at = %s,
                updated_at = NOW()
            WHERE id = %s AND status = 'PROCESSING'
            """,
            (
                document.result_text,
                document.tokens_used,
                document.processing_time_ms,
                document.completed_at,
                document.id,
            ),
        )

    async def mark_failed_for_batch(
        self,
        conn: psycopg.AsyncConnection[Any],
        batch_id: str,
        error_message: str,
        processing_time_ms: int | None,
    ) -> None:
        await conn.execute(
            """
            UPDATE documents
            SET status = 'FAILED',
                error_message = %s,
                processing_time_ms = COALESCE(%s, processing_time_ms),
                updated_at = NOW()
            WHERE batch_id = %s AND status IN ('PENDING', 'PROCESSING')
            """,
            (error_message, processing_time_ms, batch_id),
        )


def _to_record(row: dict[str, Any]) -> DocumentRecord:
    return DocumentRecord(
        id=row["id"],
        user_id=row["user_id"],
        batch_id=row["batch_id"],
        object_key=row["object_key"],
        original_name=row["original_name"],
        mime_type=row["mime_type"],
        file_size=row["file_size"],
        mode=row["mode"],
        source_language=row["source_language"],
        target_language=row["target_language"],
        status=row["status"],
        extracted_text=row["extracted_text"],
        result_text=row["result_text"],
        error_message=row["error_message"],
        tokens_used=row["tokens_used"],
        processing_time_ms=row["processing_time_ms"],
        completed_at=row["completed_at"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )
