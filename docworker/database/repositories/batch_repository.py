from typing import Any

import psycopg
from psycopg.rows import dict_row

from docworker.database.models import BatchRecord

_COLUMNS = "id, mode, status, combined_result, locked_at, created_at, updated_at"


class BatchRepository:
    """Database operations for the document_batches table."""

    async def create(
        self,
        conn: psycopg.AsyncConnection[Any],
        batch_id: str,
        mode: str,
    ) -> BatchRecord:
        async with conn.cursor(row_factory=dict_row) as cur:
            await cur.execute(
                f"""
                INSERT INTO document_batches (id, mode, status)
                VALUES (%s, %s, 'PENDING')
                RETURNING {_COLUMNS}
                """,
                (batch_id, mode),
            )
            row = await cur.fetchone()
        assert row is not None
        return _to_record(row)

    async def find_by_id(
        self,
        conn: psycopg.AsyncConnection[Any],
        batch_id: str,
    ) -> BatchRecord | None:
        async with conn.cursor(row_factory=dict_row) as cur:
            await cur.execute(
                f"SELECT {_COLUMNS} FROM document_batches WHERE id = %s",
                (batch_id,),
            )
            row = await cur.fetchone()
        return _to_record(row) if row is not None else None

    async def find_next_pending_id(
        self,
        conn: psycopg.AsyncConnection[Any],
    ) -> str | None:
        """Oldest Pending batch not currently locked by another worker."""
        async with conn.cursor() as cur:
            await cur.execute(
                """
                SELECT id
                FROM document_batches
                WHERE status = 'PENDING'
                ORDER BY created_at
                LIMIT 1
                FOR UPDATE SKIP LOCKED
                """
            )
            row = await cur.fetchone()
        return row[0] if row is not None else None

    async def claim(self, conn: psycopg.AsyncConnection[Any], batch_id: str) -> bool:
        """Move a Pending batch to Processing. False if it was not Pending."""
        cur = await conn.execute(
            """
            UPDATE document_batches
            SET status = 'PROCESSING', locked_at = NOW(), updated_at = NOW()
            WHERE id = %s AND status = 'PENDING'
            """,
            (batch_id,),
        )
        return cur.rowcount == 1

    async def mark_completed(
        self,
        conn: psycopg.AsyncConnection[Any],
        batch_id: str,
        combined_result: str,
    ) -> bool:
        """Move a Processing batch to Completed. False if it was not Processing."""
        cur = await conn.execute(
            """
            UPDATE document_batches
            SET status = 'COMPLETED', combined_result = %s, updated_at = NOW()
            WHERE id = %s AND status = 'PROCESSING'
            """,
            (combined_result, batch_id),
        )
        return cur.rowcount == 1

    async def mark_failed(self, conn: psycopg.AsyncConnection[Any], batch_id: str) -> None:
        await conn.execute(
            """
            UPDATE document_batches
            SET status = 'FAILED', updated_at = NOW()
            WHERE id = %s AND status IN ('PENDING', 'PROCESSING')
            """,
            (batch_id,),
        )

    async def lock_stale_processing_ids(
        self,
        conn: psycopg.AsyncConnection[Any],
        lease_seconds: int,
    ) -> list[str]:
        """Processing batches whose claim is older than the lease."""
        async with conn.cursor() as cur:
            await cur.execute(
                """
                SELECT id
                FROM document_batches
                WHERE status = 'PROCESSING'
                  AND locked_at < NOW() - make_interval(secs => %s)
                FOR UPDATE SKIP LOCKED
                """,
                (lease_seconds,),
            )
            rows = await cur.fetchall()
        return [row[0] for row in rows]


def _to_record(row: dict[str, Any]) -> BatchRecord:
    return BatchRecord(
        id=row["id"],
        mode=row["mode"],
        status=row["status"],
        combined_result=row["combined_result"],
        locked_at=row["locked_at"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )
