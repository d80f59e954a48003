from typing import Any

import psycopg
from psycopg.rows import dict_row
from psycopg.types.json import Jsonb

from docworker.database.models import JobRecord
from docworker.processing.models import JobStatus


class JobRepository:
    """Database operations for the processing_jobs table."""

    async def create_running(
        self,
        conn: psycopg.AsyncConnection[Any],
        *,
        job_id: str,
        batch_id: str,
        job_type: str,
        input_data: dict[str, Any],
    ) -> JobRecord:
        """Insert the single Running job for one batch execution attempt."""
        async with conn.cursor(row_factory=dict_row) as cur:
            await cur.execute(
                """
                INSERT INTO processing_jobs (id, batch_id, type, status, input_data)
                VALUES (%s, %s, %s, %s, %s)
                RETURNING id, batch_id, type, status, input_data, created_at
                """,
                (job_id, batch_id, job_type, JobStatus.RUNNING.value, Jsonb(input_data)),
            )
            row = await cur.fetchone()
        assert row is not None
        return JobRecord(
            id=row["id"],
            batch_id=row["batch_id"],
            type=row["type"],
            status=row["status"],
            input_data=row["input_data"],
            created_at=row["created_at"],
        )

    async def mark_completed(
        self,
        conn: psycopg.AsyncConnection[Any],
        job_id: str,
        *,
        output_data: dict[str, Any],
        tokens_used: int,
        processing_time_ms: int,
    ) -> None:
        await conn.execute(
            """
            UPDATE processing_jobs
            SET status = %s,
                output_data = %s,
                tokens_used = %s,
                processing_time_ms = %s,
                completed_at = NOW(),
                updated_at = NOW()
            WHERE id = %s AND status = %s
            """,
            (
                JobStatus.COMPLETED.value,
                Jsonb(output_data),
                tokens_used,
                processing_time_ms,
                job_id,
                JobStatus.RUNNING.value,
            ),
        )

    async def mark_running_failed_for_batch(
        self,
        conn: psycopg.AsyncConnection[Any],
        batch_id: str,
        error_message: str,
        processing_time_ms: int | None,
    ) -> None:
        """Fail every job of the batch that is still Running."""
        await conn.execute(
            """
            UPDATE processing_jobs
            SET status = %s,
                error_message = %s,
                processing_time_ms = %s,
                completed_at = NOW(),
                updated_at = NOW()
            WHERE batch_id = %s AND status = %s
            """,
            (
                JobStatus.FAILED.value,
                error_message,
                processing_time_ms,
                batch_id,
                JobStatus.RUNNING.value,
            ),
        )

    async def find_by_batch(
        self,
        conn: psycopg.AsyncConnection[Any],
        batch_id: str,
    ) -> list[JobRecord]:
        async with conn.cursor(row_factory=dict_row) as cur:
            await cur.execute(
                """
                SELECT id, batch_id, type, status, input_data, output_data,
                       tokens_used, processing_time_ms, error_message,
                       completed_at, created_at
                FROM processing_jobs
                WHERE batch_id = %s
                ORDER BY created_at
                """,
                (batch_id,),
            )
            rows = await cur.fetchall()
        return [
            JobRecord(
                id=row["id"],
                batch_id=row["batch_id"],
                type=row["type"],
                status=row["status"],
                input_data=row["input_data"],
                output_data=row["output_data"],
                tokens_used=row["tokens_used"],
                processing_time_ms=row["processing_time_ms"],
                error_message=row["error_message"],
                completed_at=row["completed_at"],
                created_at=row["created_at"],
            )
            for row in rows
        ]
