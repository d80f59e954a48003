import uuid
from typing import Any

import psycopg
from psycopg.rows import dict_row

from docworker.database.models import LedgerEntryRecord, UserRecord


class UserRepository:
    """Token counters on the users table and their token_transactions ledger."""

    async def find_by_id(
        self,
        conn: psycopg.AsyncConnection[Any],
        user_id: str,
    ) -> UserRecord | None:
        async with conn.cursor(row_factory=dict_row) as cur:
            await cur.execute(
                "SELECT id, tokens_remaining, tokens_used FROM users WHERE id = %s",
                (user_id,),
            )
            row = await cur.fetchone()
        if row is None:
            return None
        return UserRecord(
            id=row["id"],
            tokens_remaining=row["tokens_remaining"],
            tokens_used=row["tokens_used"],
        )

    async def debit(
        self,
        conn: psycopg.AsyncConnection[Any],
        *,
        user_id: str,
        amount: int,
        entry_type: str,
        reason: str,
        document_id: str | None = None,
    ) -> LedgerEntryRecord:
        """Move ``amount`` tokens from remaining to used and record it in the ledger.

        Must run inside the caller's transaction so counters and ledger stay in step.
        """
        await conn.execute(
            """
            UPDATE users
            SET tokens_used = tokens_used + %s,
                tokens_remaining = tokens_remaining - %s,
                updated_at = NOW()
            WHERE id = %s
            """,
            (amount, amount, user_id),
        )
        entry_id = str(uuid.uuid4())
        async with conn.cursor(row_factory=dict_row) as cur:
            await cur.execute(
                """
                INSERT INTO token_transactions
                (id, user_id, type, amount, reason, document_id)
                VALUES (%s, %s, %s, %s, %s, %s)
                RETURNING id, user_id, type, amount, reason, document_id, created_at
                """,
                (entry_id, user_id, entry_type, -amount, reason, document_id),
            )
            row = await cur.fetchone()
        assert row is not None
        return LedgerEntryRecord(
            id=row["id"],
            user_id=row["user_id"],
            type=row["type"],
            amount=row["amount"],
            reason=row["reason"],
            document_id=row["document_id"],
            created_at=row["created_at"],
        )

    async def ledger_total(self, conn: psycopg.AsyncConnection[Any], user_id: str) -> int:
        """Signed sum of all ledger entries for the user."""
        async with conn.cursor() as cur:
            await cur.execute(
                "SELECT COALESCE(SUM(amount), 0) FROM token_transactions WHERE user_id = %s",
                (user_id,),
            )
            row = await cur.fetchone()
        return int(row[0]) if row is not None else 0
