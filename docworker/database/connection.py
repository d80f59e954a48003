from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

import psycopg
from psycopg_pool import AsyncConnectionPool

from docworker.config.settings import Settings
from docworker.processing.exceptions import PersistenceFailure

SCHEMA_PATH = Path(__file__).parent / "schema.sql"

_pool: AsyncConnectionPool | None = None


def build_conninfo(settings: Settings) -> str:
    return (
        f"host={settings.db_host} "
        f"port={settings.db_port} "
        f"dbname={settings.db_database} "
        f"user={settings.db_username} "
        f"password={settings.db_password}"
    )


async def init_pool(settings: Settings) -> None:
    """Open the global async connection pool from settings."""
    global _pool  # noqa: PLW0603
    pool = AsyncConnectionPool(
        build_conninfo(settings),
        min_size=settings.db_pool_min_size,
        max_size=settings.db_pool_max_size,
        open=False,
    )
    await pool.open(wait=True)
    _pool = pool


async def close_pool() -> None:
    """Close the global connection pool."""
    global _pool  # noqa: PLW0603
    if _pool is not None:
        await _pool.close()
        _pool = None


@asynccontextmanager
async def get_connection() -> AsyncGenerator[psycopg.AsyncConnection[Any], None]:
    """Yield a pooled connection. The pool commits on clean exit, rolls back on error."""
    if _pool is None:
        raise RuntimeError("Connection pool not initialized. Call init_pool() first.")
    async with _pool.connection() as conn:
        yield conn


@asynccontextmanager
async def transaction() -> AsyncGenerator[psycopg.AsyncConnection[Any], None]:
    """Run the enclosed statements as one transaction.

    Raises:
        PersistenceFailure: if any statement (or the commit) fails.
    """
    try:
        async with get_connection() as conn:
            async with conn.transaction():
                yield conn
    except psycopg.Error as exc:
        raise PersistenceFailure(f"Store transaction failed: {exc}") from exc


async def apply_schema(conn: psycopg.AsyncConnection[Any]) -> None:
    """Create the worker's tables and indexes if they do not exist yet."""
    await conn.execute(SCHEMA_PATH.read_text(encoding="utf-8"))
