import os
import uuid
from collections.abc import AsyncGenerator
from typing import Any

import psycopg
import pytest
import pytest_asyncio

from docworker.config.settings import Settings
from docworker.database.connection import (
    apply_schema,
    build_conninfo,
    close_pool,
    get_connection,
    init_pool,
)


def _test_settings() -> Settings:
    os.environ.setdefault("DB_DATABASE", "docworker_test")
    return Settings()


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    return _test_settings()


@pytest_asyncio.fixture
async def integration_pool(test_settings: Settings) -> AsyncGenerator[None, None]:
    try:
        conn = await psycopg.AsyncConnection.connect(
            build_conninfo(test_settings), autocommit=True, connect_timeout=3
        )
    except psycopg.OperationalError as e:
        pytest.skip(f"PostgreSQL test DB not available: {e}. Set DB_* env to run integration tests")
    async with conn:
        await apply_schema(conn)
    await init_pool(test_settings)
    try:
        yield
    finally:
        await close_pool()


@pytest_asyncio.fixture
async def db_conn(integration_pool: None) -> AsyncGenerator[psycopg.AsyncConnection[Any], None]:
    async with get_connection() as conn:
        yield conn


@pytest_asyncio.fixture
async def integration_cleanup(integration_pool: None) -> AsyncGenerator[list[tuple[str, str]], None]:
    """Rows to delete after the test, as (table, id) pairs."""
    cleanup: list[tuple[str, str]] = []
    yield cleanup
    if not cleanup:
        return
    async with get_connection() as conn:
        for table, row_id in cleanup:
            if table == "document_batches":
                await conn.execute("DELETE FROM documents WHERE batch_id = %s", (row_id,))
                await conn.execute("DELETE FROM document_batches WHERE id = %s", (row_id,))
        for table, row_id in cleanup:
            if table == "users":
                await conn.execute("DELETE FROM users WHERE id = %s", (row_id,))


async def _insert_user(conn: psycopg.AsyncConnection[Any], tokens_remaining: int) -> str:
    user_id = str(uuid.uuid4())
    await conn.execute(
        """
        INSERT INTO users (id, email, tokens_remaining, tokens_used)
        VALUES (%s, %s, %s, 0)
        """,
        (user_id, f"{user_id}@example.test", tokens_remaining),
    )
    await conn.commit()
    return user_id


@pytest_asyncio.fixture
async def seed_user(
    db_conn: psycopg.AsyncConnection[Any],
    integration_cleanup: list[tuple[str, str]],
) -> str:
    user_id = await _insert_user(db_conn, tokens_remaining=1000)
    integration_cleanup.append(("users", user_id))
    return user_id


@pytest_asyncio.fixture
async def seed_poor_user(
    db_conn: psycopg.AsyncConnection[Any],
    integration_cleanup: list[tuple[str, str]],
) -> str:
    user_id = await _insert_user(db_conn, tokens_remaining=0)
    integration_cleanup.append(("users", user_id))
    return user_id

