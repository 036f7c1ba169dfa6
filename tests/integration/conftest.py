"""
Integration test fixtures for BoothGuard.

Every scenario runs against SQLite. With ``BG_TEST_POSTGRES=1`` the same
scenarios also run against a disposable PostgreSQL container started by
``testcontainers``.
"""

from __future__ import annotations

import os
from collections.abc import AsyncIterator, Iterator

import pytest

from booth_common.config import Settings
from booth_common.db.connection import Database
from booth_common.db.orm_models import Base

_POSTGRES_ENABLED = os.environ.get("BG_TEST_POSTGRES") == "1"


# ---------------------------------------------------------------------------
# Container fixtures (session-scoped, one per test run)
# ---------------------------------------------------------------------------

@pytest.fixture(scope="session")
def postgres_dsn() -> Iterator[str]:
    """Start a PostgreSQL 16 container and return its asyncpg DSN."""
    from testcontainers.postgres import PostgresContainer

    with PostgresContainer(
        image="postgres:16-alpine",
        username="boothguard",
        password="testpass",
        dbname="boothguard_test",
    ) as pg:
        url = pg.get_connection_url()
        async_url = url.replace("psycopg2", "asyncpg").replace(
            "postgresql://", "postgresql+asyncpg://"
        )
        yield async_url.replace("://localhost:", "://127.0.0.1:")


# ---------------------------------------------------------------------------
# Storage backends
# ---------------------------------------------------------------------------

@pytest.fixture(params=["sqlite", "postgres"])
def backend(request) -> str:
    if request.param == "postgres" and not _POSTGRES_ENABLED:
        pytest.skip("set BG_TEST_POSTGRES=1 to run against PostgreSQL")
    return request.param


@pytest.fixture()
def settings(backend: str, tmp_path, request) -> Settings:
    if backend == "postgres":
        dsn = request.getfixturevalue("postgres_dsn")
    else:
        dsn = f"sqlite+aiosqlite:///{tmp_path / 'boothguard.db'}"
    return Settings(db_uri=dsn, api_key="", audit_anchor_settle_s=0.0)


@pytest.fixture()
async def database(settings: Settings, backend: str) -> AsyncIterator[Database]:
    db = Database(settings=settings)
    if backend == "postgres":
        async with db.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
    await db.create_schema()
    yield db
    await db.dispose()
