"""
Async database connection management for BoothGuard.

Provides SQLAlchemy async engine and session factory creation and the
``Database`` handle that owns them. The handle is constructed explicitly
at process start, passed to whoever needs storage, and disposed at
shutdown; there is no module-level engine.

SQLite engines are switched to explicit ``BEGIN IMMEDIATE`` transactions
so concurrent writers queue on the database lock instead of failing
with a lock-upgrade deadlock, and so SAVEPOINT works.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import structlog
from sqlalchemy import event, text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from booth_common.config import Settings, get_settings
from booth_common.db.orm_models import Base

logger = structlog.get_logger(__name__)


def is_sqlite(dsn: str) -> bool:
    """Return ``True`` when *dsn* targets SQLite."""
    return make_url(dsn).get_backend_name() == "sqlite"


def _install_sqlite_transaction_hooks(engine: AsyncEngine) -> None:
    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_begin(dbapi_connection: Any, connection_record: Any) -> None:
        # The driver's implicit BEGIN is replaced by the one emitted below.
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _begin_immediate(conn: Any) -> None:
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def build_engine(
    dsn: str | None = None,
    pool_size: int | None = None,
    *,
    echo: bool | None = None,
    settings: Settings | None = None,
) -> AsyncEngine:
    """Create an async SQLAlchemy engine.

    Args:
        dsn: Database connection string.  Falls back to ``Settings.db_uri``.
        pool_size: Connection-pool size.  Falls back to ``Settings.db_pool_size``.
        echo: Echo SQL.  Falls back to ``Settings.db_echo``.
        settings: Settings to read defaults from (``get_settings()`` if omitted).

    Returns:
        A configured ``AsyncEngine`` instance.
    """
    settings = settings or get_settings()
    url = dsn or settings.db_uri
    echo = settings.db_echo if echo is None else echo

    if is_sqlite(url):
        engine = create_async_engine(
            url,
            echo=echo,
            connect_args={"timeout": settings.sqlite_busy_timeout_s},
        )
        _install_sqlite_transaction_hooks(engine)
        return engine

    return create_async_engine(
        url,
        pool_size=pool_size or settings.db_pool_size,
        pool_pre_ping=True,
        echo=echo,
    )


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create an async session factory bound to *engine*.

    Args:
        engine: The async engine to bind sessions to.

    Returns:
        An ``async_sessionmaker`` that produces ``AsyncSession`` instances.
    """
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


class Database:
    """Owns one engine and its session factory for the life of a process.

    Parameters
    ----------
    dsn:
        Connection string; defaults to ``Settings.db_uri``.
    settings:
        Settings used for pool sizing and SQLite timeouts.
    """

    def __init__(self, dsn: str | None = None, *, settings: Settings | None = None) -> None:
        self._settings = settings or get_settings()
        self.dsn = dsn or self._settings.db_uri
        self.engine = build_engine(self.dsn, settings=self._settings)
        self.session_factory = build_session_factory(self.engine)

    @property
    def dialect_name(self) -> str:
        return self.engine.dialect.name

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Yield an ``AsyncSession`` and ensure it is closed afterwards."""
        async with self.session_factory() as session:
            yield session

    async def create_schema(self) -> None:
        """Create every table that does not exist yet."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("database_schema_ready", dialect=self.dialect_name)

    async def ping(self) -> bool:
        """Execute a lightweight query to verify database connectivity.

        Returns:
            ``True`` if the database responds, ``False`` otherwise.
        """
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except Exception:  # noqa: BLE001 – health check must not raise
            logger.warning("database_ping_failed", exc_info=True)
            return False

    async def dispose(self) -> None:
        """Close every pooled connection."""
        await self.engine.dispose()
        logger.info("database_disposed")
