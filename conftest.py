"""Shared fixtures for BoothGuard tests.

Every test that needs storage gets its own SQLite file through
``aiosqlite``, so uniqueness and locking are enforced by a real store.
"""

from __future__ import annotations

import os
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import pytest

# Set env vars before any booth_common settings are read.
os.environ.setdefault("BG_DB_URI", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("BG_LOG_LEVEL", "DEBUG")

from booth_common.config import Settings  # noqa: E402
from booth_common.db.connection import Database  # noqa: E402
from booth_common.db.orm_models import ElectionORM, TokenORM, VoterORM  # noqa: E402

NOW = datetime(2026, 3, 1, 9, 0, 0, tzinfo=timezone.utc)


@dataclass(frozen=True)
class SeededToken:
    token: str
    token_id: uuid.UUID
    voter_id: uuid.UUID
    election_id: uuid.UUID
    display_name: str
    expires_at: datetime


@pytest.fixture()
def now() -> datetime:
    return NOW


@pytest.fixture()
def clock(now: datetime):
    return lambda: now


@pytest.fixture()
def settings(tmp_path) -> Settings:
    return Settings(
        db_uri=f"sqlite+aiosqlite:///{tmp_path / 'boothguard.db'}",
        sqlite_busy_timeout_s=30.0,
        api_key="",
        audit_anchor_settle_s=0.0,
    )


@pytest.fixture()
async def database(settings: Settings):
    db = Database(settings=settings)
    await db.create_schema()
    yield db
    await db.dispose()


@pytest.fixture()
def seed_token(database: Database, now: datetime):
    """Register a voter, an election and one token; return the ids."""

    async def _seed(
        token: str = "T1",
        *,
        display_name: str = "Ada Lovelace",
        expires_at: datetime | None = None,
        election_active: bool = True,
        credential_type: str = "qr",
        voter_id: uuid.UUID | None = None,
        election_id: uuid.UUID | None = None,
    ) -> SeededToken:
        expires_at = expires_at or now + timedelta(hours=1)
        async with database.session() as session:
            if voter_id is None:
                voter = VoterORM(display_name=display_name)
                session.add(voter)
                await session.flush()
                voter_id = voter.voter_id
            if election_id is None:
                election = ElectionORM(name="General 2026", is_active=election_active)
                session.add(election)
                await session.flush()
                election_id = election.election_id
            row = TokenORM(
                token=token,
                credential_type=credential_type,
                voter_id=voter_id,
                election_id=election_id,
                expires_at=expires_at,
                issued_at=now - timedelta(days=1),
            )
            session.add(row)
            await session.commit()
            return SeededToken(
                token=token,
                token_id=row.token_id,
                voter_id=voter_id,
                election_id=election_id,
                display_name=display_name,
                expires_at=expires_at,
            )

    return _seed
