"""
Verification ledger for BoothGuard.

The dedup authority. A verification is one conditional insert into
``verifications``; the unique index on (voter_id, election_id) decides
which of any number of concurrent scans wins. The ledger never updates
or deletes a row.
"""

from __future__ import annotations

import enum
import uuid
from datetime import datetime
from typing import Any, Callable
from uuid import UUID

import structlog
from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from booth_common.db.orm_models import VerificationORM
from booth_common.models.verification import VerificationRecord

logger = structlog.get_logger(__name__)

_UPSERT_INSERTS: dict[str, Callable[..., Any]] = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


class LedgerDecision(str, enum.Enum):
    COMMITTED = "COMMITTED"
    ALREADY_VERIFIED = "ALREADY_VERIFIED"


class VerificationLedger:
    """Insert-only writer for the ``verifications`` table.

    Parameters
    ----------
    dialect_name:
        SQLAlchemy dialect of the backing store. PostgreSQL and SQLite use
        ``INSERT ... ON CONFLICT DO NOTHING``; any other dialect falls back
        to a plain insert inside a SAVEPOINT, with the unique-violation
        ``IntegrityError`` read as a duplicate.
    """

    def __init__(self, dialect_name: str) -> None:
        self._dialect_name = dialect_name
        self._insert = _UPSERT_INSERTS.get(dialect_name)

    async def try_verify(
        self,
        session: AsyncSession,
        voter_id: UUID,
        election_id: UUID,
        *,
        verified_at: datetime,
        token_id: UUID | None = None,
    ) -> LedgerDecision:
        """Record that *voter_id* has been verified for *election_id*.

        Must run inside the caller's transaction; the row becomes visible
        to other scans only when that transaction commits.

        Returns:
            ``COMMITTED`` if this call created the record, ``ALREADY_VERIFIED``
            if one already existed or a concurrent scan created it first.
        """
        values = {
            "verification_id": uuid.uuid4(),
            "voter_id": voter_id,
            "election_id": election_id,
            "token_id": token_id,
            "verified_at": verified_at,
        }

        if self._insert is None:
            decision = await self._insert_in_savepoint(session, values)
        else:
            stmt = (
                self._insert(VerificationORM)
                .values(**values)
                .on_conflict_do_nothing(index_elements=["voter_id", "election_id"])
            )
            result = await session.execute(stmt)
            decision = (
                LedgerDecision.COMMITTED if result.rowcount == 1
                else LedgerDecision.ALREADY_VERIFIED
            )

        logger.debug(
            "ledger_decided",
            voter_id=str(voter_id),
            election_id=str(election_id),
            decision=decision.value,
        )
        return decision

    async def _insert_in_savepoint(
        self,
        session: AsyncSession,
        values: dict[str, Any],
    ) -> LedgerDecision:
        try:
            async with session.begin_nested():
                session.add(VerificationORM(**values))
        except IntegrityError:
            return LedgerDecision.ALREADY_VERIFIED
        return LedgerDecision.COMMITTED

    async def get_record(
        self,
        session: AsyncSession,
        voter_id: UUID,
        election_id: UUID,
    ) -> VerificationRecord | None:
        """Return the verification record for a pair, if any."""
        result = await session.execute(
            select(VerificationORM).where(
                VerificationORM.voter_id == voter_id,
                VerificationORM.election_id == election_id,
            ),
        )
        row = result.scalar_one_or_none()
        return VerificationRecord.model_validate(row) if row is not None else None
