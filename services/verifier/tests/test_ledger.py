"""Tests for VerificationLedger."""

from __future__ import annotations

import asyncio
import uuid

from booth_common.db.orm_models import ElectionORM, VoterORM
from verifier.ledger import LedgerDecision, VerificationLedger


async def _pair(database) -> tuple[uuid.UUID, uuid.UUID]:
    async with database.session() as session:
        voter = VoterORM(display_name="Ada")
        election = ElectionORM(name="General")
        session.add_all([voter, election])
        await session.commit()
        return voter.voter_id, election.election_id


async def _try(database, ledger, voter_id, election_id, now) -> LedgerDecision:
    async with database.session() as session:
        async with session.begin():
            return await ledger.try_verify(session, voter_id, election_id, verified_at=now)


class TestTryVerify:

    async def test_first_insert_commits(self, database, now):
        ledger = VerificationLedger(database.dialect_name)
        voter_id, election_id = await _pair(database)

        assert await _try(database, ledger, voter_id, election_id, now) is LedgerDecision.COMMITTED

        async with database.session() as session:
            record = await ledger.get_record(session, voter_id, election_id)
        assert record is not None
        assert record.voter_id == voter_id

    async def test_second_insert_is_duplicate(self, database, now):
        ledger = VerificationLedger(database.dialect_name)
        voter_id, election_id = await _pair(database)

        await _try(database, ledger, voter_id, election_id, now)
        assert (
            await _try(database, ledger, voter_id, election_id, now)
            is LedgerDecision.ALREADY_VERIFIED
        )

    async def test_other_election_is_independent(self, database, now):
        ledger = VerificationLedger(database.dialect_name)
        voter_id, election_id = await _pair(database)
        _, other_election = await _pair(database)

        await _try(database, ledger, voter_id, election_id, now)
        assert await _try(database, ledger, voter_id, other_election, now) is LedgerDecision.COMMITTED

    async def test_rolled_back_insert_leaves_no_record(self, database, now):
        ledger = VerificationLedger(database.dialect_name)
        voter_id, election_id = await _pair(database)

        async with database.session() as session:
            await session.begin()
            await ledger.try_verify(session, voter_id, election_id, verified_at=now)
            await session.rollback()

        async with database.session() as session:
            assert await ledger.get_record(session, voter_id, election_id) is None
        assert await _try(database, ledger, voter_id, election_id, now) is LedgerDecision.COMMITTED

    async def test_concurrent_inserts_have_one_winner(self, database, now):
        ledger = VerificationLedger(database.dialect_name)
        voter_id, election_id = await _pair(database)

        decisions = await asyncio.gather(
            *(_try(database, ledger, voter_id, election_id, now) for _ in range(20)),
        )
        assert decisions.count(LedgerDecision.COMMITTED) == 1
        assert decisions.count(LedgerDecision.ALREADY_VERIFIED) == 19


class TestSavepointFallback:
    """Dialects without ON CONFLICT go through the IntegrityError path."""

    async def test_fallback_decides_the_same_way(self, database, now):
        ledger = VerificationLedger("generic")
        voter_id, election_id = await _pair(database)

        assert await _try(database, ledger, voter_id, election_id, now) is LedgerDecision.COMMITTED
        assert (
            await _try(database, ledger, voter_id, election_id, now)
            is LedgerDecision.ALREADY_VERIFIED
        )
