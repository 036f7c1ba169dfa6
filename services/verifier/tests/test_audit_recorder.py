"""Tests for AuditRecorder."""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from booth_common.models.audit import AuditAction
from verifier.audit_recorder import AuditRecorder, compute_entry_hash
from verifier.ledger import LedgerDecision, VerificationLedger


@asynccontextmanager
async def _failing_savepoint():
    raise OperationalError("INSERT INTO audit_entries", {}, Exception("disk I/O error"))
    yield  # pragma: no cover


def _failing_begin_nested(self):
    return _failing_savepoint()


class TestComputeEntryHash:
    _AT = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)

    def test_stable_for_same_content(self):
        a = compute_entry_hash(AuditAction.VERIFY_FAIL, "v", {"b": 1, "a": 2}, "10.0.0.1", self._AT)
        b = compute_entry_hash("VERIFY_FAIL", "v", {"a": 2, "b": 1}, "10.0.0.1", self._AT)
        assert a == b
        assert len(a) == 64

    def test_naive_timestamp_hashes_as_utc(self):
        aware = compute_entry_hash("VERIFY_FAIL", "v", {}, None, self._AT)
        naive = compute_entry_hash("VERIFY_FAIL", "v", {}, None, self._AT.replace(tzinfo=None))
        assert aware == naive

    def test_any_field_change_changes_hash(self):
        base = compute_entry_hash("VERIFY_FAIL", "v", {"reason": "x"}, None, self._AT)
        assert compute_entry_hash("VERIFY_SUCCESS", "v", {"reason": "x"}, None, self._AT) != base
        assert compute_entry_hash("VERIFY_FAIL", "w", {"reason": "x"}, None, self._AT) != base
        assert compute_entry_hash("VERIFY_FAIL", "v", {"reason": "y"}, None, self._AT) != base
        assert compute_entry_hash("VERIFY_FAIL", "v", {"reason": "x"}, "1.2.3.4", self._AT) != base
        assert (
            compute_entry_hash("VERIFY_FAIL", "v", {"reason": "x"}, None, self._AT + timedelta(seconds=1))
            != base
        )


class TestAuditRecorder:

    async def test_record_assigns_id_and_hash(self, database, now):
        recorder = AuditRecorder()
        async with database.session() as session:
            async with session.begin():
                entry = await recorder.record(
                    session,
                    AuditAction.VERIFY_FAIL,
                    subject_ref="token:abcd",
                    detail={"reason": "token not found"},
                    source_ip="10.0.0.7",
                    recorded_at=now,
                )

        assert entry is not None
        assert entry.entry_id is not None
        assert entry.entry_hash == compute_entry_hash(
            AuditAction.VERIFY_FAIL, "token:abcd", {"reason": "token not found"}, "10.0.0.7", now,
        )

    async def test_entry_ids_increase(self, database, now):
        recorder = AuditRecorder()
        ids = []
        for _ in range(3):
            async with database.session() as session:
                async with session.begin():
                    entry = await recorder.record(
                        session,
                        AuditAction.VERIFY_FAIL,
                        subject_ref="s",
                        detail={},
                        source_ip=None,
                        recorded_at=now,
                    )
            ids.append(entry.entry_id)
        assert ids == sorted(ids)
        assert len(set(ids)) == 3

    async def test_failed_write_returns_none_and_reports(self, database, now, fetch_audit, monkeypatch):
        on_failure = MagicMock()
        recorder = AuditRecorder(on_failure=on_failure)
        async with database.session() as session:
            monkeypatch.setattr(AsyncSession, "begin_nested", _failing_begin_nested)
            async with session.begin():
                entry = await recorder.record(
                    session,
                    AuditAction.VERIFY_SUCCESS,
                    subject_ref="v",
                    detail={},
                    source_ip=None,
                    recorded_at=now,
                )

        assert entry is None
        on_failure.assert_called_once_with()
        assert await fetch_audit() == []

    async def test_failed_write_does_not_undo_ledger(self, database, seed_token, now, fetch_verifications, monkeypatch):
        seeded = await seed_token("T1")
        ledger = VerificationLedger(database.dialect_name)
        recorder = AuditRecorder()

        async with database.session() as session:
            async with session.begin():
                decision = await ledger.try_verify(
                    session, seeded.voter_id, seeded.election_id, verified_at=now,
                )
                monkeypatch.setattr(AsyncSession, "begin_nested", _failing_begin_nested)
                entry = await recorder.record(
                    session,
                    AuditAction.VERIFY_SUCCESS,
                    subject_ref=str(seeded.voter_id),
                    detail={},
                    source_ip=None,
                    recorded_at=now,
                )

        assert decision is LedgerDecision.COMMITTED
        assert entry is None
        assert len(await fetch_verifications()) == 1
