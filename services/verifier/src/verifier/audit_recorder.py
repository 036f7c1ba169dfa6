"""
Audit recorder for BoothGuard.

Appends one ``audit_entries`` row per scan attempt. Each row carries a
SHA-256 hash of its canonical content, computed at write time, which the
anchorer later folds into Merkle roots.

The append runs in a SAVEPOINT of the caller's transaction: if it fails,
only the savepoint is rolled back and the verification decision still
commits. Failures are logged and reported through ``on_failure``; they
never change the scan outcome.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Callable

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from booth_common.db.orm_models import AuditEntryORM
from booth_common.models.audit import AuditAction
from booth_common.utils import canonical_json, ensure_utc, sha256_hex

logger = structlog.get_logger(__name__)


def compute_entry_hash(
    action: AuditAction | str,
    subject_ref: str,
    detail: dict[str, Any],
    source_ip: str | None,
    recorded_at: datetime,
) -> str:
    """SHA-256 over the canonical JSON form of an audit entry's content."""
    action_value = action.value if isinstance(action, AuditAction) else action
    return sha256_hex(
        canonical_json(
            {
                "action": action_value,
                "subject_ref": subject_ref,
                "detail": detail,
                "source_ip": source_ip,
                "recorded_at": ensure_utc(recorded_at).isoformat(),
            },
        ),
    )


class AuditRecorder:
    """Sole writer of the audit trail.

    Parameters
    ----------
    on_failure:
        Sync callable invoked once per failed append (e.g. a metric).
    """

    def __init__(self, on_failure: Callable[[], None] | None = None) -> None:
        self._on_failure = on_failure

    async def record(
        self,
        session: AsyncSession,
        action: AuditAction,
        *,
        subject_ref: str,
        detail: dict[str, Any],
        source_ip: str | None,
        recorded_at: datetime,
    ) -> AuditEntryORM | None:
        """Append an entry inside *session*'s transaction.

        Returns the flushed row (``entry_id`` assigned), or ``None`` when
        the append failed.
        """
        entry = AuditEntryORM(
            action=action.value,
            subject_ref=subject_ref,
            detail=detail,
            source_ip=source_ip,
            recorded_at=recorded_at,
            entry_hash=compute_entry_hash(action, subject_ref, detail, source_ip, recorded_at),
        )
        try:
            async with session.begin_nested():
                session.add(entry)
        except SQLAlchemyError as exc:
            logger.error(
                "audit_write_failed",
                action=action.value,
                subject_ref=subject_ref,
                error=str(exc),
                exc_info=True,
            )
            self.report_failure()
            return None

        logger.info(
            "audit_entry_recorded",
            entry_id=entry.entry_id,
            action=action.value,
            subject_ref=subject_ref,
        )
        return entry

    def report_failure(self) -> None:
        """Count one failed append through ``on_failure``."""
        if self._on_failure is not None:
            self._on_failure()
