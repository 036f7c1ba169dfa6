"""
Verification pipeline for BoothGuard.

Runs one scan through resolver, expiry gate, ledger and audit recorder
inside a single database transaction:

    START -> TOKEN_RESOLVED -> EXPIRY_CHECKED -> LEDGER_DECIDED -> AUDITED -> END

Invalid, expired and duplicate scans short-circuit to the audit step and
come back as result values. A store that cannot be reached is reported
as ``STORAGE_UNAVAILABLE``; no outcome is ever assumed in that case.
"""

from __future__ import annotations

import enum
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from booth_common.db.connection import Database
from booth_common.models.audit import AuditAction
from booth_common.models.verification import VerificationOutcome, VerificationResult
from booth_common.models.voter import CredentialType
from booth_common.utils import token_fingerprint, utc_now
from verifier import expiry, metrics
from verifier.audit_recorder import AuditRecorder
from verifier.errors import StorageUnavailable
from verifier.ledger import LedgerDecision, VerificationLedger
from verifier.resolver import ResolvedToken, TokenResolver

logger = structlog.get_logger(__name__)

REASON_NOT_FOUND = "token not found"
REASON_ELECTION_INACTIVE = "election not active"
REASON_EXPIRED = "token expired"
REASON_ALREADY_VERIFIED = "voter already verified for this election"
REASON_STORAGE_UNAVAILABLE = "storage unavailable"
REASON_INTERRUPTED = "pipeline interrupted after ledger decision"

_STORAGE_ERRORS = (SQLAlchemyError, OSError)


class PipelineState(str, enum.Enum):
    START = "START"
    TOKEN_RESOLVED = "TOKEN_RESOLVED"
    EXPIRY_CHECKED = "EXPIRY_CHECKED"
    LEDGER_DECIDED = "LEDGER_DECIDED"
    AUDITED = "AUDITED"
    END = "END"


@dataclass
class _Verdict:
    outcome: VerificationOutcome
    action: AuditAction
    subject_ref: str
    detail: dict[str, Any]
    reason: str | None = None
    voter_display_name: str | None = None


@dataclass
class _Scan:
    token: str
    source_ip: str | None
    credential_type: CredentialType
    now: datetime
    log: Any
    fingerprint: str = ""
    state: PipelineState = PipelineState.START
    decision: LedgerDecision | None = None
    subject_ref: str = ""
    detail: dict[str, Any] = field(default_factory=dict)

    def advance(self, state: PipelineState) -> None:
        self.state = state
        self.log.debug("pipeline_state", state=state.value)


class VerificationService:
    """Verifies scanned credentials against the ledger.

    Parameters
    ----------
    database:
        Storage handle; every scan opens one session and one transaction.
    resolver, ledger, recorder:
        Pipeline components.  Defaults are built for *database*.
    clock:
        Wall-clock source; read once per scan.
    """

    def __init__(
        self,
        database: Database,
        *,
        resolver: TokenResolver | None = None,
        ledger: VerificationLedger | None = None,
        recorder: AuditRecorder | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._database = database
        self._resolver = resolver or TokenResolver()
        self._ledger = ledger or VerificationLedger(database.dialect_name)
        self._recorder = recorder or AuditRecorder(on_failure=metrics.count_audit_failure)
        self._clock = clock

    async def verify(
        self,
        token: str,
        source_ip: str | None = None,
        credential_type: CredentialType = CredentialType.QR,
    ) -> VerificationResult:
        """Verify one scan and return its outcome.

        Never raises for invalid, expired, duplicate or storage-failure
        outcomes; those are all encoded in the returned result.
        """
        started = time.monotonic()
        fingerprint = token_fingerprint(token)
        scan = _Scan(
            token=token,
            source_ip=source_ip,
            credential_type=credential_type,
            now=self._clock(),
            fingerprint=fingerprint,
            log=logger.bind(
                token_fingerprint=fingerprint,
                source_ip=source_ip,
                credential_type=credential_type.value,
            ),
        )

        try:
            result = await self._run(scan)
        except StorageUnavailable as exc:
            scan.log.error(
                "verification_storage_unavailable",
                state=scan.state.value,
                error=str(exc),
            )
            result = VerificationResult(
                outcome=VerificationOutcome.STORAGE_UNAVAILABLE,
                reason=REASON_STORAGE_UNAVAILABLE,
            )

        metrics.verify_requests_total.labels(outcome=result.outcome.value).inc()
        metrics.verify_duration_seconds.observe(time.monotonic() - started)
        scan.log.info(
            "verification_completed",
            outcome=result.outcome.value,
            audit_entry_id=result.audit_entry_id,
        )
        return result

    # ------------------------------------------------------------------
    # Transaction boundary
    # ------------------------------------------------------------------

    async def _run(self, scan: _Scan) -> VerificationResult:
        try:
            async with self._database.session() as session:
                async with session.begin():
                    verdict = await self._decide(session, scan)
                    entry = await self._recorder.record(
                        session,
                        verdict.action,
                        subject_ref=verdict.subject_ref,
                        detail=verdict.detail,
                        source_ip=scan.source_ip,
                        recorded_at=scan.now,
                    )
                    scan.advance(PipelineState.AUDITED)
        except _STORAGE_ERRORS as exc:
            raise StorageUnavailable(str(exc)) from exc
        except Exception as exc:
            if scan.state is PipelineState.LEDGER_DECIDED:
                await self._record_interrupted(scan, exc)
            raise

        scan.advance(PipelineState.END)
        return VerificationResult(
            outcome=verdict.outcome,
            voter_display_name=verdict.voter_display_name,
            reason=verdict.reason,
            audit_entry_id=entry.entry_id if entry is not None else None,
        )

    async def _decide(self, session: AsyncSession, scan: _Scan) -> _Verdict:
        resolved = await self._resolver.resolve(session, scan.token, scan.credential_type)
        scan.advance(PipelineState.TOKEN_RESOLVED)

        if resolved is None:
            scan.subject_ref = f"token:{scan.fingerprint}"
            scan.detail = {
                "token_fingerprint": scan.fingerprint,
                "credential_type": scan.credential_type.value,
            }
            return self._fail(scan, VerificationOutcome.INVALID_TOKEN, REASON_NOT_FOUND)

        scan.subject_ref = str(resolved.voter_id)
        scan.detail = {
            "voter_id": str(resolved.voter_id),
            "election_id": str(resolved.election_id),
            "token_fingerprint": scan.fingerprint,
            "credential_type": scan.credential_type.value,
        }

        if not resolved.election_active:
            return self._fail(scan, VerificationOutcome.INVALID_TOKEN, REASON_ELECTION_INACTIVE)

        if expiry.check(resolved.expires_at, scan.now) is expiry.ExpiryStatus.EXPIRED:
            scan.detail["expires_at"] = resolved.expires_at.isoformat()
            return self._fail(scan, VerificationOutcome.TOKEN_EXPIRED, REASON_EXPIRED)
        scan.advance(PipelineState.EXPIRY_CHECKED)

        scan.decision = await self._ledger.try_verify(
            session,
            resolved.voter_id,
            resolved.election_id,
            verified_at=scan.now,
            token_id=resolved.token_id,
        )
        scan.advance(PipelineState.LEDGER_DECIDED)
        return self._ledger_verdict(scan, resolved)

    # ------------------------------------------------------------------
    # Verdicts
    # ------------------------------------------------------------------

    @staticmethod
    def _fail(scan: _Scan, outcome: VerificationOutcome, reason: str) -> _Verdict:
        return _Verdict(
            outcome=outcome,
            action=AuditAction.VERIFY_FAIL,
            subject_ref=scan.subject_ref,
            detail={**scan.detail, "reason": reason},
            reason=reason,
        )

    @staticmethod
    def _ledger_verdict(scan: _Scan, resolved: ResolvedToken) -> _Verdict:
        if scan.decision is LedgerDecision.COMMITTED:
            return _Verdict(
                outcome=VerificationOutcome.SUCCESS,
                action=AuditAction.VERIFY_SUCCESS,
                subject_ref=scan.subject_ref,
                detail={**scan.detail, "verified_at": scan.now.isoformat()},
                voter_display_name=resolved.voter_display_name,
            )
        return _Verdict(
            outcome=VerificationOutcome.ALREADY_VERIFIED,
            action=AuditAction.ALREADY_VERIFIED,
            subject_ref=scan.subject_ref,
            detail={**scan.detail, "reason": REASON_ALREADY_VERIFIED},
            reason=REASON_ALREADY_VERIFIED,
            voter_display_name=resolved.voter_display_name,
        )

    async def _record_interrupted(self, scan: _Scan, exc: BaseException) -> None:
        """Leave an audit trace for a scan that failed after its ledger decision.

        The scan's own transaction has already been rolled back, so the
        entry goes through a fresh one and notes that nothing was kept.
        """
        detail = {
            **scan.detail,
            "reason": REASON_INTERRUPTED,
            "ledger_decision": scan.decision.value if scan.decision else None,
            "rolled_back": True,
            "error": type(exc).__name__,
        }
        try:
            async with self._database.session() as session:
                async with session.begin():
                    await self._recorder.record(
                        session,
                        AuditAction.VERIFY_FAIL,
                        subject_ref=scan.subject_ref,
                        detail=detail,
                        source_ip=scan.source_ip,
                        recorded_at=scan.now,
                    )
        except _STORAGE_ERRORS:
            scan.log.error("audit_write_failed", reason=REASON_INTERRUPTED, exc_info=True)
            self._recorder.report_failure()
