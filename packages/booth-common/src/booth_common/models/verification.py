"""
Verification data models for BoothGuard.

Defines the ledger record written on a successful scan and the result
value returned to the booth for every scan, whatever its outcome.
"""

from __future__ import annotations

import enum
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class VerificationOutcome(str, enum.Enum):
    """Terminal outcome of one scan."""

    SUCCESS = "SUCCESS"
    INVALID_TOKEN = "INVALID_TOKEN"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"
    ALREADY_VERIFIED = "ALREADY_VERIFIED"
    STORAGE_UNAVAILABLE = "STORAGE_UNAVAILABLE"

    @property
    def is_decided(self) -> bool:
        """``False`` only when no decision could be made."""
        return self is not VerificationOutcome.STORAGE_UNAVAILABLE


class VerificationRecord(BaseModel):
    """The permanent "has voted" fact for one (voter, election) pair."""

    model_config = {"from_attributes": True}

    voter_id: UUID
    election_id: UUID
    verified_at: datetime


class VerificationResult(BaseModel):
    """What the booth is told about a scan.

    Attributes:
        outcome: Terminal outcome.
        voter_display_name: Present on ``SUCCESS`` and ``ALREADY_VERIFIED``.
        reason: Human-readable reason for anything but ``SUCCESS``.
        audit_entry_id: Audit entry written for this scan, if the write landed.
    """

    outcome: VerificationOutcome
    voter_display_name: str | None = None
    reason: str | None = None
    audit_entry_id: int | None = Field(default=None, description="Audit entry for this scan.")

    @property
    def success(self) -> bool:
        return self.outcome is VerificationOutcome.SUCCESS
