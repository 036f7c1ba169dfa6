"""
Audit data models for BoothGuard.

Defines the Pydantic models for audit-trail entries (one per scan
attempt) and for the Merkle anchors that make the trail tamper-evident.
"""

from __future__ import annotations

import enum
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field


def _utc_now() -> datetime:
    """Return the current UTC datetime."""
    return datetime.now(timezone.utc)


class AuditAction(str, enum.Enum):
    """Action recorded for a scan attempt."""

    VERIFY_SUCCESS = "VERIFY_SUCCESS"
    VERIFY_FAIL = "VERIFY_FAIL"
    ALREADY_VERIFIED = "ALREADY_VERIFIED"


class AuditEntry(BaseModel):
    """One append-only audit-trail entry.

    Attributes:
        entry_id: Insertion-order surrogate assigned by the database.
        action: What happened.
        subject_ref: Voter id, or a token fingerprint when no voter resolved.
        detail: Structured reason and context.
        source_ip: Address of the scanner that made the attempt.
        recorded_at: Timestamp of the attempt (UTC).
        entry_hash: SHA-256 over the canonical content of the entry.
    """

    model_config = {"from_attributes": True}

    entry_id: int | None = Field(default=None, description="Assigned by the database.")
    action: AuditAction
    subject_ref: str = Field(..., max_length=255)
    detail: dict[str, Any] = Field(default_factory=dict)
    source_ip: str | None = Field(default=None, max_length=64)
    recorded_at: datetime = Field(default_factory=_utc_now)
    entry_hash: str | None = Field(default=None, max_length=64)


class AuditAnchor(BaseModel):
    """A Merkle-tree anchor covering a contiguous range of audit entries.

    The ``audit_anchors`` table is append-only; on PostgreSQL the migrations leave
    ``BG_DB_APP_ROLE`` without UPDATE or DELETE permission.

    Attributes:
        anchor_id: Auto-incrementing primary key.
        merkle_root: SHA-256 Merkle root of the covered entry hashes.
        entry_count: Number of entries in this anchor batch.
        first_entry_id: First covered entry.
        last_entry_id: Last covered entry.
        anchored_at: Timestamp when the anchor was created (UTC).
    """

    model_config = {"from_attributes": True}

    anchor_id: int | None = Field(default=None)
    merkle_root: str = Field(..., max_length=64)
    entry_count: int = Field(..., ge=1)
    first_entry_id: int
    last_entry_id: int
    anchored_at: datetime = Field(default_factory=_utc_now)
