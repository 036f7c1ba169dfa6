"""
API schemas for the BoothGuard verification service.

Pydantic request/response models for scan verification and audit-trail
retrieval.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from booth_common.models.audit import AuditAction
from booth_common.models.voter import CredentialType


class VerifyRequest(BaseModel):
    token: str = Field(..., min_length=1, max_length=255)
    credential_type: CredentialType = Field(default=CredentialType.QR)


class AuditEntrySummary(BaseModel):
    model_config = {"from_attributes": True}

    entry_id: int
    action: AuditAction
    subject_ref: str
    detail: dict[str, Any]
    source_ip: str | None = None
    recorded_at: datetime
    entry_hash: str


class AuditEntryListResponse(BaseModel):
    entries: list[AuditEntrySummary]
    total: int


class AuditVerifyResponse(BaseModel):
    entry_id: int
    entry_hash: str
    hash_matches: bool
    anchor_id: int | None = None
    merkle_root: str | None = None
    merkle_proof: list[dict[str, str]] = Field(default_factory=list)
    verified: bool = False
    anchored_at: datetime | None = None
