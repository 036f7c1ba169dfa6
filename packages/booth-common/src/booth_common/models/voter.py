"""
Voter, election and token data models for BoothGuard.

These records are created outside the verification core (registration
and election administration); the core only reads them.
"""

from __future__ import annotations

import enum
from datetime import datetime, timezone
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class CredentialType(str, enum.Enum):
    """How a credential is presented at the booth."""

    QR = "qr"
    RFID = "rfid"


def _utc_now() -> datetime:
    """Return the current UTC datetime."""
    return datetime.now(timezone.utc)


class Voter(BaseModel):
    """A registered voter.

    Attributes:
        voter_id: Unique identifier.
        display_name: Name shown to booth staff after a successful scan.
    """

    model_config = {"from_attributes": True}

    voter_id: UUID = Field(default_factory=uuid4, description="Unique identifier.")
    display_name: str = Field(..., min_length=1, max_length=255, description="Display name.")


class Election(BaseModel):
    """An election a token can be scoped to.

    Attributes:
        election_id: Unique identifier.
        name: Human-readable name, e.g. "Student Council 2026".
        is_active: Tokens of inactive elections are rejected.
    """

    model_config = {"from_attributes": True}

    election_id: UUID = Field(default_factory=uuid4, description="Unique identifier.")
    name: str = Field(..., min_length=1, max_length=255, description="Election name.")
    is_active: bool = Field(default=True, description="Whether scans are accepted.")


class Token(BaseModel):
    """An issued eligibility credential, bound to one voter and one election.

    Attributes:
        token: Opaque credential string (globally unique).
        credential_type: QR payload or RFID tag UID.
        voter_id: Voter the token was issued to.
        election_id: Election the token is valid for.
        expires_at: End of the validity window (UTC).
        issued_at: Issue timestamp (UTC).
    """

    model_config = {"from_attributes": True}

    token: str = Field(..., min_length=1, max_length=255, description="Opaque credential string.")
    credential_type: CredentialType = Field(
        default=CredentialType.QR,
        description="How the credential is presented.",
    )
    voter_id: UUID = Field(..., description="Voter the token belongs to.")
    election_id: UUID = Field(..., description="Election the token is scoped to.")
    expires_at: datetime = Field(..., description="Expiry timestamp (UTC).")
    issued_at: datetime = Field(default_factory=_utc_now, description="Issue timestamp (UTC).")
