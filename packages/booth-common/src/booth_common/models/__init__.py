"""
Shared Pydantic data models for BoothGuard.

This package contains the voter, election and token records the core
reads, the verification result and ledger record it produces, and the
audit-trail models.
"""

from booth_common.models.audit import AuditAction, AuditAnchor, AuditEntry
from booth_common.models.verification import (
    VerificationOutcome,
    VerificationRecord,
    VerificationResult,
)
from booth_common.models.voter import CredentialType, Election, Token, Voter

__all__ = [
    "AuditAction",
    "AuditAnchor",
    "AuditEntry",
    "CredentialType",
    "Election",
    "Token",
    "VerificationOutcome",
    "VerificationRecord",
    "VerificationResult",
    "Voter",
]
