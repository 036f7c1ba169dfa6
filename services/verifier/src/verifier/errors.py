"""
Exception hierarchy for the BoothGuard verification service.

Scan outcomes (invalid, expired, duplicate) are result values, not
exceptions; only conditions where no decision can be made are raised.
"""

from __future__ import annotations


class BoothGuardError(Exception):
    """Base class for verification service errors."""


class StorageUnavailable(BoothGuardError):
    """The ledger or audit store could not be reached; nothing was decided."""


class RetriesExhausted(BoothGuardError):
    """Raised when every attempt of a retried scan hit an unavailable store."""
