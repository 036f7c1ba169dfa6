"""
Expiry gate for BoothGuard.

Pure comparison of a token's validity window against the request's
clock reading.
"""

from __future__ import annotations

import enum
from datetime import datetime

from booth_common.utils import ensure_utc


class ExpiryStatus(str, enum.Enum):
    VALID = "VALID"
    EXPIRED = "EXPIRED"


def check(expires_at: datetime, now: datetime) -> ExpiryStatus:
    """Return ``EXPIRED`` when *now* is strictly past *expires_at*.

    A token presented at exactly its expiry instant is still valid.
    """
    if ensure_utc(now) > ensure_utc(expires_at):
        return ExpiryStatus.EXPIRED
    return ExpiryStatus.VALID
