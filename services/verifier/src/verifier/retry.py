"""
Caller-side retry for BoothGuard scans.

Only ``STORAGE_UNAVAILABLE`` is retried, with exponential backoff
starting at ``initial_delay`` and doubling each attempt. Every other
outcome is a final answer and is returned as-is; in particular an
``ALREADY_VERIFIED`` scan is never repeated.
"""

from __future__ import annotations

import asyncio

import structlog

from booth_common.config import get_settings
from booth_common.models.verification import VerificationOutcome, VerificationResult
from booth_common.models.voter import CredentialType
from verifier.errors import RetriesExhausted
from verifier.service import VerificationService

logger = structlog.get_logger(__name__)


async def verify_with_backoff(
    service: VerificationService,
    token: str,
    source_ip: str | None = None,
    credential_type: CredentialType = CredentialType.QR,
    *,
    max_attempts: int | None = None,
    initial_delay: float | None = None,
    raise_on_exhaustion: bool = False,
) -> VerificationResult:
    """Run ``service.verify`` until the store answers or attempts run out.

    Args:
        service: The verification service.
        token: Presented credential string.
        source_ip: Scanner address for the audit trail.
        credential_type: How the credential was presented.
        max_attempts: Total attempts, including the first.  Defaults to
            ``Settings.storage_retry_attempts``.
        initial_delay: Seconds before the first retry.  Defaults to
            ``Settings.storage_retry_initial_delay_s``.
        raise_on_exhaustion: Raise ``RetriesExhausted`` instead of returning
            the last ``STORAGE_UNAVAILABLE`` result.

    Returns:
        The first decided result, or the last ``STORAGE_UNAVAILABLE`` one.

    Raises:
        RetriesExhausted: If *raise_on_exhaustion* and every attempt failed.
    """
    settings = get_settings()
    if max_attempts is None:
        max_attempts = settings.storage_retry_attempts
    delay = settings.storage_retry_initial_delay_s if initial_delay is None else initial_delay
    result = VerificationResult(outcome=VerificationOutcome.STORAGE_UNAVAILABLE)

    for attempt in range(1, max_attempts + 1):
        result = await service.verify(token, source_ip, credential_type)
        if result.outcome.is_decided:
            return result

        logger.warning(
            "verify_retry_storage_unavailable",
            attempt=attempt,
            max_attempts=max_attempts,
            delay_s=delay,
        )
        if attempt < max_attempts:
            await asyncio.sleep(delay)
            delay *= 2

    logger.error("verify_retry_exhausted", attempts=max_attempts)
    if raise_on_exhaustion:
        raise RetriesExhausted(f"Store unavailable after {max_attempts} attempts")
    return result
