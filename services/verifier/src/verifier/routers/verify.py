"""
Scan verification API router for BoothGuard.

Thin HTTP wrapper over ``VerificationService.verify``. The body is
always the serialised result; the status code tells scanners apart
"already voted" from a bad credential or an unreachable store.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response

from booth_common.config import Settings
from booth_common.models.verification import VerificationOutcome, VerificationResult
from verifier.dependencies import client_ip, get_app_settings, get_verification_service
from verifier.schemas import VerifyRequest
from verifier.service import VerificationService

router = APIRouter(tags=["verification"])

_STATUS_CODES: dict[VerificationOutcome, int] = {
    VerificationOutcome.SUCCESS: 200,
    VerificationOutcome.INVALID_TOKEN: 400,
    VerificationOutcome.TOKEN_EXPIRED: 400,
    VerificationOutcome.ALREADY_VERIFIED: 409,
    VerificationOutcome.STORAGE_UNAVAILABLE: 503,
}


@router.post("/verify", response_model=VerificationResult)
async def verify_scan(
    body: VerifyRequest,
    request: Request,
    response: Response,
    service: VerificationService = Depends(get_verification_service),
    settings: Settings = Depends(get_app_settings),
) -> VerificationResult:
    result = await service.verify(
        body.token,
        source_ip=client_ip(request, settings),
        credential_type=body.credential_type,
    )
    response.status_code = _STATUS_CODES[result.outcome]
    if result.outcome is VerificationOutcome.STORAGE_UNAVAILABLE:
        response.headers["Retry-After"] = "1"
    return result
