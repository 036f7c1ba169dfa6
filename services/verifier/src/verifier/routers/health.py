"""
Health check API router for BoothGuard.

Liveness plus a database round trip; scanners use it to decide whether
to queue scans locally.
"""

from __future__ import annotations

from fastapi import APIRouter, Request
from pydantic import BaseModel

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    status: str
    services: dict[str, str]


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    services: dict[str, str] = {}

    database = getattr(request.app.state, "database", None)
    if database is None:
        services["database"] = "not_configured"
    elif await database.ping():
        services["database"] = "healthy"
    else:
        services["database"] = "unhealthy"

    overall = "healthy" if all(
        v in ("healthy", "not_configured") for v in services.values()
    ) else "degraded"

    return HealthResponse(status=overall, services=services)
