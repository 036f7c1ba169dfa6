"""
FastAPI dependency injection providers for the BoothGuard API.

The storage handle and the verification service are built once in the
application lifespan and kept on ``app.state``; these providers hand
them to the routers.
"""

from __future__ import annotations

from typing import AsyncIterator

from fastapi import HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from booth_common.config import Settings, get_settings
from booth_common.db.connection import Database
from verifier.service import VerificationService


def get_database(request: Request) -> Database:
    """Return the process-wide storage handle."""
    database = getattr(request.app.state, "database", None)
    if database is None:
        raise HTTPException(status_code=503, detail="Database not configured")
    return database


async def get_db_session(request: Request) -> AsyncIterator[AsyncSession]:
    """Yield an ``AsyncSession`` from the app-level storage handle."""
    async with get_database(request).session() as session:
        yield session


def get_verification_service(request: Request) -> VerificationService:
    """Return the shared verification service from app state."""
    service = getattr(request.app.state, "verification_service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Verification service not ready")
    return service


def get_app_settings(request: Request) -> Settings:
    """Return the settings the app was built with."""
    return getattr(request.app.state, "settings", None) or get_settings()


def client_ip(request: Request, settings: Settings) -> str | None:
    """Best-effort scanner address for the audit trail."""
    if settings.trust_forwarded_for:
        forwarded = request.headers.get("X-Forwarded-For", "")
        if forwarded:
            return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None
