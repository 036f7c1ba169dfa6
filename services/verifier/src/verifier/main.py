"""
Verification service entry point for BoothGuard.

Builds the storage handle and verification service at start-up, starts
the audit anchorer, registers routers and middleware, and exposes the
health and Prometheus metrics endpoints.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

import structlog
import uvicorn
from fastapi import FastAPI
from prometheus_client import make_asgi_app

from booth_common.config import Settings, get_settings
from booth_common.db.connection import Database
from booth_common.logging import configure_logging
from verifier import metrics
from verifier.anchorer import AuditAnchorer
from verifier.middleware.auth import AuthMiddleware
from verifier.middleware.logging import LoggingMiddleware
from verifier.routers import audit, health, verify
from verifier.service import VerificationService

logger = structlog.get_logger(__name__)


def create_app(
    settings: Settings | None = None,
    database: Database | None = None,
    *,
    run_anchorer: bool = True,
) -> FastAPI:
    """Build the FastAPI application.

    Args:
        settings: Configuration; ``get_settings()`` if omitted.
        database: Pre-built storage handle.  When given, the caller owns
            its lifecycle and the app does not dispose it.
        run_anchorer: Start the periodic audit anchorer in the lifespan.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Manage startup / shutdown of the storage handle and anchorer."""
        configure_logging(settings.log_level, settings.log_format, settings.service_name)
        owns_database = database is None
        db = database or Database(settings=settings)
        if settings.db_auto_create:
            await db.create_schema()

        app.state.database = db
        app.state.verification_service = VerificationService(db)

        anchorer: AuditAnchorer | None = None
        if run_anchorer:
            anchorer = AuditAnchorer(
                db,
                interval_s=settings.audit_anchor_interval_s,
                settle_s=settings.audit_anchor_settle_s,
                on_anchor=metrics.audit_anchors_total.inc,
            )
            anchorer.start()

        logger.info("verifier_service_starting", dialect=db.dialect_name)
        try:
            yield
        finally:
            logger.info("verifier_service_stopping")
            if anchorer is not None:
                await anchorer.stop()
            if owns_database:
                await db.dispose()

    app = FastAPI(
        title="BoothGuard Verifier",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.database = None
    app.state.verification_service = None

    api_prefix = "/api/v1"
    app.include_router(verify.router, prefix=api_prefix)
    app.include_router(audit.router, prefix=api_prefix)
    app.include_router(health.router)

    app.mount("/metrics", make_asgi_app())

    # ── Middleware (last added runs first) ──
    app.add_middleware(AuthMiddleware, api_key=settings.api_key)
    app.add_middleware(LoggingMiddleware)

    return app


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    settings = get_settings()
    uvicorn.run(
        create_app(settings),
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
