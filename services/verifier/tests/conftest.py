"""Shared fixtures for verifier service tests."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

import httpx
import pytest
from fastapi import FastAPI
from sqlalchemy import select

from booth_common.config import Settings
from booth_common.db.connection import Database
from booth_common.db.orm_models import AuditEntryORM, VerificationORM
from verifier.main import create_app
from verifier.service import VerificationService


@pytest.fixture()
def service(database: Database, clock) -> VerificationService:
    return VerificationService(database, clock=clock)


def _build_app(settings: Settings, database: Database, service: VerificationService) -> FastAPI:
    """App with state populated directly; ASGITransport does not run the lifespan."""
    app = create_app(settings, database, run_anchorer=False)
    app.state.database = database
    app.state.verification_service = service
    return app


@pytest.fixture()
def app(settings: Settings, database: Database, service: VerificationService) -> FastAPI:
    return _build_app(settings, database, service)


@pytest.fixture()
async def client(app: FastAPI) -> AsyncIterator[httpx.AsyncClient]:
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://booth.test") as c:
        yield c


@pytest.fixture()
def make_client(database: Database, service: VerificationService):
    """Client factory for apps built with non-default settings."""

    @asynccontextmanager
    async def _make(settings: Settings) -> AsyncIterator[httpx.AsyncClient]:
        transport = httpx.ASGITransport(app=_build_app(settings, database, service))
        async with httpx.AsyncClient(transport=transport, base_url="http://booth.test") as c:
            yield c

    return _make


@pytest.fixture()
def fetch_audit(database: Database):
    """Return every audit entry in insertion order."""

    async def _fetch() -> list[AuditEntryORM]:
        async with database.session() as session:
            result = await session.execute(select(AuditEntryORM).order_by(AuditEntryORM.entry_id))
            return list(result.scalars().all())

    return _fetch


@pytest.fixture()
def fetch_verifications(database: Database):
    """Return every verification row."""

    async def _fetch() -> list[VerificationORM]:
        async with database.session() as session:
            return list((await session.execute(select(VerificationORM))).scalars().all())

    return _fetch
