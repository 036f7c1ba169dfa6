"""
Database connection and ORM utilities for BoothGuard.

This package provides the explicit ``Database`` storage handle, async
engine and session factory builders, ORM model definitions for the
voter, token, ledger and audit tables, and Alembic migration support.
"""

from booth_common.db.connection import (
    Database,
    build_engine,
    build_session_factory,
    is_sqlite,
)
from booth_common.db.orm_models import (
    AuditAnchorORM,
    AuditEntryORM,
    Base,
    ElectionORM,
    TokenORM,
    VerificationORM,
    VoterORM,
)

__all__ = [
    "AuditAnchorORM",
    "AuditEntryORM",
    "Base",
    "Database",
    "ElectionORM",
    "TokenORM",
    "VerificationORM",
    "VoterORM",
    "build_engine",
    "build_session_factory",
    "is_sqlite",
]
