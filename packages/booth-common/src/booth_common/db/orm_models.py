"""
SQLAlchemy ORM models for BoothGuard.

Defines the table mappings for voters, elections, issued tokens, the
verification ledger, the append-only audit trail and its Merkle anchors
using SQLAlchemy 2.0 declarative style with ``mapped_column``.

Column types are the portable SQLAlchemy generics with PostgreSQL
variants where it matters, so the same metadata runs on PostgreSQL in
production and on SQLite for kiosks and tests.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def _utc_now() -> datetime:
    """Return timezone-aware UTC now for column defaults."""
    return datetime.now(timezone.utc)


# ── Base class ──


class Base(DeclarativeBase):
    """Declarative base for all BoothGuard ORM models."""


# ── Portable column types ──

# SQLite only auto-increments an ``INTEGER PRIMARY KEY``.
BIGINT_PK = BigInteger().with_variant(Integer(), "sqlite")
JSON_DOC = JSON().with_variant(JSONB(), "postgresql")

# ── Enum values (mirroring Pydantic enums) ──

CREDENTIAL_TYPE_ENUM = Enum(
    "qr", "rfid",
    name="credential_type_enum",
)
AUDIT_ACTION_ENUM = Enum(
    "VERIFY_SUCCESS", "VERIFY_FAIL", "ALREADY_VERIFIED",
    name="audit_action_enum",
)


# ── ORM models ──


class VoterORM(Base):
    """ORM model for the ``voters`` table (written by registration)."""

    __tablename__ = "voters"

    voter_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4,
    )
    display_name: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utc_now,
    )


class ElectionORM(Base):
    """ORM model for the ``elections`` table (written by administrators)."""

    __tablename__ = "elections"

    election_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utc_now,
    )


class TokenORM(Base):
    """ORM model for the ``tokens`` table.

    One row per issued credential; ``token`` is globally unique and is the
    only lookup key the resolver uses.
    """

    __tablename__ = "tokens"

    token_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4,
    )
    token: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    credential_type: Mapped[str] = mapped_column(
        CREDENTIAL_TYPE_ENUM, nullable=False, default="qr",
    )
    voter_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("voters.voter_id"), nullable=False,
    )
    election_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("elections.election_id"), nullable=False,
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    issued_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utc_now,
    )


class VerificationORM(Base):
    """ORM model for the insert-only ``verifications`` ledger.

    ``uq_verifications_voter_election`` is the at-most-once guarantee:
    a voter can be verified once per election, whatever the caller does.
    """

    __tablename__ = "verifications"
    __table_args__ = (
        UniqueConstraint("voter_id", "election_id", name="uq_verifications_voter_election"),
    )

    verification_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4,
    )
    voter_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("voters.voter_id"), nullable=False,
    )
    election_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("elections.election_id"), nullable=False,
    )
    token_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("tokens.token_id"), nullable=True,
    )
    verified_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utc_now,
    )


class AuditEntryORM(Base):
    """ORM model for the append-only ``audit_entries`` table.

    ``entry_id`` doubles as the insertion-order surrogate used to
    reconstruct the timeline.
    """

    __tablename__ = "audit_entries"

    entry_id: Mapped[int] = mapped_column(
        BIGINT_PK, primary_key=True, autoincrement=True,
    )
    action: Mapped[str] = mapped_column(AUDIT_ACTION_ENUM, nullable=False, index=True)
    subject_ref: Mapped[str] = mapped_column(String(255), nullable=False)
    detail: Mapped[dict] = mapped_column(JSON_DOC, nullable=False, default=dict)
    source_ip: Mapped[str | None] = mapped_column(String(64), nullable=True)
    recorded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utc_now, index=True,
    )
    entry_hash: Mapped[str] = mapped_column(String(64), nullable=False)


class AuditAnchorORM(Base):
    """ORM model for the append-only ``audit_anchors`` table."""

    __tablename__ = "audit_anchors"

    anchor_id: Mapped[int] = mapped_column(
        BIGINT_PK, primary_key=True, autoincrement=True,
    )
    merkle_root: Mapped[str] = mapped_column(String(64), nullable=False)
    entry_count: Mapped[int] = mapped_column(Integer, nullable=False)
    first_entry_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    last_entry_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    anchored_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utc_now,
    )
