"""initial schema

Revision ID: 3f1c2a7be019
Revises:
Create Date: 2026-10-12 09:14:22.418207

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from booth_common.config import get_settings


# revision identifiers, used by Alembic.
revision: str = '3f1c2a7be019'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

credential_type_enum = sa.Enum("qr", "rfid", name="credential_type_enum")
audit_action_enum = sa.Enum(
    "VERIFY_SUCCESS", "VERIFY_FAIL", "ALREADY_VERIFIED",
    name="audit_action_enum",
)

_JSON = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")
_BIGINT_PK = sa.BigInteger().with_variant(sa.Integer(), "sqlite")

_APPEND_ONLY = "audit_entries, audit_anchors, verifications"


def _restrict_append_only() -> None:
    # REVOKE never binds the table owner, so the service must connect as
    # BG_DB_APP_ROLE rather than the role that runs migrations.
    op.execute(f"REVOKE UPDATE, DELETE ON {_APPEND_ONLY} FROM PUBLIC")
    role = get_settings().db_app_role
    if role:
        op.execute(f"REVOKE UPDATE, DELETE, TRUNCATE ON {_APPEND_ONLY} FROM {role}")
        op.execute(f"GRANT SELECT, INSERT ON {_APPEND_ONLY} TO {role}")


def upgrade() -> None:
    op.create_table(
        "voters",
        sa.Column("voter_id", sa.Uuid, primary_key=True),
        sa.Column("display_name", sa.String(255), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "elections",
        sa.Column("election_id", sa.Uuid, primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "tokens",
        sa.Column("token_id", sa.Uuid, primary_key=True),
        sa.Column("token", sa.String(255), nullable=False),
        sa.Column("credential_type", credential_type_enum, nullable=False, server_default="qr"),
        sa.Column("voter_id", sa.Uuid, sa.ForeignKey("voters.voter_id"), nullable=False),
        sa.Column("election_id", sa.Uuid, sa.ForeignKey("elections.election_id"), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("issued_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_tokens_token", "tokens", ["token"], unique=True)

    op.create_table(
        "verifications",
        sa.Column("verification_id", sa.Uuid, primary_key=True),
        sa.Column("voter_id", sa.Uuid, sa.ForeignKey("voters.voter_id"), nullable=False),
        sa.Column("election_id", sa.Uuid, sa.ForeignKey("elections.election_id"), nullable=False),
        sa.Column("token_id", sa.Uuid, sa.ForeignKey("tokens.token_id"), nullable=True),
        sa.Column("verified_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("voter_id", "election_id", name="uq_verifications_voter_election"),
    )

    op.create_table(
        "audit_entries",
        sa.Column("entry_id", _BIGINT_PK, primary_key=True, autoincrement=True),
        sa.Column("action", audit_action_enum, nullable=False),
        sa.Column("subject_ref", sa.String(255), nullable=False),
        sa.Column("detail", _JSON, nullable=False),
        sa.Column("source_ip", sa.String(64), nullable=True),
        sa.Column("recorded_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("entry_hash", sa.String(64), nullable=False),
    )
    op.create_index("ix_audit_entries_action", "audit_entries", ["action"])
    op.create_index("ix_audit_entries_recorded_at", "audit_entries", ["recorded_at"])

    op.create_table(
        "audit_anchors",
        sa.Column("anchor_id", _BIGINT_PK, primary_key=True, autoincrement=True),
        sa.Column("merkle_root", sa.String(64), nullable=False),
        sa.Column("entry_count", sa.Integer, nullable=False),
        sa.Column("first_entry_id", sa.BigInteger, nullable=False),
        sa.Column("last_entry_id", sa.BigInteger, nullable=False),
        sa.Column("anchored_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    if op.get_context().dialect.name == "postgresql":
        _restrict_append_only()


def downgrade() -> None:
    op.drop_table("audit_anchors")
    op.drop_index("ix_audit_entries_recorded_at", table_name="audit_entries")
    op.drop_index("ix_audit_entries_action", table_name="audit_entries")
    op.drop_table("audit_entries")
    op.drop_table("verifications")
    op.drop_index("ix_tokens_token", table_name="tokens")
    op.drop_table("tokens")
    op.drop_table("elections")
    op.drop_table("voters")

    bind = op.get_bind()
    audit_action_enum.drop(bind, checkfirst=True)
    credential_type_enum.drop(bind, checkfirst=True)
