"""
Token resolver for BoothGuard.

Maps a presented credential string to the voter and election it was
issued for. One resolver serves every credential type (QR payload,
RFID tag UID); the type is a lookup parameter, not a separate code path.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from booth_common.db.orm_models import ElectionORM, TokenORM, VoterORM
from booth_common.models.voter import CredentialType
from booth_common.utils import ensure_utc

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ResolvedToken:
    """Everything the rest of the pipeline needs about a matched token."""

    token_id: UUID
    voter_id: UUID
    election_id: UUID
    expires_at: datetime
    voter_display_name: str
    election_active: bool


class TokenResolver:
    """Exact-match lookup on the uniquely indexed ``tokens.token`` column."""

    async def resolve(
        self,
        session: AsyncSession,
        token: str,
        credential_type: CredentialType = CredentialType.QR,
    ) -> ResolvedToken | None:
        """Return the token's voter/election binding, or ``None`` if unknown.

        A token only resolves for the credential type it was issued as, so
        an RFID UID typed into the QR field does not match.
        """
        if not token:
            return None

        stmt = (
            select(
                TokenORM.token_id,
                TokenORM.voter_id,
                TokenORM.election_id,
                TokenORM.expires_at,
                VoterORM.display_name,
                ElectionORM.is_active,
            )
            .join(VoterORM, VoterORM.voter_id == TokenORM.voter_id)
            .join(ElectionORM, ElectionORM.election_id == TokenORM.election_id)
            .where(
                TokenORM.token == token,
                TokenORM.credential_type == credential_type.value,
            )
        )
        result = await session.execute(stmt)
        row = result.one_or_none()
        if row is None:
            logger.debug("token_not_found", credential_type=credential_type.value)
            return None

        return ResolvedToken(
            token_id=row.token_id,
            voter_id=row.voter_id,
            election_id=row.election_id,
            expires_at=ensure_utc(row.expires_at),
            voter_display_name=row.display_name,
            election_active=bool(row.is_active),
        )
