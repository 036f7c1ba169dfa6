"""Initialize the BoothGuard database schema and seed a demo voter.

Creates every table, then registers one voter, one active election and
one QR token valid for 24 hours so a booth can be tested end to end.

Usage:
    python scripts/init_db.py [--no-seed]
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from datetime import timedelta

import structlog
from sqlalchemy import select

from booth_common.config import get_settings
from booth_common.db.connection import Database
from booth_common.db.orm_models import ElectionORM, TokenORM, VoterORM
from booth_common.logging import configure_logging
from booth_common.utils import utc_now

logger = structlog.get_logger("init_db")

DEMO_TOKEN = "VOTE_DEMO_99"
DEMO_RFID = "834D4CC5"


async def seed(database: Database) -> None:
    async with database.session() as session:
        existing = (
            await session.execute(select(TokenORM.token_id).where(TokenORM.token == DEMO_TOKEN))
        ).scalar_one_or_none()
        if existing is not None:
            logger.info("demo_seed_skipped", reason="already_present", token=DEMO_TOKEN)
            return

        voter = VoterORM(display_name="Demo Voter")
        election = ElectionORM(name="Demo Election", is_active=True)
        session.add_all([voter, election])
        await session.flush()

        expires_at = utc_now() + timedelta(hours=24)
        session.add_all(
            [
                TokenORM(
                    token=DEMO_TOKEN,
                    credential_type="qr",
                    voter_id=voter.voter_id,
                    election_id=election.election_id,
                    expires_at=expires_at,
                ),
                TokenORM(
                    token=DEMO_RFID,
                    credential_type="rfid",
                    voter_id=voter.voter_id,
                    election_id=election.election_id,
                    expires_at=expires_at,
                ),
            ],
        )
        await session.commit()
        logger.info(
            "demo_seeded",
            voter_id=str(voter.voter_id),
            election_id=str(election.election_id),
            token=DEMO_TOKEN,
            rfid=DEMO_RFID,
        )


async def main(with_seed: bool) -> int:
    settings = get_settings()
    configure_logging(settings.log_level, "console", "init_db")
    database = Database(settings=settings)
    try:
        await database.create_schema()
        if with_seed:
            await seed(database)
    except Exception:
        logger.exception("init_db_failed")
        return 1
    finally:
        await database.dispose()
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--no-seed", action="store_true", help="Only create tables.")
    args = parser.parse_args()
    sys.exit(asyncio.run(main(with_seed=not args.no_seed)))
