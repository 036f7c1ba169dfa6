"""Verify one scanned credential directly against the store.

Booth-side fallback when the HTTP service is not running: builds the
verification service in-process and retries while the store is
unavailable, using the ``BG_STORAGE_RETRY_*`` settings.

Usage:
    python scripts/scan.py VOTE_DEMO_99
    python scripts/scan.py 834D4CC5 --rfid
"""

from __future__ import annotations

import argparse
import asyncio
import sys

import structlog

from booth_common.config import get_settings
from booth_common.db.connection import Database
from booth_common.logging import configure_logging
from booth_common.models.voter import CredentialType
from verifier.retry import verify_with_backoff
from verifier.service import VerificationService

logger = structlog.get_logger("scan")


async def main(token: str, credential_type: CredentialType) -> int:
    settings = get_settings()
    configure_logging(settings.log_level, "console", "scan")
    database = Database(settings=settings)
    try:
        result = await verify_with_backoff(
            VerificationService(database),
            token,
            source_ip="local",
            credential_type=credential_type,
        )
    finally:
        await database.dispose()

    print(result.model_dump_json(indent=2))
    return 0 if result.success else 1


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("token", help="Scanned QR payload or RFID UID")
    parser.add_argument("--rfid", action="store_true", help="Treat the token as an RFID UID.")
    args = parser.parse_args()
    kind = CredentialType.RFID if args.rfid else CredentialType.QR
    sys.exit(asyncio.run(main(args.token, kind)))
