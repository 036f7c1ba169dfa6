"""Print the most recent BoothGuard audit entries.

Usage:
    python scripts/check_logs.py [--limit 5]
"""

from __future__ import annotations

import argparse
import asyncio
import json

from sqlalchemy import select

from booth_common.db.connection import Database
from booth_common.db.orm_models import AuditEntryORM


async def main(limit: int) -> None:
    database = Database()
    try:
        async with database.session() as session:
            rows = (
                await session.execute(
                    select(AuditEntryORM).order_by(AuditEntryORM.entry_id.desc()).limit(limit),
                )
            ).scalars().all()
    finally:
        await database.dispose()

    print(f"Last {len(rows)} audit entries:")
    for row in rows:
        print(
            json.dumps(
                {
                    "entry_id": row.entry_id,
                    "action": row.action,
                    "subject_ref": row.subject_ref,
                    "detail": row.detail,
                    "source_ip": row.source_ip,
                    "recorded_at": row.recorded_at.isoformat(),
                },
                indent=2,
            ),
        )


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--limit", type=int, default=5)
    asyncio.run(main(parser.parse_args().limit))
