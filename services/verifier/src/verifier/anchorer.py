"""
Audit-trail anchorer for BoothGuard.

Periodically folds the hashes of newly appended audit entries into a
Merkle root and appends it to ``audit_anchors``, so that any later edit
or deletion of an anchored entry is detectable.

Entries younger than ``settle_s`` are left for the next run: ids are
assigned before commit, so a slow transaction can land an entry with a
lower id after a faster one. An anchor only covers the contiguous run of
settled entries from the last anchored id; it stops at the first entry
still inside the window, whatever the timestamps of later ids.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from datetime import datetime, timedelta
from typing import Callable

import structlog
from sqlalchemy import Row, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from booth_common.db.connection import Database
from booth_common.db.orm_models import AuditAnchorORM, AuditEntryORM
from booth_common.utils import ensure_utc, utc_now
from verifier.merkle import build_merkle_root

logger = structlog.get_logger(__name__)

DEFAULT_INTERVAL_S = 60
DEFAULT_SETTLE_S = 5


def _settled_prefix(rows: Sequence[Row], cutoff: datetime) -> list[Row]:
    """Return the leading rows recorded at or before *cutoff*.

    *rows* must be in ``entry_id`` order.
    """
    prefix: list[Row] = []
    for row in rows:
        if ensure_utc(row.recorded_at) > cutoff:
            break
        prefix.append(row)
    return prefix


class AuditAnchorer:
    """Periodically anchors audit-entry hashes into Merkle roots.

    Parameters
    ----------
    database:
        Storage handle.
    interval_s:
        Interval between anchor runs (default 60 s).
    settle_s:
        Minimum entry age before it is anchored (default 5 s).
    on_anchor:
        Sync callable invoked after each written anchor (e.g. a metric).
    """

    def __init__(
        self,
        database: Database,
        interval_s: float = DEFAULT_INTERVAL_S,
        settle_s: float = DEFAULT_SETTLE_S,
        on_anchor: Callable[[], None] | None = None,
    ) -> None:
        self._database = database
        self._interval = interval_s
        self._settle = timedelta(seconds=settle_s)
        self._on_anchor = on_anchor
        self._stopping = asyncio.Event()
        self._task: asyncio.Task[None] | None = None

    # ------------------------------------------------------------------
    # Core anchor logic
    # ------------------------------------------------------------------

    async def anchor(self) -> AuditAnchorORM | None:
        """Collect new entry hashes and write a Merkle-root anchor.

        Returns ``None`` when the first entry after the last anchor is
        still inside the settle window, or there is none.
        """
        async with self._database.session() as session:
            try:
                last_entry_id = await self._last_anchored_entry_id(session)

                stmt = (
                    select(
                        AuditEntryORM.entry_id,
                        AuditEntryORM.entry_hash,
                        AuditEntryORM.recorded_at,
                    )
                    .where(AuditEntryORM.entry_id > last_entry_id)
                    .order_by(AuditEntryORM.entry_id.asc())
                )
                rows = _settled_prefix(
                    (await session.execute(stmt)).all(),
                    utc_now() - self._settle,
                )

                if not rows:
                    await session.rollback()
                    logger.debug("audit_anchor_skip", reason="no_new_entries")
                    return None

                merkle_root = build_merkle_root([r.entry_hash for r in rows])
                anchor = AuditAnchorORM(
                    merkle_root=merkle_root,
                    entry_count=len(rows),
                    first_entry_id=rows[0].entry_id,
                    last_entry_id=rows[-1].entry_id,
                    anchored_at=utc_now(),
                )
                session.add(anchor)
                await session.commit()
            except Exception:
                await session.rollback()
                logger.exception("audit_anchor_failed")
                raise

        if self._on_anchor is not None:
            self._on_anchor()
        logger.info(
            "audit_anchor_written",
            anchor_id=anchor.anchor_id,
            merkle_root=merkle_root,
            entry_count=anchor.entry_count,
            first_entry_id=anchor.first_entry_id,
            last_entry_id=anchor.last_entry_id,
        )
        return anchor

    async def _last_anchored_entry_id(self, session: AsyncSession) -> int:
        """Return the highest entry id covered by any anchor, or 0."""
        result = await session.execute(select(func.max(AuditAnchorORM.last_entry_id)))
        return result.scalar_one_or_none() or 0

    # ------------------------------------------------------------------
    # Periodic runner
    # ------------------------------------------------------------------

    async def run_periodic(self) -> None:
        """Run the anchor loop every ``interval_s`` seconds until stopped."""
        while not self._stopping.is_set():
            try:
                await self.anchor()
            except Exception:
                logger.exception("periodic_anchor_error")
            try:
                await asyncio.wait_for(self._stopping.wait(), timeout=self._interval)
            except asyncio.TimeoutError:
                pass

    def start(self) -> None:
        """Launch the periodic task on the running event loop."""
        self._stopping.clear()
        self._task = asyncio.ensure_future(self.run_periodic())

    async def stop(self) -> None:
        """Signal the loop to stop and wait for the current run to finish."""
        self._stopping.set()
        if self._task is not None:
            await self._task
            self._task = None
