"""
Audit trail API router for BoothGuard.

Read-only endpoints: the most recent audit entries, and integrity
verification of a single entry against its stored hash and the Merkle
anchor that covers it.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from booth_common.config import Settings
from booth_common.db.orm_models import AuditAnchorORM, AuditEntryORM
from booth_common.models.audit import AuditAction
from verifier.audit_recorder import compute_entry_hash
from verifier.dependencies import get_app_settings, get_db_session
from verifier.merkle import build_merkle_proof, root_from_proof
from verifier.schemas import AuditEntryListResponse, AuditEntrySummary, AuditVerifyResponse

router = APIRouter(prefix="/audit", tags=["audit"])


@router.get("/entries", response_model=AuditEntryListResponse)
async def list_entries(
    action: Optional[AuditAction] = Query(None),
    limit: int = Query(50, ge=1),
    db: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_app_settings),
) -> AuditEntryListResponse:
    limit = min(limit, settings.audit_list_max_limit)

    stmt = select(AuditEntryORM)
    count_stmt = select(func.count()).select_from(AuditEntryORM)
    if action is not None:
        stmt = stmt.where(AuditEntryORM.action == action.value)
        count_stmt = count_stmt.where(AuditEntryORM.action == action.value)

    rows = (await db.execute(stmt.order_by(AuditEntryORM.entry_id.desc()).limit(limit))).scalars().all()
    total = (await db.execute(count_stmt)).scalar_one()

    return AuditEntryListResponse(
        entries=[AuditEntrySummary.model_validate(r) for r in rows],
        total=total,
    )


@router.get("/verify/{entry_id}", response_model=AuditVerifyResponse)
async def verify_entry(
    entry_id: int,
    db: AsyncSession = Depends(get_db_session),
) -> AuditVerifyResponse:
    entry = (
        await db.execute(select(AuditEntryORM).where(AuditEntryORM.entry_id == entry_id))
    ).scalar_one_or_none()
    if entry is None:
        raise HTTPException(status_code=404, detail="Audit entry not found")

    recomputed = compute_entry_hash(
        entry.action, entry.subject_ref, entry.detail, entry.source_ip, entry.recorded_at,
    )
    hash_matches = recomputed == entry.entry_hash

    anchor = (
        await db.execute(
            select(AuditAnchorORM).where(
                AuditAnchorORM.first_entry_id <= entry_id,
                AuditAnchorORM.last_entry_id >= entry_id,
            ),
        )
    ).scalar_one_or_none()

    if anchor is None:
        return AuditVerifyResponse(
            entry_id=entry_id,
            entry_hash=entry.entry_hash,
            hash_matches=hash_matches,
        )

    range_rows = (
        await db.execute(
            select(AuditEntryORM.entry_id, AuditEntryORM.entry_hash)
            .where(
                AuditEntryORM.entry_id >= anchor.first_entry_id,
                AuditEntryORM.entry_id <= anchor.last_entry_id,
            )
            .order_by(AuditEntryORM.entry_id.asc()),
        )
    ).all()
    ids = [r.entry_id for r in range_rows]
    hashes = [r.entry_hash for r in range_rows]

    proof = build_merkle_proof(hashes, ids.index(entry_id))
    root_matches = root_from_proof(recomputed, proof) == anchor.merkle_root

    return AuditVerifyResponse(
        entry_id=entry_id,
        entry_hash=entry.entry_hash,
        hash_matches=hash_matches,
        anchor_id=anchor.anchor_id,
        merkle_root=anchor.merkle_root,
        merkle_proof=proof,
        verified=hash_matches and root_matches and len(hashes) == anchor.entry_count,
        anchored_at=anchor.anchored_at,
    )
