# crud/lead_history.py
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy import delete
from typing import Any, Dict, List
from uuid import UUID

from leadbook.models.change_record import ChangeRecord


# ---------------- CREATE ----------------
async def create_change_record(
    db: AsyncSession,
    lead_id: UUID,
    changed_by: UUID,
    diff: Dict[str, Any],
) -> ChangeRecord:
    record = ChangeRecord(
        lead_id=lead_id,
        changed_by=changed_by,
        diff=diff,
    )
    db.add(record)
    await db.flush()
    return record


# ---------------- READ ----------------
async def get_history_by_lead(db: AsyncSession, lead_id: UUID) -> List[ChangeRecord]:
    result = await db.execute(
        select(ChangeRecord)
        .where(ChangeRecord.lead_id == lead_id)
        .order_by(ChangeRecord.changed_at.desc())
    )
    return result.scalars().all()


# ---------------- DELETE ----------------
async def delete_history_for_lead(db: AsyncSession, lead_id: UUID) -> int:
    result = await db.execute(
        delete(ChangeRecord).where(ChangeRecord.lead_id == lead_id)
    )
    return result.rowcount
