# crud/lead.py
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, delete, func, or_
from uuid import UUID
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple

from leadbook.models.lead import Lead
from leadbook.schemas.lead import LeadFilterParams


# --- Insert Lead ---
async def create_lead(db: AsyncSession, lead_data: Dict[str, Any], owner_id: UUID) -> Lead:
    now = datetime.utcnow()
    new_lead = Lead(
        **lead_data,
        owner_id=owner_id,
        created_at=now,
        updated_at=now,
    )
    db.add(new_lead)
    await db.flush()
    return new_lead


# --- Fetch Lead by ID ---
async def get_lead_by_id(db: AsyncSession, lead_id: UUID) -> Optional[Lead]:
    result = await db.execute(select(Lead).where(Lead.id == lead_id))
    return result.scalar_one_or_none()


# --- Filters shared by listing and export ---
def build_lead_filters(params: LeadFilterParams) -> list:
    filters = []
    if params.search:
        term = params.search.lower()
        filters.append(
            or_(
                func.lower(Lead.full_name).contains(term, autoescape=True),
                func.lower(Lead.email).contains(term, autoescape=True),
                Lead.phone.contains(params.search, autoescape=True),
            )
        )
    if params.city:
        filters.append(Lead.city == params.city.value)
    if params.property_type:
        filters.append(Lead.property_type == params.property_type.value)
    if params.status:
        filters.append(Lead.status == params.status.value)
    if params.timeline:
        filters.append(Lead.timeline == params.timeline.value)
    return filters


# --- Paginated listing, newest update first ---
async def list_leads(
    db: AsyncSession,
    params: LeadFilterParams,
    page: int,
    page_size: int,
) -> Tuple[List[Lead], int]:
    filters = build_lead_filters(params)

    total = (
        await db.execute(select(func.count()).select_from(Lead).where(*filters))
    ).scalar_one()

    result = await db.execute(
        select(Lead)
        .where(*filters)
        .order_by(Lead.updated_at.desc(), Lead.id)
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    return result.scalars().all(), total


async def list_all_leads(db: AsyncSession, params: LeadFilterParams) -> List[Lead]:
    result = await db.execute(
        select(Lead)
        .where(*build_lead_filters(params))
        .order_by(Lead.updated_at.desc(), Lead.id)
    )
    return result.scalars().all()


# --- Conditional update on the observed version token ---
async def update_lead_if_current(
    db: AsyncSession,
    lead_id: UUID,
    expected_updated_at: datetime,
    values: Dict[str, Any],
) -> Optional[datetime]:
    """Returns the new token, or None when the stored token no longer matches."""
    new_token = datetime.utcnow()
    if new_token <= expected_updated_at:
        # keep the token strictly increasing even on a coarse clock
        new_token = expected_updated_at + timedelta(microseconds=1)
    result = await db.execute(
        update(Lead)
        .where(Lead.id == lead_id, Lead.updated_at == expected_updated_at)
        .values(**values, updated_at=new_token)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        return None
    return new_token


# --- Delete Lead ---
async def delete_lead(db: AsyncSession, lead_id: UUID) -> bool:
    result = await db.execute(delete(Lead).where(Lead.id == lead_id))
    return result.rowcount > 0
