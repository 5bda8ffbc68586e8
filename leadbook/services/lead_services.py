import logging
import math
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from leadbook.core.errors import Conflict, Forbidden, NotFound, ValidationFailed
from leadbook.crud import lead as crud_lead
from leadbook.crud import lead_history as crud_history
from leadbook.models import Lead, User
from leadbook.schemas.lead import (
    ChangeRecordOut,
    LeadDetail,
    LeadFilterParams,
    LeadListResponse,
    LeadOut,
    LeadUpdate,
)
from leadbook.schemas.lead_import import ImportResponse
from leadbook.services.change_history import ChangeRecorder
from leadbook.services.lead_csv import export_leads_csv
from leadbook.services.lead_import import LeadImportPipeline
from leadbook.services.lead_validation import budget_order_errors, lead_columns, validate_lead
from leadbook.services.rate_limit import CREATE_LIMIT, UPDATE_LIMIT, RateLimiter

logger = logging.getLogger(__name__)

PAGE_SIZE = 10

STALE_MESSAGE = "Record has been updated by another user. Please refresh and try again."


class LeadServices:

    @staticmethod
    async def _get_owned_lead(db: AsyncSession, lead_id: UUID, user_id: UUID) -> Lead:
        lead = await crud_lead.get_lead_by_id(db, lead_id)
        if not lead:
            raise NotFound("Lead not found")
        if lead.owner_id != user_id:
            raise Forbidden("You can only modify your own leads")
        return lead

    @staticmethod
    async def create_lead_service(payload: Any, user: User, db: AsyncSession, limiter: RateLimiter) -> LeadOut:
        """
        Create a lead owned by the caller.

        Workflow:
        1. Throttle: 5 creations per 60 s per user.
        2. Validate the payload with the strict (JSON) validator.
        3. Insert the lead and its "created" ChangeRecord, then commit both.

        Raises:
            RateLimited, ValidationFailed
        """
        user_id = user.id
        await limiter.enforce(f"create-lead:{user_id}", *CREATE_LIMIT)

        data = validate_lead(payload)

        lead = await crud_lead.create_lead(db, lead_columns(data), user_id)
        await ChangeRecorder.record_created(db, lead, user_id)
        await db.commit()

        logger.info("Lead %s created by %s", lead.id, user_id)
        return LeadOut.model_validate(lead)

    @staticmethod
    async def get_lead_service(lead_id: UUID, db: AsyncSession) -> LeadDetail:
        lead = await crud_lead.get_lead_by_id(db, lead_id)
        if not lead:
            raise NotFound("Lead not found")
        history = await crud_history.get_history_by_lead(db, lead_id)
        return LeadDetail(
            **LeadOut.model_validate(lead).model_dump(),
            history=[ChangeRecordOut.model_validate(entry) for entry in history],
        )

    @staticmethod
    async def list_leads_service(params: LeadFilterParams, page: int, db: AsyncSession) -> LeadListResponse:
        items, total = await crud_lead.list_leads(db, params, page, PAGE_SIZE)
        return LeadListResponse(
            items=[LeadOut.model_validate(lead) for lead in items],
            total=total,
            page=page,
            page_size=PAGE_SIZE,
            total_pages=math.ceil(total / PAGE_SIZE),
        )

    @staticmethod
    async def update_lead_service(
        lead_id: UUID,
        payload: Any,
        user: User,
        db: AsyncSession,
        limiter: RateLimiter,
    ) -> LeadOut:
        """
        Update a lead the caller owns, guarded by its version token.

        Workflow:
        1. Throttle: 10 updates per 60 s per user.
        2. Validate the payload (strict fields + `updatedAt`).
        3. 404 when the lead is unknown, 403 when the caller is not its owner,
           409 when `updatedAt` is not the stored token.
        4. Write only the supplied fields; omitted optional fields keep their
           stored values. bhk is cleared for property types that take none,
           and the budget ordering is rechecked on the merged record.
        5. The UPDATE is conditional on the observed token, so of two writers
           holding the same token only the first succeeds; the token advances.
        6. Append an "updated" ChangeRecord with the changed fields (none when
           nothing changed) and commit it with the write.

        Raises:
            RateLimited, ValidationFailed, NotFound, Forbidden, Conflict
        """
        user_id = user.id
        await limiter.enforce(f"update-lead:{user_id}", *UPDATE_LIMIT)

        data = validate_lead(payload, model=LeadUpdate)

        lead = await LeadServices._get_owned_lead(db, lead_id, user_id)
        if lead.updated_at != data.updated_at:
            raise Conflict(STALE_MESSAGE)

        fields = set(data.model_fields_set) - {"updated_at"}
        if not data.property_type.requires_bhk:
            fields.add("bhk")
        values = lead_columns(data, fields)

        errors = budget_order_errors(
            values.get("budget_min", lead.budget_min),
            values.get("budget_max", lead.budget_max),
        )
        if errors:
            raise ValidationFailed(errors)

        changes = ChangeRecorder.compute_changes(lead, data, fields)

        new_token = await crud_lead.update_lead_if_current(db, lead_id, data.updated_at, values)
        if new_token is None:
            await db.rollback()
            raise Conflict(STALE_MESSAGE)

        await ChangeRecorder.record_updated(db, lead_id, changes, user_id)
        await db.commit()
        await db.refresh(lead)

        logger.info("Lead %s updated by %s (%d fields changed)", lead_id, user_id, len(changes))
        return LeadOut.model_validate(lead)

    @staticmethod
    async def delete_lead_service(lead_id: UUID, user: User, db: AsyncSession) -> dict:
        user_id = user.id
        await LeadServices._get_owned_lead(db, lead_id, user_id)

        # history goes with the lead
        await crud_history.delete_history_for_lead(db, lead_id)
        await crud_lead.delete_lead(db, lead_id)
        await db.commit()

        logger.info("Lead %s deleted by %s", lead_id, user_id)
        return {"message": "Lead deleted successfully"}

    @staticmethod
    async def export_leads_service(params: LeadFilterParams, db: AsyncSession) -> str:
        leads = await crud_lead.list_all_leads(db, params)
        return export_leads_csv(leads)

    @staticmethod
    async def import_leads_service(rows: Any, user: User, db: AsyncSession) -> ImportResponse:
        return await LeadImportPipeline.run(db, rows, user.id)
