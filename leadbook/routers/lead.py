from datetime import date
from typing import Any, Optional
from fastapi import APIRouter, Body, Depends, HTTPException, Query, Request, Response
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession
from uuid import UUID
import logging
import traceback

from leadbook.core.errors import INTERNAL_ERROR, LeadbookError, ValidationFailed, field_error
from leadbook.db.session import get_db
from leadbook.models import User
from leadbook.schemas.lead import LeadDetail, LeadFilterParams, LeadListResponse, LeadOut, PageParams
from leadbook.schemas.lead_import import ImportResponse
from leadbook.services.lead_csv import export_filename, parse_csv_rows, template_csv
from leadbook.services.lead_services import LeadServices
from leadbook.services.lead_validation import errors_from_pydantic
from leadbook.services.rate_limit import RateLimiter, get_rate_limiter
from leadbook.services.session import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/leads", tags=["Leads"])


def _internal_error(where: str, e: Exception) -> HTTPException:
    logger.error("Error in %s: %s\n%s", where, e, traceback.format_exc())
    return HTTPException(status_code=500, detail=INTERNAL_ERROR)


def _csv_response(content: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


# --- Query filters shared by listing and export ---
def get_lead_filters(
    search: Optional[str] = None,
    city: Optional[str] = None,
    property_type: Optional[str] = Query(None, alias="propertyType"),
    status: Optional[str] = None,
    timeline: Optional[str] = None,
) -> LeadFilterParams:
    try:
        return LeadFilterParams.model_validate({
            "search": search,
            "city": city,
            "propertyType": property_type,
            "status": status,
            "timeline": timeline,
        })
    except ValidationError as e:
        raise ValidationFailed(errors_from_pydantic(e)).to_http()


def get_page(page: Optional[str] = None) -> int:
    raw = {} if page is None or page.strip() == "" else {"page": page.strip()}
    try:
        return PageParams.model_validate(raw).page
    except ValidationError as e:
        raise ValidationFailed(errors_from_pydantic(e)).to_http()


@router.get(
    "",
    response_model=LeadListResponse,
    summary="List leads",
    description="Filtered, paginated lead list (10 per page), most recently updated first."
)
async def list_leads(
    params: LeadFilterParams = Depends(get_lead_filters),
    page: int = Depends(get_page),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        return await LeadServices.list_leads_service(params, page, db)
    except Exception as e:
        raise _internal_error("list_leads", e)


@router.post(
    "",
    response_model=LeadOut,
    status_code=201,
    summary="Create a lead",
    description="Validates the payload, stores the lead owned by the caller and records a 'created' history entry."
)
async def create_lead(
    payload: Any = Body(...),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    limiter: RateLimiter = Depends(get_rate_limiter),
):
    try:
        return await LeadServices.create_lead_service(payload, user, db, limiter)
    except LeadbookError as e:
        raise e.to_http()
    except Exception as e:
        raise _internal_error("create_lead", e)


@router.get(
    "/export",
    summary="Export leads as CSV",
    description="Exports every lead matching the list filters (no pagination)."
)
async def export_leads(
    params: LeadFilterParams = Depends(get_lead_filters),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        content = await LeadServices.export_leads_service(params, db)
    except Exception as e:
        raise _internal_error("export_leads", e)
    return _csv_response(content, export_filename(date.today()))


@router.get(
    "/template",
    summary="Download the CSV import template",
)
async def download_template(user: User = Depends(get_current_user)):
    return _csv_response(template_csv(), "leads-template.csv")


@router.post(
    "/import",
    response_model=ImportResponse,
    summary="Bulk import leads",
    description="Validates up to 200 rows independently and inserts the valid ones in a single transaction."
)
async def import_leads(
    body: Any = Body(...),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    rows = body.get("rows") if isinstance(body, dict) else None
    try:
        return await LeadServices.import_leads_service(rows, user, db)
    except LeadbookError as e:
        raise e.to_http()
    except Exception as e:
        raise _internal_error("import_leads", e)


@router.post(
    "/import/csv",
    response_model=ImportResponse,
    summary="Bulk import leads from a CSV body",
    description="Parses a text/csv body with a header row, then runs the same import as /leads/import."
)
async def import_leads_csv(
    request: Request,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        text = (await request.body()).decode("utf-8-sig")
    except UnicodeDecodeError:
        raise ValidationFailed([field_error("file", "CSV must be UTF-8 encoded")]).to_http()
    try:
        return await LeadServices.import_leads_service(parse_csv_rows(text), user, db)
    except LeadbookError as e:
        raise e.to_http()
    except Exception as e:
        raise _internal_error("import_leads_csv", e)


@router.get(
    "/{lead_id}",
    response_model=LeadDetail,
    summary="Get a lead with its change history",
)
async def get_lead(
    lead_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        return await LeadServices.get_lead_service(lead_id, db)
    except LeadbookError as e:
        raise e.to_http()
    except Exception as e:
        raise _internal_error("get_lead", e)


@router.put(
    "/{lead_id}",
    response_model=LeadOut,
    summary="Update a lead",
    description="Owner-only update; the body must echo the last observed `updatedAt`, a stale value yields 409."
)
async def update_lead(
    lead_id: UUID,
    payload: Any = Body(...),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    limiter: RateLimiter = Depends(get_rate_limiter),
):
    try:
        return await LeadServices.update_lead_service(lead_id, payload, user, db, limiter)
    except LeadbookError as e:
        raise e.to_http()
    except Exception as e:
        raise _internal_error("update_lead", e)


@router.delete(
    "/{lead_id}",
    summary="Delete a lead",
)
async def delete_lead(
    lead_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        return await LeadServices.delete_lead_service(lead_id, user, db)
    except LeadbookError as e:
        raise e.to_http()
    except Exception as e:
        raise _internal_error("delete_lead", e)
