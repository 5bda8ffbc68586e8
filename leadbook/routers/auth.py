from typing import Optional
from fastapi import APIRouter, Body, Depends, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession
import logging
import traceback

from leadbook.core.config import settings
from leadbook.core.errors import INTERNAL_ERROR
from leadbook.crud import user as crud_user
from leadbook.db.session import get_db
from leadbook.schemas.auth import DemoLoginRequest, SessionUser

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post(
    "/login",
    response_model=SessionUser,
    summary="Demo login",
    description="Finds or creates the demo user and stores its id in the session cookie."
)
async def login(
    payload: Optional[DemoLoginRequest] = Body(None),
    db: AsyncSession = Depends(get_db),
):
    payload = payload or DemoLoginRequest()
    try:
        user = await crud_user.get_or_create_user(db, payload.email, payload.name)
    except Exception as e:
        logger.error("Error in login: %s\n%s", e, traceback.format_exc())
        raise HTTPException(status_code=500, detail=INTERNAL_ERROR)

    response = JSONResponse(SessionUser.model_validate(user).model_dump(mode="json"))
    response.set_cookie(
        settings.SESSION_COOKIE_NAME,
        str(user.id),
        max_age=settings.SESSION_COOKIE_MAX_AGE,
        httponly=True,
        samesite="lax",
        secure=settings.SESSION_COOKIE_SECURE,
    )
    return response


@router.post("/logout", summary="Clear the session cookie")
async def logout():
    response = JSONResponse({"message": "Logged out"})
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    return response
