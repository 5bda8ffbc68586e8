from typing import Optional
from uuid import UUID

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from leadbook.core.config import settings
from leadbook.crud import user as crud_user
from leadbook.db.session import get_db
from leadbook.models import User

LOGIN_PATH = "/"


def _redirect_to_login() -> HTTPException:
    return HTTPException(status_code=status.HTTP_303_SEE_OTHER, headers={"Location": LOGIN_PATH})


def session_user_id(request: Request) -> Optional[UUID]:
    raw = request.cookies.get(settings.SESSION_COOKIE_NAME)
    if not raw:
        return None
    try:
        return UUID(raw)
    except ValueError:
        return None


async def get_current_user(request: Request, db: AsyncSession = Depends(get_db)) -> User:
    """
    Resolve the session cookie to a User row.

    The cookie is a bare user id and is trusted as-is; a missing, malformed
    or unknown id sends the caller to the login surrogate.
    """
    user_id = session_user_id(request)
    if user_id is None:
        raise _redirect_to_login()
    user = await crud_user.get_user_by_id(db, user_id)
    if user is None:
        raise _redirect_to_login()
    return user
