import logging
from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.core.errors import ForbiddenError, Unauthenticated
from app.core.rbac import require_admin
from app.core.security import decode_access_token
from app.models.user import User

logger = logging.getLogger(__name__)

TOKEN_COOKIE = "hnh_token"

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


async def get_current_user(
    request: Request,
    token: Annotated[str | None, Depends(oauth2_scheme)],
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Resolve the bearer token (or session cookie) to the current ``User`` row.

    Only the ``sub`` claim is trusted. Role and status always come from the
    database so a demoted or disabled account loses access immediately.
    """
    credentials_token = token or request.cookies.get(TOKEN_COOKIE)
    if not credentials_token:
        raise Unauthenticated("No token, authorization denied")

    payload = decode_access_token(credentials_token)
    if not payload:
        raise Unauthenticated("Token is not valid")
    user_id = payload.get("sub")
    if not user_id:
        raise Unauthenticated("Token is not valid")

    user = await db.get(User, user_id)
    if not user:
        raise Unauthenticated("User not found")
    if not user.is_active:
        logger.info("Rejected request from disabled user", extra={"user_id": user.id})
        raise ForbiddenError("Your account has been disabled")
    return user


async def get_current_admin(current_user: User = Depends(get_current_user)) -> User:
    require_admin(current_user.role).enforce()
    return current_user
