"""
dependencies.py
---------------
FastAPI dependency injection functions for authentication and authorisation.

Flow:
  1. The session token is read from the `token` cookie, falling back to
     an `Authorization: Bearer` header.
  2. decode_access_token validates signature and expiry.
  3. get_current_user re-loads the User from the database, so deleted
     accounts are rejected even while their token is still unexpired.
  4. get_current_admin layers the admin gate on top of get_current_user.
"""

from typing import Annotated, Optional

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from devsnippet.core.config import settings
from devsnippet.core.exceptions import Unauthenticated
from devsnippet.core.logging import get_logger
from devsnippet.core.policy import ensure_admin
from devsnippet.core.security import decode_access_token
from devsnippet.db.session import get_db
from devsnippet.models.user import User
from devsnippet.services.user_service import UserService

logger = get_logger(__name__)

# auto_error=False: the cookie may carry the token instead
oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl=f"{settings.API_PREFIX}/auth/login",
    auto_error=False,
)


def extract_token(request: Request, bearer: Optional[str]) -> Optional[str]:
    return request.cookies.get(settings.SESSION_COOKIE_NAME) or bearer


async def get_current_user(
    request: Request,
    bearer: Annotated[Optional[str], Depends(oauth2_scheme)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> User:
    """
    Resolve the acting user for this request.
    Raises Unauthenticated (401) on a missing, invalid or expired token,
    or when the user no longer exists.
    """
    token = extract_token(request, bearer)
    if not token:
        raise Unauthenticated("No token, authorization denied")

    try:
        payload = decode_access_token(token)
    except JWTError as exc:
        logger.warning("JWT decode failed", error=str(exc))
        raise Unauthenticated("Token is not valid")

    user_id = payload.get("sub")
    if not user_id:
        raise Unauthenticated("Token is not valid")

    user = await UserService.get_by_id(db, user_id)
    if user is None:
        logger.warning("User from valid JWT not found in DB", user_id=user_id)
        raise Unauthenticated("User not found")

    return user


async def get_current_admin(
    current_user: Annotated[User, Depends(get_current_user)],
) -> User:
    """Admin gate: raises Forbidden (403) unless the user is an admin."""
    ensure_admin(current_user)
    return current_user


CurrentUser = Annotated[User, Depends(get_current_user)]
CurrentAdmin = Annotated[User, Depends(get_current_admin)]
DBSession = Annotated[AsyncSession, Depends(get_db)]
