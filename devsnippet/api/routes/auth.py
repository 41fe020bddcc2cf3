"""
api/routes/auth.py
------------------
Authentication and profile endpoints.

POST /auth/register          - Create an account, start a session.
POST /auth/login             - Exchange email + password for a session.
GET  /auth/me                - The authenticated user's profile.
POST /auth/logout            - Clear the session cookie.
PUT  /auth/profile           - Edit own username / bio.
POST /auth/upload-avatar     - Store an avatar already uploaded to the media host.
GET  /auth/user/{username}   - Public profile lookup.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status

from devsnippet.core.config import settings
from devsnippet.core.security import create_access_token, token_lifetime
from devsnippet.dependencies import CurrentUser, DBSession
from devsnippet.models.user import User
from devsnippet.schemas.user import (
    AvatarResponse,
    AvatarUpdate,
    LoginRequest,
    MessageResponse,
    ProfileUpdate,
    TokenResponse,
    UserPublic,
    UserRead,
    UserRegister,
)
from devsnippet.services.media_service import MediaService, get_media_service
from devsnippet.services.user_service import UserService

router = APIRouter(prefix=f"{settings.API_PREFIX}/auth", tags=["Authentication"])


def _start_session(response: Response, user: User) -> TokenResponse:
    """Issue a token for the user and mirror it into the session cookie."""
    lifetime = token_lifetime()
    token = create_access_token(
        subject=user.id,
        username=user.username,
        role=user.role,
        expires_delta=lifetime,
    )
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        max_age=int(lifetime.total_seconds()),
        httponly=True,
        samesite="strict",
        secure=settings.cookie_secure,
    )
    return TokenResponse(
        token=token,
        expires_in=int(lifetime.total_seconds()),
        user=UserRead.model_validate(user),
    )


@router.post(
    "/register",
    response_model=TokenResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user account",
)
async def register(
    body: UserRegister,
    response: Response,
    db: DBSession,
) -> TokenResponse:
    """New accounts always get the 'user' role and an empty bio."""
    user = await UserService.register_user(db, body)
    return _start_session(response, user)


@router.post(
    "/login",
    response_model=TokenResponse,
    summary="Login and receive a session token",
)
async def login(
    body: LoginRequest,
    response: Response,
    db: DBSession,
) -> TokenResponse:
    user = await UserService.authenticate(db, body.email, body.password)
    return _start_session(response, user)


@router.get(
    "/me",
    response_model=UserRead,
    summary="Get the currently authenticated user",
)
async def get_me(current_user: CurrentUser) -> UserRead:
    return UserRead.model_validate(current_user)


@router.post(
    "/logout",
    response_model=MessageResponse,
    summary="Clear the session cookie",
)
async def logout(response: Response) -> MessageResponse:
    """
    Client-side logout only. The token is not revoked and stays valid
    until it expires.
    """
    response.delete_cookie(
        key=settings.SESSION_COOKIE_NAME,
        path="/",
        httponly=True,
        samesite="strict",
        secure=settings.cookie_secure,
    )
    return MessageResponse(message="Logged out successfully")


@router.put(
    "/profile",
    response_model=UserRead,
    summary="Update own username and bio",
)
async def update_profile(
    body: ProfileUpdate,
    db: DBSession,
    current_user: CurrentUser,
) -> UserRead:
    user = await UserService.update_profile(db, current_user, body)
    return UserRead.model_validate(user)


@router.post(
    "/upload-avatar",
    response_model=AvatarResponse,
    summary="Attach an uploaded image as the avatar",
)
async def upload_avatar(
    body: AvatarUpdate,
    db: DBSession,
    current_user: CurrentUser,
    media: Annotated[MediaService, Depends(get_media_service)],
) -> AvatarResponse:
    """
    The client uploads the file to the media host itself and sends the
    resulting url + public id. Any previous avatar is released.
    """
    user = await UserService.set_avatar(db, current_user, body.url, body.public_id, media)
    return AvatarResponse(url=user.profile_pic, user=UserRead.model_validate(user))


@router.get(
    "/user/{username}",
    response_model=UserPublic,
    summary="Public profile by username",
)
async def get_public_profile(username: str, db: DBSession) -> UserPublic:
    user, post_count = await UserService.get_public_profile(db, username)
    return UserPublic.model_validate(user).model_copy(update={"post_count": post_count})
