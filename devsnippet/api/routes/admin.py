"""
api/routes/admin.py
-------------------
Admin-only endpoints. Every route depends on get_current_admin.

GET    /admin/dashboard    - Counts plus the five newest users and posts.
GET    /admin/users        - All users, newest first.
GET    /admin/users/{id}   - One user with their post count.
PUT    /admin/users/{id}   - Edit username / email / bio / role.
DELETE /admin/users/{id}   - Delete a user and everything they posted.
"""

from typing import Annotated

from fastapi import APIRouter, Depends

from devsnippet.core.config import settings
from devsnippet.dependencies import CurrentAdmin, DBSession
from devsnippet.schemas.admin import DashboardResponse
from devsnippet.schemas.user import AdminUserRead, AdminUserUpdate, MessageResponse, UserRead
from devsnippet.services.admin_service import AdminService
from devsnippet.services.media_service import MediaService, get_media_service

router = APIRouter(prefix=f"{settings.API_PREFIX}/admin", tags=["Admin"])


@router.get(
    "/dashboard",
    response_model=DashboardResponse,
    summary="Admin: dashboard statistics",
)
async def dashboard(db: DBSession, admin: CurrentAdmin) -> DashboardResponse:
    stats = await AdminService.dashboard_stats(db)
    return DashboardResponse.model_validate(stats, from_attributes=True)


@router.get("/users", response_model=list[UserRead], summary="Admin: list users")
async def list_users(db: DBSession, admin: CurrentAdmin) -> list[UserRead]:
    users = await AdminService.list_users(db)
    return [UserRead.model_validate(u) for u in users]


@router.get("/users/{user_id}", response_model=AdminUserRead, summary="Admin: get a user")
async def get_user(user_id: str, db: DBSession, admin: CurrentAdmin) -> AdminUserRead:
    user, post_count = await AdminService.get_user(db, user_id)
    return AdminUserRead.model_validate(user).model_copy(update={"post_count": post_count})


@router.put("/users/{user_id}", response_model=UserRead, summary="Admin: update a user")
async def update_user(
    user_id: str,
    body: AdminUserUpdate,
    db: DBSession,
    admin: CurrentAdmin,
) -> UserRead:
    """An admin cannot demote their own account."""
    user = await AdminService.update_user(db, user_id, admin, body)
    return UserRead.model_validate(user)


@router.delete(
    "/users/{user_id}",
    response_model=MessageResponse,
    summary="Admin: delete a user and their posts",
)
async def delete_user(
    user_id: str,
    db: DBSession,
    admin: CurrentAdmin,
    media: Annotated[MediaService, Depends(get_media_service)],
) -> MessageResponse:
    """An admin cannot delete their own account."""
    await AdminService.delete_user(db, user_id, admin, media)
    return MessageResponse(message="User and all their posts deleted successfully")
