"""
schemas/admin.py
----------------
Response models for the admin dashboard.
"""

from pydantic import BaseModel

from devsnippet.schemas.post import PostRead
from devsnippet.schemas.user import UserRead


class DashboardStats(BaseModel):
    total_users: int
    total_posts: int
    total_admins: int
    total_regular_users: int


class DashboardResponse(BaseModel):
    stats: DashboardStats
    recent_users: list[UserRead]
    recent_posts: list[PostRead]
