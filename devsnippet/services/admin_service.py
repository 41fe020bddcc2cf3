"""
services/admin_service.py
-------------------------
User management and dashboard aggregates for administrators.

Routes reach this module only through get_current_admin, so every
method here assumes an admin actor. The self-protection rules (an
admin cannot demote or delete their own account) are enforced here,
next to the writes they guard.
"""

from sqlalchemy import delete, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from devsnippet.core.exceptions import Conflict, NotFound
from devsnippet.core.logging import get_logger
from devsnippet.core.policy import ensure_not_self_deletion, ensure_not_self_demotion
from devsnippet.db.base import utcnow
from devsnippet.models.post import Post, PostLike
from devsnippet.models.user import User, UserRole
from devsnippet.schemas.user import AdminUserUpdate
from devsnippet.services.media_service import MediaService
from devsnippet.services.post_service import PostService
from devsnippet.services.user_service import UserService

logger = get_logger(__name__)

RECENT_LIMIT = 5


class AdminService:

    @staticmethod
    async def list_users(db: AsyncSession, limit: int | None = None) -> list[User]:
        """All users, newest first."""
        query = select(User).order_by(User.created_at.desc())
        if limit is not None:
            query = query.limit(limit)
        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def get_user(db: AsyncSession, user_id: str) -> tuple[User, int]:
        """Return the user and the number of posts they authored."""
        user = await UserService.get_by_id(db, user_id)
        if user is None:
            raise NotFound("User not found")
        return user, await UserService.count_posts(db, user.id)

    @staticmethod
    async def update_user(
        db: AsyncSession,
        user_id: str,
        actor: User,
        data: AdminUserUpdate,
    ) -> User:
        user = await UserService.get_by_id(db, user_id)
        if user is None:
            raise NotFound("User not found")

        ensure_not_self_demotion(actor, user.id, data.role)

        email = data.email.lower() if data.email else None
        if await UserService.find_collision(
            db, username=data.username, email=email, exclude_id=user.id
        ):
            raise Conflict("Username or email already exists")

        if data.username:
            user.username = data.username
        if email:
            user.email = email
        if data.bio is not None:
            user.bio = data.bio
        if data.role is not None:
            user.role = data.role.value
        user.updated_at = utcnow()

        try:
            await db.flush()
        except IntegrityError:
            await db.rollback()
            raise Conflict("Username or email already exists")

        logger.info(
            "Admin updated user",
            user_id=user.id,
            admin_id=actor.id,
            role=user.role,
        )
        return user

    @staticmethod
    async def delete_user(
        db: AsyncSession,
        user_id: str,
        actor: User,
        media: MediaService,
    ) -> None:
        """
        Delete the user together with their posts and likes.
        Media held by the removed records is released best-effort
        after the rows are gone.
        """
        user = await UserService.get_by_id(db, user_id)
        if user is None:
            raise NotFound("User not found")

        ensure_not_self_deletion(actor, user.id)

        result = await db.execute(
            select(Post.id, Post.media_public_id, Post.media_type).where(
                Post.author_id == user.id
            )
        )
        owned = result.all()
        owned_ids = [row.id for row in owned]
        avatar_id = user.profile_pic_id

        await db.execute(
            delete(PostLike).where(
                or_(PostLike.user_id == user.id, PostLike.post_id.in_(owned_ids))
            )
        )
        await db.execute(delete(Post).where(Post.author_id == user.id))
        await db.execute(delete(User).where(User.id == user.id))
        await db.flush()

        logger.info(
            "Admin deleted user",
            user_id=user_id,
            admin_id=actor.id,
            posts_deleted=len(owned_ids),
        )

        for row in owned:
            if row.media_public_id:
                await media.release(
                    row.media_public_id, "video" if row.media_type == "video" else "image"
                )
        if avatar_id:
            await media.release(avatar_id, "image")

    @staticmethod
    async def dashboard_stats(db: AsyncSession) -> dict:
        total_users = (await db.execute(select(func.count()).select_from(User))).scalar_one()
        total_posts = (await db.execute(select(func.count()).select_from(Post))).scalar_one()
        total_admins = (
            await db.execute(
                select(func.count())
                .select_from(User)
                .where(User.role == UserRole.admin.value)
            )
        ).scalar_one()

        return {
            "stats": {
                "total_users": total_users,
                "total_posts": total_posts,
                "total_admins": total_admins,
                "total_regular_users": total_users - total_admins,
            },
            "recent_users": await AdminService.list_users(db, limit=RECENT_LIMIT),
            "recent_posts": await PostService.list_posts(db, limit=RECENT_LIMIT),
        }
