"""
services/post_service.py
------------------------
Business logic for posts, likes and the orphan-post sweep.

Likes:
  The like set is never read, mutated in memory and written back.
  add_like / remove_like are single-row statements keyed by
  (post_id, user_id), so two toggles racing each other can at worst
  cancel out; they can never create a duplicate or drop someone else's
  like.

Media:
  Record writes commit regardless of the media host. Released
  references go through MediaService.release(), which never raises.
"""

from sqlalchemy import delete, insert, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from devsnippet.core.exceptions import NotFound
from devsnippet.core.logging import get_logger
from devsnippet.core.policy import ensure_can_edit_post
from devsnippet.db.base import utcnow
from devsnippet.models.post import Post, PostLike
from devsnippet.models.user import User
from devsnippet.schemas.post import PostCreate, PostUpdate
from devsnippet.services.media_service import MediaService

logger = get_logger(__name__)


def _post_query():
    return (
        select(Post)
        .options(selectinload(Post.author), selectinload(Post.like_records))
        .execution_options(populate_existing=True)
    )


class PostService:

    # ── Reads ────────────────────────────────────────────────────────────────

    @staticmethod
    async def list_posts(db: AsyncSession, limit: int | None = None) -> list[Post]:
        """All posts, newest first, author summary and likes loaded."""
        query = _post_query().order_by(Post.created_at.desc())
        if limit is not None:
            query = query.limit(limit)
        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def get_post(db: AsyncSession, post_id: str) -> Post:
        result = await db.execute(_post_query().where(Post.id == post_id))
        post = result.scalar_one_or_none()
        if post is None:
            raise NotFound("Post not found")
        return post

    # ── Writes ───────────────────────────────────────────────────────────────

    @staticmethod
    async def create_post(db: AsyncSession, author: User, data: PostCreate) -> Post:
        post = Post(
            title=data.title,
            content=data.content,
            author_id=author.id,
            media_url=data.media_url or "",
            media_type=data.media_type.value,
            media_public_id=data.media_public_id or "",
            is_downloadable=data.is_downloadable,
            tags=list(data.tags),
        )
        db.add(post)
        await db.flush()
        logger.info("Post created", post_id=post.id, author_id=author.id)
        return await PostService.get_post(db, post.id)

    @staticmethod
    async def update_post(
        db: AsyncSession,
        post_id: str,
        actor: User,
        data: PostUpdate,
        media: MediaService,
    ) -> Post:
        """
        Partial update by the author or an admin.
        Replacing the media reference releases the previous one.
        """
        post = await PostService.get_post(db, post_id)
        ensure_can_edit_post(actor, post)

        changes = data.provided_fields()
        previous_media = (post.media_public_id, post.media_resource_type)

        for field, value in changes.items():
            setattr(post, field, value)
        post.updated_at = utcnow()
        await db.flush()

        old_id, old_type = previous_media
        if old_id and "media_public_id" in changes and changes["media_public_id"] != old_id:
            await media.release(old_id, old_type)

        logger.info(
            "Post updated",
            post_id=post.id,
            actor_id=actor.id,
            fields=sorted(changes),
        )
        return await PostService.get_post(db, post.id)

    @staticmethod
    async def delete_post(
        db: AsyncSession,
        post_id: str,
        actor: User,
        media: MediaService,
    ) -> None:
        post = await PostService.get_post(db, post_id)
        ensure_can_edit_post(actor, post)

        public_id = post.media_public_id
        resource_type = post.media_resource_type

        await db.execute(delete(PostLike).where(PostLike.post_id == post.id))
        await db.execute(delete(Post).where(Post.id == post.id))
        await db.flush()
        logger.info("Post deleted", post_id=post_id, actor_id=actor.id)

        if public_id:
            await media.release(public_id, resource_type)

    # ── Likes ────────────────────────────────────────────────────────────────

    @staticmethod
    async def add_like(db: AsyncSession, post_id: str, user_id: str) -> bool:
        """Insert the like row. Returns False if it already existed."""
        try:
            async with db.begin_nested():
                await db.execute(insert(PostLike).values(post_id=post_id, user_id=user_id))
        except IntegrityError:
            return False
        return True

    @staticmethod
    async def remove_like(db: AsyncSession, post_id: str, user_id: str) -> bool:
        """Delete the like row. Returns False if there was nothing to delete."""
        result = await db.execute(
            delete(PostLike).where(
                PostLike.post_id == post_id,
                PostLike.user_id == user_id,
            )
        )
        return result.rowcount > 0

    @staticmethod
    async def toggle_like(db: AsyncSession, post_id: str, actor: User) -> Post:
        """Unlike if the actor's like exists, otherwise like."""
        await PostService.get_post(db, post_id)

        if await PostService.remove_like(db, post_id, actor.id):
            liked = False
        else:
            liked = await PostService.add_like(db, post_id, actor.id)

        logger.info("Like toggled", post_id=post_id, user_id=actor.id, liked=liked)
        return await PostService.get_post(db, post_id)

    # ── Maintenance ──────────────────────────────────────────────────────────

    @staticmethod
    async def sweep_orphans(db: AsyncSession) -> int:
        """
        Delete every post whose author no longer exists.
        Corrective batch job; returns the number of posts removed.
        """
        result = await db.execute(
            select(Post.id, Post.title).where(~Post.author_id.in_(select(User.id)))
        )
        orphans = result.all()
        if not orphans:
            logger.info("Orphan sweep complete", deleted=0)
            return 0

        orphan_ids = [row.id for row in orphans]
        await db.execute(delete(PostLike).where(PostLike.post_id.in_(orphan_ids)))
        await db.execute(delete(Post).where(Post.id.in_(orphan_ids)))
        await db.flush()

        for row in orphans:
            logger.info("Deleted orphan post", post_id=row.id, title=row.title)
        logger.info("Orphan sweep complete", deleted=len(orphan_ids))
        return len(orphan_ids)

