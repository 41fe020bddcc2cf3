"""
services/user_service.py
------------------------
Business logic for registration, authentication and self-service
profile edits.

Service layer is responsible for:
  - Constructing queries
  - Enforcing business rules (unique username / email)
  - Returning ORM objects to the route layer
  - Never returning HTTP responses (that's the route's job)
"""

from typing import Optional

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from devsnippet.core.exceptions import BadRequest, Conflict, InvalidCredentials, NotFound
from devsnippet.core.logging import get_logger
from devsnippet.core.security import hash_password, verify_password
from devsnippet.models.post import Post
from devsnippet.models.user import User, UserRole
from devsnippet.schemas.user import ProfileUpdate, UserRegister
from devsnippet.services.media_service import MediaService

logger = get_logger(__name__)


class UserService:

    @staticmethod
    async def get_by_id(db: AsyncSession, user_id: str) -> Optional[User]:
        result = await db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_username(db: AsyncSession, username: str) -> Optional[User]:
        result = await db.execute(select(User).where(User.username == username))
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_email(db: AsyncSession, email: str) -> Optional[User]:
        result = await db.execute(select(User).where(User.email == email.lower()))
        return result.scalar_one_or_none()

    @staticmethod
    async def count_posts(db: AsyncSession, user_id: str) -> int:
        result = await db.execute(
            select(func.count()).select_from(Post).where(Post.author_id == user_id)
        )
        return result.scalar_one()

    @staticmethod
    async def find_collision(
        db: AsyncSession,
        username: Optional[str] = None,
        email: Optional[str] = None,
        exclude_id: Optional[str] = None,
    ) -> Optional[User]:
        """Return another user already holding the username or email, if any."""
        conditions = []
        if username:
            conditions.append(User.username == username)
        if email:
            conditions.append(User.email == email.lower())
        if not conditions:
            return None
        query = select(User).where(or_(*conditions))
        if exclude_id is not None:
            query = query.where(User.id != exclude_id)
        result = await db.execute(query.limit(1))
        return result.scalar_one_or_none()

    # ── Registration / login ─────────────────────────────────────────────────

    @staticmethod
    async def register_user(db: AsyncSession, data: UserRegister) -> User:
        """
        Self-registration: creates a 'user'-role account with an empty bio.
        Raises Conflict if the username or email is taken.
        """
        if await UserService.get_by_username(db, data.username):
            raise Conflict("This username is already taken")
        if await UserService.get_by_email(db, data.email):
            raise Conflict("An account with this email already exists")

        user = User(
            username=data.username,
            email=data.email.lower(),
            hashed_password=hash_password(data.password),
            role=UserRole.user.value,
            bio="",
        )
        db.add(user)
        try:
            await db.flush()
        except IntegrityError:
            await db.rollback()
            raise Conflict()
        logger.info("User registered", user_id=user.id, username=user.username)
        return user

    @staticmethod
    async def authenticate(db: AsyncSession, email: str, password: str) -> User:
        """
        Verify credentials and return the User.
        Unknown email and wrong password raise the same InvalidCredentials.
        """
        user = await UserService.get_by_email(db, email)
        if user is None or not verify_password(password, user.hashed_password):
            logger.info("Login rejected")
            raise InvalidCredentials()
        return user

    # ── Self-service profile ─────────────────────────────────────────────────

    @staticmethod
    async def update_profile(db: AsyncSession, user: User, data: ProfileUpdate) -> User:
        """Apply username / bio. bio='' clears it; None leaves it alone."""
        if data.username and data.username != user.username:
            if await UserService.find_collision(db, username=data.username, exclude_id=user.id):
                raise Conflict("This username is already taken")
            user.username = data.username
        if data.bio is not None:
            user.bio = data.bio

        try:
            await db.flush()
        except IntegrityError:
            await db.rollback()
            raise Conflict()
        logger.info("Profile updated", user_id=user.id)
        return user

    @staticmethod
    async def set_avatar(
        db: AsyncSession,
        user: User,
        url: str,
        public_id: str,
        media: MediaService,
    ) -> User:
        """
        Replace the avatar. The previous media reference is released first;
        a failed release does not block the update.
        """
        if not url or not public_id:
            raise BadRequest("No image data provided")

        if user.profile_pic_id and user.profile_pic_id != public_id:
            await media.release(user.profile_pic_id, "image")

        user.profile_pic = url
        user.profile_pic_id = public_id
        await db.flush()
        logger.info("Avatar updated", user_id=user.id)
        return user

    @staticmethod
    async def get_public_profile(db: AsyncSession, username: str) -> tuple[User, int]:
        user = await UserService.get_by_username(db, username)
        if user is None:
            raise NotFound("User not found")
        return user, await UserService.count_posts(db, user.id)
