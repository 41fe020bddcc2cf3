"""
create_admin.py
---------------
Bootstrap the platform administrator from ADMIN_EMAIL / ADMIN_PASSWORD.
Does nothing if an account with that email already exists.

Usage:
    python create_admin.py
"""

import asyncio
import sys
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from devsnippet.core.config import settings
from devsnippet.core.logging import configure_logging, get_logger
from devsnippet.core.security import hash_password
from devsnippet.db.session import AsyncSessionLocal, engine
from devsnippet.models import User, UserRole
from devsnippet.services.user_service import UserService

logger = get_logger(__name__)


async def create_admin(
    db: AsyncSession,
    email: str,
    password: str,
    username: str = "admin",
) -> Optional[User]:
    """Create the admin account. Returns None if the email is already registered."""
    if await UserService.get_by_email(db, email):
        logger.info("Admin already exists", email=email.lower())
        return None

    admin = User(
        username=username,
        email=email.lower(),
        hashed_password=hash_password(password),
        role=UserRole.admin.value,
        bio="Platform Administrator",
    )
    db.add(admin)
    await db.flush()
    logger.info("Admin account created", user_id=admin.id, email=admin.email)
    return admin


async def main() -> int:
    configure_logging()
    if not settings.ADMIN_EMAIL or not settings.ADMIN_PASSWORD:
        logger.error("ADMIN_EMAIL or ADMIN_PASSWORD is not set")
        return 1

    async with AsyncSessionLocal() as db:
        admin = await create_admin(
            db, settings.ADMIN_EMAIL, settings.ADMIN_PASSWORD, settings.ADMIN_USERNAME
        )
        await db.commit()
    await engine.dispose()

    if admin is not None:
        print(f"Admin account created for {admin.email}. Change the password after first login.")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
