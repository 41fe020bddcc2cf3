"""
clean_orphan_posts.py
---------------------
Offline maintenance: delete posts whose author no longer exists.

User deletion already cascades to posts; this sweeps up anything left
behind by older data or rows edited by hand. Safe to re-run - a second
run reports 0.

Usage:
    python clean_orphan_posts.py
"""

import asyncio
import sys

from devsnippet.core.logging import configure_logging, get_logger
from devsnippet.db.session import AsyncSessionLocal, engine
from devsnippet.services.post_service import PostService

logger = get_logger(__name__)


async def clean_orphan_posts() -> int:
    async with AsyncSessionLocal() as db:
        try:
            deleted = await PostService.sweep_orphans(db)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
    await engine.dispose()
    return deleted


def main() -> int:
    configure_logging()
    try:
        deleted = asyncio.run(clean_orphan_posts())
    except Exception as exc:
        logger.error("Orphan sweep failed", error=str(exc), exc_info=True)
        return 1
    print(f"✅  Cleanup complete. Deleted {deleted} orphan posts.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
