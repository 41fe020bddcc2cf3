"""
create_tables.py
----------------
Create the users / posts / post_likes tables on DATABASE_URL.
Tables that already exist are left untouched.

Usage:
    python create_tables.py
"""

import asyncio

from sqlalchemy.ext.asyncio import AsyncEngine

from devsnippet.db.session import engine
from devsnippet.models import Base  # Imports all models so metadata is populated


async def create_all_tables(target: AsyncEngine) -> list[str]:
    async with target.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    return sorted(Base.metadata.tables)


async def main() -> None:
    tables = await create_all_tables(engine)
    await engine.dispose()
    print(f"✅  Tables ready: {', '.join(tables)}")


if __name__ == "__main__":
    asyncio.run(main())
