"""
models/__init__.py
------------------
Re-export all models so create_tables.py (and Alembic, if added) can
import Base and discover every table via a single import:

    from devsnippet.models import Base
"""

from devsnippet.db.base import Base
from devsnippet.models.user import User, UserRole
from devsnippet.models.post import MediaType, Post, PostLike

__all__ = ["Base", "User", "UserRole", "Post", "PostLike", "MediaType"]
