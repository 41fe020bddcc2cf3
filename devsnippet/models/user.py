"""
models/user.py
--------------
User account model.

Role design:
  - 'admin': Can manage users and moderate any post.
  - 'user':  Can publish, edit and delete their own posts.

hashed_password stores bcrypt hashes only. Plain text is never stored
and never logged.
"""

from enum import Enum as PyEnum
from typing import Optional

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from devsnippet.db.base import Base, TimestampMixin, generate_uuid


class UserRole(str, PyEnum):
    admin = "admin"
    user = "user"


class User(Base, TimestampMixin):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    username: Mapped[str] = mapped_column(
        String(50), unique=True, nullable=False, index=True
    )
    email: Mapped[str] = mapped_column(
        String(320), unique=True, nullable=False, index=True
    )
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(
        String(20), nullable=False, default=UserRole.user.value
    )
    bio: Mapped[str] = mapped_column(Text, nullable=False, default="")
    profile_pic: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    profile_pic_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    posts: Mapped[list["Post"]] = relationship(  # noqa: F821
        "Post", back_populates="author", passive_deletes=True
    )

    def __repr__(self) -> str:
        return f"<User id={self.id} username={self.username} role={self.role}>"
