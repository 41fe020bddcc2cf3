"""
models/post.py
--------------
Post and like models.

Likes live in their own table with a composite primary key, so a user
id can appear at most once per post and a like/unlike is a single row
insert/delete instead of a rewrite of the whole set.
"""

from datetime import datetime
from enum import Enum as PyEnum

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from devsnippet.db.base import Base, TimestampMixin, generate_uuid, utcnow


class MediaType(str, PyEnum):
    image = "image"
    video = "video"
    none = "none"


class Post(Base, TimestampMixin):
    __tablename__ = "posts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)

    author_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    media_url: Mapped[str] = mapped_column(String(1024), nullable=False, default="")
    media_type: Mapped[str] = mapped_column(
        String(10), nullable=False, default=MediaType.none.value
    )
    media_public_id: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    is_downloadable: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    tags: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)

    # Relationships
    author: Mapped["User"] = relationship("User", back_populates="posts")  # noqa: F821
    like_records: Mapped[list["PostLike"]] = relationship(
        "PostLike",
        order_by="PostLike.created_at",
        passive_deletes=True,
    )

    @property
    def likes(self) -> list[str]:
        return [like.user_id for like in self.like_records]

    @property
    def media_resource_type(self) -> str:
        return "video" if self.media_type == MediaType.video.value else "image"

    def __repr__(self) -> str:
        return f"<Post id={self.id} author_id={self.author_id}>"


class PostLike(Base):
    __tablename__ = "post_likes"

    post_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("posts.id", ondelete="CASCADE"),
        primary_key=True,
    )
    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    def __repr__(self) -> str:
        return f"<PostLike post_id={self.post_id} user_id={self.user_id}>"
