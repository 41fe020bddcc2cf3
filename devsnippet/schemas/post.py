"""
schemas/post.py
---------------
Pydantic request/response models for posts.

Naming convention:
  PostCreate  → inbound body for POST /posts
  PostUpdate  → inbound body for PUT /posts/{id} (every field optional)
  PostRead    → outbound body, author summary embedded
"""

from datetime import datetime
from typing import Optional

from pydantic import AliasChoices, BaseModel, Field

from devsnippet.models.post import MediaType


class AuthorSummary(BaseModel):
    id: str
    username: str
    profile_pic: Optional[str] = None
    bio: str = ""

    model_config = {"from_attributes": True}


def _either(name: str, camel: str) -> AliasChoices:
    """Accept the snake_case field name or the camelCase one browsers send."""
    return AliasChoices(name, camel)


class PostCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255, examples=["Hi"])
    content: str = Field(..., min_length=1, examples=["World"])
    media_url: str = Field(default="", validation_alias=_either("media_url", "mediaUrl"))
    media_type: MediaType = Field(
        default=MediaType.none,
        validation_alias=_either("media_type", "mediaType"),
    )
    media_public_id: str = Field(
        default="",
        validation_alias=_either("media_public_id", "publicId"),
    )
    is_downloadable: bool = Field(
        default=True,
        validation_alias=_either("is_downloadable", "isDownloadable"),
    )
    tags: list[str] = Field(default_factory=list)


class PostUpdate(BaseModel):
    """
    Partial update. A field that is omitted (or sent as null) keeps its
    stored value; an explicit empty string overwrites a text field.
    """
    title: Optional[str] = Field(default=None, max_length=255)
    content: Optional[str] = None
    media_url: Optional[str] = Field(
        default=None,
        validation_alias=_either("media_url", "mediaUrl"),
    )
    media_type: Optional[MediaType] = Field(
        default=None,
        validation_alias=_either("media_type", "mediaType"),
    )
    media_public_id: Optional[str] = Field(
        default=None,
        validation_alias=_either("media_public_id", "publicId"),
    )
    is_downloadable: Optional[bool] = Field(
        default=None,
        validation_alias=_either("is_downloadable", "isDownloadable"),
    )
    tags: Optional[list[str]] = None

    def provided_fields(self) -> dict:
        return {
            key: value
            for key, value in self.model_dump(mode="json", exclude_unset=True).items()
            if value is not None
        }


class PostRead(BaseModel):
    id: str
    title: str
    content: str
    author_id: str
    author: Optional[AuthorSummary] = None
    media_url: str = ""
    media_type: MediaType = MediaType.none
    media_public_id: str = ""
    is_downloadable: bool = True
    tags: list[str] = Field(default_factory=list)
    likes: list[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
