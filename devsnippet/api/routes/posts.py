"""
api/routes/posts.py
-------------------
Post endpoints.

GET    /posts            - All posts, newest first (public)
GET    /posts/{id}       - One post (public)
POST   /posts            - Publish a post
PUT    /posts/{id}       - Partial update (author or admin)
DELETE /posts/{id}       - Delete, releasing attached media (author or admin)
PUT    /posts/{id}/like  - Toggle the caller's like
"""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from devsnippet.core.config import settings
from devsnippet.dependencies import CurrentUser, DBSession
from devsnippet.schemas.post import PostCreate, PostRead, PostUpdate
from devsnippet.schemas.user import MessageResponse
from devsnippet.services.media_service import MediaService, get_media_service
from devsnippet.services.post_service import PostService

router = APIRouter(prefix=f"{settings.API_PREFIX}/posts", tags=["Posts"])

Media = Annotated[MediaService, Depends(get_media_service)]


@router.get("", response_model=list[PostRead], summary="List all posts")
async def list_posts(db: DBSession) -> list[PostRead]:
    posts = await PostService.list_posts(db)
    return [PostRead.model_validate(p) for p in posts]


@router.get("/{post_id}", response_model=PostRead, summary="Get a single post")
async def get_post(post_id: str, db: DBSession) -> PostRead:
    post = await PostService.get_post(db, post_id)
    return PostRead.model_validate(post)


@router.post(
    "",
    response_model=PostRead,
    status_code=status.HTTP_201_CREATED,
    summary="Publish a post",
)
async def create_post(
    body: PostCreate,
    db: DBSession,
    current_user: CurrentUser,
) -> PostRead:
    """The author is always the authenticated user."""
    post = await PostService.create_post(db, current_user, body)
    return PostRead.model_validate(post)


@router.put("/{post_id}", response_model=PostRead, summary="Update a post")
async def update_post(
    post_id: str,
    body: PostUpdate,
    db: DBSession,
    current_user: CurrentUser,
    media: Media,
) -> PostRead:
    post = await PostService.update_post(db, post_id, current_user, body, media)
    return PostRead.model_validate(post)


@router.delete("/{post_id}", response_model=MessageResponse, summary="Delete a post")
async def delete_post(
    post_id: str,
    db: DBSession,
    current_user: CurrentUser,
    media: Media,
) -> MessageResponse:
    await PostService.delete_post(db, post_id, current_user, media)
    return MessageResponse(message="Post and media deleted successfully")


@router.put("/{post_id}/like", response_model=PostRead, summary="Like / unlike a post")
async def toggle_like(
    post_id: str,
    db: DBSession,
    current_user: CurrentUser,
) -> PostRead:
    post = await PostService.toggle_like(db, post_id, current_user)
    return PostRead.model_validate(post)
