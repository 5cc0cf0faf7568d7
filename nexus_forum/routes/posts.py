"""
Nexus Forum Backend — Post Route Handlers
==========================================

What:  POST /api/posts (reply, bumps the topic) and
       POST /api/posts/{id}/like (toggle, returns the new state).
"""

from typing import Optional

from fastapi import APIRouter, Depends

from nexus_forum.dependencies import get_store, get_token_user_id, resolve_user_id
from nexus_forum.schemas.common import ErrorResponse
from nexus_forum.schemas.forum import CreatePostRequest, LikeRequest, LikeResponse, PostResponse
from nexus_forum.services.store_base import ForumStore

router = APIRouter(prefix="/api", tags=["Posts"])


@router.post(
    "/posts",
    response_model=PostResponse,
    responses={400: {"description": "Invalid input or reference", "model": ErrorResponse}},
    summary="Reply to a topic",
)
async def create_post(
    body: CreatePostRequest,
    store: ForumStore = Depends(get_store),
    token_user_id: Optional[int] = Depends(get_token_user_id),
) -> PostResponse:
    user_id = resolve_user_id(body.user_id, token_user_id)
    return await store.create_post(
        content=body.content,
        topic_id=body.topic_id,
        user_id=user_id,
        parent_id=body.parent_id,
    )


@router.post(
    "/posts/{post_id}/like",
    response_model=LikeResponse,
    responses={
        400: {"description": "Unknown user", "model": ErrorResponse},
        404: {"description": "Post not found", "model": ErrorResponse},
    },
    summary="Like or unlike a post",
)
async def toggle_like(
    post_id: int,
    body: Optional[LikeRequest] = None,
    store: ForumStore = Depends(get_store),
    token_user_id: Optional[int] = Depends(get_token_user_id),
) -> LikeResponse:
    user_id = resolve_user_id(body.user_id if body else None, token_user_id)
    liked = await store.toggle_like(user_id=user_id, post_id=post_id)
    return LikeResponse(liked=liked)
