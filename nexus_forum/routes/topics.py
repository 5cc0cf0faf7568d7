"""
Nexus Forum Backend — Topic Route Handlers
===========================================

What:  Topic listing, detail, creation, and the posts of a topic.

    GET  /api/topics                 list (category filter, page, limit)
    POST /api/topics                 create
    GET  /api/topics/{id}            detail; every call counts as a view
    GET  /api/topics/{id}/posts      posts, oldest first

Caching:
    GET /api/topics/{id} mutates the view counter, so it is sent with
    Cache-Control: no-store.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response

from nexus_forum.dependencies import get_store, get_token_user_id, resolve_user_id
from nexus_forum.exceptions import ValidationError
from nexus_forum.schemas.common import ErrorResponse
from nexus_forum.schemas.forum import (
    CreateTopicRequest,
    PostListItem,
    TopicDetail,
    TopicListItem,
    TopicListParams,
    TopicResponse,
)
from nexus_forum.services.store_base import ForumStore

router = APIRouter(prefix="/api", tags=["Topics"])


def _category_filter(raw: Optional[str]) -> Optional[int]:
    """`?category=` (blank) lists every category; anything else must be an id."""
    if raw is None or not raw.strip():
        return None
    try:
        return int(raw)
    except ValueError as e:
        raise ValidationError(
            message=f"category must be a category id, got '{raw}'", field="category"
        ) from e


@router.get(
    "/topics",
    response_model=List[TopicListItem],
    responses={400: {"description": "Invalid paging parameters", "model": ErrorResponse}},
    summary="List topics",
    description=(
        "Pinned topics first, then newest first. Each row carries the author, "
        "the category, the number of posts and the time of the latest post. "
        "Paging is offset based: offset = (page - 1) * limit."
    ),
)
async def list_topics(
    category: Optional[str] = Query(
        default=None, description="Only topics of this category id; empty means all"
    ),
    page: int = Query(default=1, ge=1, description="1-based page number"),
    limit: int = Query(default=20, ge=1, le=100, description="Topics per page (max 100)"),
    store: ForumStore = Depends(get_store),
) -> List[TopicListItem]:
    params = TopicListParams(category=_category_filter(category), page=page, limit=limit)
    return await store.list_topics(params)


@router.post(
    "/topics",
    response_model=TopicResponse,
    responses={400: {"description": "Invalid input or reference", "model": ErrorResponse}},
    summary="Create a topic",
)
async def create_topic(
    body: CreateTopicRequest,
    store: ForumStore = Depends(get_store),
    token_user_id: Optional[int] = Depends(get_token_user_id),
) -> TopicResponse:
    user_id = resolve_user_id(body.user_id, token_user_id)
    return await store.create_topic(
        title=body.title,
        content=body.content,
        category_id=body.category_id,
        user_id=user_id,
    )


@router.get(
    "/topics/{topic_id}",
    response_model=TopicDetail,
    responses={404: {"description": "Topic not found", "model": ErrorResponse}},
    summary="Get a topic (counts as a view)",
)
async def get_topic(
    topic_id: int,
    response: Response,
    store: ForumStore = Depends(get_store),
) -> TopicDetail:
    topic = await store.get_topic(topic_id)
    response.headers["Cache-Control"] = "no-store"
    return topic


@router.get(
    "/topics/{topic_id}/posts",
    response_model=List[PostListItem],
    summary="List the posts of a topic",
)
async def list_posts(
    topic_id: int,
    store: ForumStore = Depends(get_store),
) -> List[PostListItem]:
    return await store.list_posts(topic_id)
