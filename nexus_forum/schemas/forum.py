"""
Nexus Forum Backend — Forum Request/Response Schemas
=====================================================

What:  Pydantic models defining the API contract for categories, topics,
       posts, likes and statistics.
How:   Both store implementations return these models, so the HTTP layer
       does not know which store served a request.

Row shapes:
    TopicResponse    the stored topic row (POST /api/topics)
    TopicListItem    + author, category and post aggregates (GET /api/topics)
    TopicDetail      + author bio (GET /api/topics/{id})
    PostResponse     the stored post row (POST /api/posts)
    PostListItem     + author and live like_count (GET /api/topics/{id}/posts)
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


# ══════════════════════════════════════════════════════════════════════════
# Categories
# ══════════════════════════════════════════════════════════════════════════


class CategoryResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    color: str
    icon: Optional[str] = None
    created_at: Optional[datetime] = None
    topic_count: int = Field(default=0, description="Live count of topics in the category")

    model_config = {"from_attributes": True}


# ══════════════════════════════════════════════════════════════════════════
# Topics
# ══════════════════════════════════════════════════════════════════════════


class CreateTopicRequest(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    content: str = Field(min_length=1)
    category_id: int
    user_id: Optional[int] = Field(
        default=None,
        description="Author id. Falls back to the bearer token's user when omitted.",
    )


class TopicResponse(BaseModel):
    id: int
    title: str
    content: str
    user_id: Optional[int] = None
    category_id: Optional[int] = None
    views: int = 0
    is_pinned: bool = False
    is_locked: bool = False
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class TopicListItem(TopicResponse):
    username: Optional[str] = None
    avatar_url: Optional[str] = None
    category_name: Optional[str] = None
    category_color: Optional[str] = None
    post_count: int = 0
    last_post_at: Optional[datetime] = None


class TopicDetail(TopicListItem):
    user_bio: Optional[str] = None


class TopicListParams(BaseModel):
    """
    Validated query parameters for GET /api/topics.

    Pagination is offset based: offset = (page - 1) * limit.
    limit is capped at 100.
    """
    category: Optional[int] = Field(default=None, description="Filter by category id")
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=20, ge=1, le=100)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


# ══════════════════════════════════════════════════════════════════════════
# Posts & Likes
# ══════════════════════════════════════════════════════════════════════════


class CreatePostRequest(BaseModel):
    content: str = Field(min_length=1)
    topic_id: int
    user_id: Optional[int] = None
    parent_id: Optional[int] = Field(
        default=None, description="Post being replied to; must belong to the same topic"
    )


class PostResponse(BaseModel):
    id: int
    content: str
    topic_id: int
    user_id: Optional[int] = None
    parent_id: Optional[int] = None
    likes: int = 0
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class PostListItem(PostResponse):
    username: Optional[str] = None
    avatar_url: Optional[str] = None
    like_count: int = 0


class LikeRequest(BaseModel):
    user_id: Optional[int] = None


class LikeResponse(BaseModel):
    liked: bool


# ══════════════════════════════════════════════════════════════════════════
# Statistics
# ══════════════════════════════════════════════════════════════════════════


class StatsResponse(BaseModel):
    user_count: int
    topic_count: int
    post_count: int
    active_users: int = Field(description="Users seen within the last 24 hours")
