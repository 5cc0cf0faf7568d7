"""
Nexus Forum Backend — In-Memory Forum Store
============================================

What:  ForumStore implementation on process-local dictionaries keyed by id.
Why:   Runs the full API without a database (STORE_BACKEND=memory) for demos,
       and gives tests a fast implementation of the same contract.
How:   Rows are plain dicts holding the same columns as the ORM models.
       Every mutation runs under one asyncio.Lock, so a like toggle or a
       post + topic bump is never interleaved with another request.

Lifecycle:
    One instance lives on app.state for the lifetime of the process.
    Nothing is persisted; a restart starts from the seeded defaults.
"""

import asyncio
import itertools
import logging
from datetime import timedelta
from typing import Any, Dict, List, Optional, Set, Tuple

from nexus_forum.database import utcnow
from nexus_forum.exceptions import ConflictError, NotFoundError, ValidationError
from nexus_forum.models.category import DEFAULT_CATEGORY_COLOR
from nexus_forum.schemas.auth import UserCredentials, UserPublic
from nexus_forum.schemas.forum import (
    CategoryResponse,
    PostListItem,
    PostResponse,
    StatsResponse,
    TopicDetail,
    TopicListItem,
    TopicListParams,
    TopicResponse,
)
from nexus_forum.services.store_base import (
    ACTIVE_USER_WINDOW_HOURS,
    ADMIN_BIO,
    ADMIN_EMAIL,
    ADMIN_USERNAME,
    DEFAULT_CATEGORIES,
    ForumStore,
)

logger = logging.getLogger(__name__)

Row = Dict[str, Any]


class MemoryForumStore(ForumStore):
    """Dictionary-backed forum store; state lives only as long as the instance."""

    def __init__(self):
        self._users: Dict[int, Row] = {}
        self._categories: Dict[int, Row] = {}
        self._topics: Dict[int, Row] = {}
        self._posts: Dict[int, Row] = {}
        self._likes: Set[Tuple[int, int]] = set()
        self._ids = {
            table: itertools.count(1) for table in ("users", "categories", "topics", "posts")
        }
        self._lock = asyncio.Lock()

    def _next_id(self, table: str) -> int:
        return next(self._ids[table])

    # ── Lifecycle ─────────────────────────────────────────────────────────

    async def initialize(self, admin_password_hash: str) -> None:
        async with self._lock:
            existing = {row["name"] for row in self._categories.values()}
            added = 0
            for seed in DEFAULT_CATEGORIES:
                if seed["name"] in existing:
                    continue
                category_id = self._next_id("categories")
                self._categories[category_id] = {
                    "id": category_id,
                    "color": DEFAULT_CATEGORY_COLOR,
                    "created_at": utcnow(),
                    **seed,
                }
                added += 1

            if self._find_user(ADMIN_USERNAME) is None:
                self._insert_user(ADMIN_USERNAME, ADMIN_EMAIL, admin_password_hash, bio=ADMIN_BIO)
            logger.info("In-memory store initialized: %d categories added", added)

    async def health_check(self) -> int:
        return len(self._categories)

    # ── Users ─────────────────────────────────────────────────────────────

    def _find_user(self, identifier: str) -> Optional[Row]:
        for user_id in sorted(self._users):
            user = self._users[user_id]
            if identifier in (user["username"], user["email"]):
                return user
        return None

    def _insert_user(
        self, username: str, email: str, password_hash: str, bio: Optional[str] = None
    ) -> Row:
        now = utcnow()
        user_id = self._next_id("users")
        user = {
            "id": user_id,
            "username": username,
            "email": email,
            "password_hash": password_hash,
            "avatar_url": None,
            "bio": bio,
            "created_at": now,
            "last_seen": now,
        }
        self._users[user_id] = user
        return user

    async def create_user(self, username: str, email: str, password_hash: str) -> UserPublic:
        async with self._lock:
            for user in self._users.values():
                if user["username"] == username:
                    raise ConflictError(
                        message="That username is already registered", field="username"
                    )
                if user["email"] == email:
                    raise ConflictError(message="That email is already registered", field="email")
            return UserPublic.model_validate(self._insert_user(username, email, password_hash))

    async def get_user_credentials(self, identifier: str) -> Optional[UserCredentials]:
        user = self._find_user(identifier)
        return UserCredentials.model_validate(user) if user is not None else None

    async def touch_last_seen(self, user_id: int) -> None:
        async with self._lock:
            user = self._users.get(user_id)
            if user is not None:
                user["last_seen"] = utcnow()

    # ── Read API ──────────────────────────────────────────────────────────

    async def list_categories(self) -> List[CategoryResponse]:
        return [
            CategoryResponse(
                **row,
                topic_count=sum(
                    1 for topic in self._topics.values() if topic["category_id"] == category_id
                ),
            )
            for category_id, row in sorted(self._categories.items())
        ]

    def _topic_fields(self, topic: Row) -> Row:
        user = self._users.get(topic["user_id"]) or {}
        category = self._categories.get(topic["category_id"]) or {}
        post_times = [
            post["created_at"] for post in self._posts.values() if post["topic_id"] == topic["id"]
        ]
        return {
            **topic,
            "username": user.get("username"),
            "avatar_url": user.get("avatar_url"),
            "user_bio": user.get("bio"),
            "category_name": category.get("name"),
            "category_color": category.get("color"),
            "post_count": len(post_times),
            "last_post_at": max(post_times) if post_times else None,
        }

    async def list_topics(self, params: TopicListParams) -> List[TopicListItem]:
        topics = [
            topic
            for topic in self._topics.values()
            if params.category is None or topic["category_id"] == params.category
        ]
        topics.sort(
            key=lambda t: (t["is_pinned"], t["created_at"], t["id"]),
            reverse=True,
        )
        page = topics[params.offset : params.offset + params.limit]
        return [TopicListItem.model_validate(self._topic_fields(topic)) for topic in page]

    async def get_topic(self, topic_id: int) -> TopicDetail:
        async with self._lock:
            topic = self._topics.get(topic_id)
            if topic is None:
                raise NotFoundError(resource="topic", resource_id=topic_id)
            topic["views"] += 1
            return TopicDetail.model_validate(self._topic_fields(topic))

    async def list_posts(self, topic_id: int) -> List[PostListItem]:
        posts = sorted(
            (post for post in self._posts.values() if post["topic_id"] == topic_id),
            key=lambda p: (p["created_at"], p["id"]),
        )
        items = []
        for post in posts:
            user = self._users.get(post["user_id"]) or {}
            items.append(
                PostListItem(
                    **post,
                    username=user.get("username"),
                    avatar_url=user.get("avatar_url"),
                    like_count=sum(1 for _, liked_post in self._likes if liked_post == post["id"]),
                )
            )
        return items

    async def get_stats(self) -> StatsResponse:
        cutoff = utcnow() - timedelta(hours=ACTIVE_USER_WINDOW_HOURS)
        return StatsResponse(
            user_count=len(self._users),
            topic_count=len(self._topics),
            post_count=len(self._posts),
            active_users=sum(1 for user in self._users.values() if user["last_seen"] > cutoff),
        )

    # ── Write API ─────────────────────────────────────────────────────────

    def _require_user(self, user_id: int) -> None:
        if user_id not in self._users:
            raise ValidationError(message=f"User {user_id} does not exist", field="user_id")

    async def create_topic(
        self, title: str, content: str, category_id: int, user_id: int
    ) -> TopicResponse:
        async with self._lock:
            if category_id not in self._categories:
                raise ValidationError(
                    message=f"Category {category_id} does not exist", field="category_id"
                )
            self._require_user(user_id)

            now = utcnow()
            topic_id = self._next_id("topics")
            topic = {
                "id": topic_id,
                "title": title,
                "content": content,
                "user_id": user_id,
                "category_id": category_id,
                "views": 0,
                "is_pinned": False,
                "is_locked": False,
                "created_at": now,
                "updated_at": now,
            }
            self._topics[topic_id] = topic
            logger.info("Topic %s created in category %s by user %s", topic_id, category_id, user_id)
            return TopicResponse.model_validate(topic)

    async def create_post(
        self,
        content: str,
        topic_id: int,
        user_id: int,
        parent_id: Optional[int] = None,
    ) -> PostResponse:
        async with self._lock:
            topic = self._topics.get(topic_id)
            if topic is None:
                raise ValidationError(message=f"Topic {topic_id} does not exist", field="topic_id")
            self._require_user(user_id)

            if parent_id is not None:
                parent = self._posts.get(parent_id)
                if parent is None:
                    raise ValidationError(
                        message=f"Parent post {parent_id} does not exist", field="parent_id"
                    )
                if parent["topic_id"] != topic_id:
                    raise ValidationError(
                        message=f"Parent post {parent_id} belongs to a different topic",
                        field="parent_id",
                    )

            now = utcnow()
            post_id = self._next_id("posts")
            post = {
                "id": post_id,
                "content": content,
                "topic_id": topic_id,
                "user_id": user_id,
                "parent_id": parent_id,
                "likes": 0,
                "created_at": now,
                "updated_at": now,
            }
            self._posts[post_id] = post
            topic["updated_at"] = now
            logger.info("Post %s added to topic %s", post_id, topic_id)
            return PostResponse.model_validate(post)

    async def toggle_like(self, user_id: int, post_id: int) -> bool:
        async with self._lock:
            post = self._posts.get(post_id)
            if post is None:
                raise NotFoundError(resource="post", resource_id=post_id)
            self._require_user(user_id)

            key = (user_id, post_id)
            if key in self._likes:
                self._likes.remove(key)
                post["likes"] -= 1
                return False
            self._likes.add(key)
            post["likes"] += 1
            return True
