"""
Nexus Forum Backend — Abstract Forum Store Interface
=====================================================

What:  Abstract base class defining the data/access contract of the forum.
Why:   The relational store and the in-memory demo store must behave the same;
       routes and the auth service only ever see this interface.
How:   Concrete implementations inherit from ForumStore:
         - SQLForumStore: one AsyncSession per request (sql_store.py)
         - MemoryForumStore: process-local dictionaries (memory_store.py)
Who:   Injected into route handlers by nexus_forum.dependencies.get_store.

Contract shared by every implementation:
    - Reads return the Pydantic models from nexus_forum.schemas.forum
    - Reference and uniqueness violations raise ValidationError / ConflictError
    - Unknown topic (get) or post (like) raises NotFoundError
    - Counts (topic_count, post_count, like_count) are computed on read
"""

from abc import ABC, abstractmethod
from typing import List, Optional

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

# Seeded on every initialization; inserted only when the name is absent
DEFAULT_CATEGORIES = (
    {
        "name": "General Discussion",
        "description": "Talk about anything related to our community",
        "color": "#667eea",
        "icon": "chat",
    },
    {
        "name": "Announcements",
        "description": "Important updates and news",
        "color": "#f56565",
        "icon": "megaphone",
    },
    {
        "name": "Help & Support",
        "description": "Get help from the community",
        "color": "#48bb78",
        "icon": "help-circle",
    },
    {
        "name": "Feature Requests",
        "description": "Suggest new features and improvements",
        "color": "#ed8936",
        "icon": "lightbulb",
    },
)

ADMIN_USERNAME = "admin"
ADMIN_EMAIL = "admin@nexus.com"
ADMIN_BIO = "Forum Administrator"

ACTIVE_USER_WINDOW_HOURS = 24


class ForumStore(ABC):
    """
    Abstract interface for forum persistence.

    Implementations:
        - SQLForumStore: PostgreSQL (asyncpg) in production, SQLite in tests
        - MemoryForumStore: demo mode and fast tests, data lost on restart
    """

    # ── Lifecycle ─────────────────────────────────────────────────────────

    @abstractmethod
    async def initialize(self, admin_password_hash: str) -> None:
        """
        Seed default categories and the admin account.

        Idempotent: categories are matched by name and the admin by username,
        so running it on every startup never duplicates rows.
        """
        ...

    @abstractmethod
    async def health_check(self) -> int:
        """Return the number of categories; raises if the store is unreachable."""
        ...

    # ── Users ─────────────────────────────────────────────────────────────

    @abstractmethod
    async def create_user(self, username: str, email: str, password_hash: str) -> UserPublic:
        """
        Insert a user.

        Raises:
            ConflictError: username or email already taken
        """
        ...

    @abstractmethod
    async def get_user_credentials(self, identifier: str) -> Optional[UserCredentials]:
        """Look a user up by username OR email; None when neither matches."""
        ...

    @abstractmethod
    async def touch_last_seen(self, user_id: int) -> None:
        """Set last_seen to now."""
        ...

    # ── Read API ──────────────────────────────────────────────────────────

    @abstractmethod
    async def list_categories(self) -> List[CategoryResponse]:
        """All categories ordered by id, each with a live topic_count."""
        ...

    @abstractmethod
    async def list_topics(self, params: TopicListParams) -> List[TopicListItem]:
        """
        One page of topics: pinned first, then newest first.

        Rows carry author name/avatar, category name/colour, post_count and
        last_post_at.
        """
        ...

    @abstractmethod
    async def get_topic(self, topic_id: int) -> TopicDetail:
        """
        Fetch a topic and count the fetch as a view.

        Every call increments views by one, repeated calls included.

        Raises:
            NotFoundError: no topic with this id
        """
        ...

    @abstractmethod
    async def list_posts(self, topic_id: int) -> List[PostListItem]:
        """Posts of a topic, oldest first, each with a live like_count."""
        ...

    @abstractmethod
    async def get_stats(self) -> StatsResponse:
        """User, topic and post totals plus users seen in the last 24 hours."""
        ...

    # ── Write API ─────────────────────────────────────────────────────────

    @abstractmethod
    async def create_topic(
        self, title: str, content: str, category_id: int, user_id: int
    ) -> TopicResponse:
        """
        Insert a topic.

        Raises:
            ValidationError: category or user does not exist
        """
        ...

    @abstractmethod
    async def create_post(
        self,
        content: str,
        topic_id: int,
        user_id: int,
        parent_id: Optional[int] = None,
    ) -> PostResponse:
        """
        Insert a post and bump the topic's updated_at.

        Raises:
            ValidationError: unknown topic or user, or a parent post that is
                missing or belongs to another topic
        """
        ...

    @abstractmethod
    async def toggle_like(self, user_id: int, post_id: int) -> bool:
        """
        Like the post if the user has not, otherwise remove the like.

        Returns the new state (True = liked). The like row and the post's
        likes counter change together or not at all.

        Raises:
            NotFoundError: no post with this id
            ValidationError: no user with this id
        """
        ...
