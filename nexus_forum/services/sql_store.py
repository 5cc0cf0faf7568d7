"""
Nexus Forum Backend — Relational Forum Store
=============================================

What:  ForumStore implementation on an async SQLAlchemy session.
How:   One instance wraps the session of a single request; the caller's
       session_scope commits when the request succeeds and rolls back when
       anything raises, so multi-statement writes (post + topic bump,
       like row + counter) land together or not at all.
Who:   Built per request by nexus_forum.dependencies.get_store.

Aggregates:
    topic_count  LEFT JOIN topics, GROUP BY category
    post_count   pre-aggregated posts subquery joined on topic_id
    like_count   correlated COUNT over likes per post

Like toggle:
    1. DELETE the (user, post) like; if a row went away → unliked
    2. otherwise INSERT inside a SAVEPOINT → liked
    3. if the INSERT hits uq_likes_user_post a concurrent toggle won the race;
       the toggle turns into the opposite action (DELETE → unliked)
"""

import logging
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import AsyncGenerator, List, Optional

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from nexus_forum.database import utcnow
from nexus_forum.exceptions import (
    ConflictError,
    DatabaseError,
    ForumError,
    NotFoundError,
    ValidationError,
)
from nexus_forum.models.category import Category
from nexus_forum.models.like import Like
from nexus_forum.models.post import Post
from nexus_forum.models.topic import Topic
from nexus_forum.models.user import User
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


class SQLForumStore(ForumStore):
    """Forum persistence on PostgreSQL (asyncpg) or SQLite (aiosqlite)."""

    def __init__(self, session: AsyncSession):
        self.session = session

    @asynccontextmanager
    async def _translate_errors(self, operation: str) -> AsyncGenerator[None, None]:
        """
        Map driver errors onto the application hierarchy.

        IntegrityError (NOT NULL, FOREIGN KEY, UNIQUE) → ValidationError
        any other SQLAlchemyError                      → DatabaseError
        """
        try:
            yield
        except ForumError:
            raise
        except IntegrityError as e:
            logger.info("Constraint violation during %s: %s", operation, e.orig)
            raise ValidationError(
                message=f"Could not {operation}: invalid reference or constraint violation",
                context={"original_error": str(e.orig)},
            ) from e
        except SQLAlchemyError as e:
            logger.error("Database error during %s: %s", operation, str(e), exc_info=True)
            raise DatabaseError(
                context={"operation": operation, "original_error": str(e)},
            ) from e

    # ── Lifecycle ─────────────────────────────────────────────────────────

    async def initialize(self, admin_password_hash: str) -> None:
        async with self._translate_errors("initialize the forum"):
            existing = set((await self.session.scalars(select(Category.name))).all())
            missing = [seed for seed in DEFAULT_CATEGORIES if seed["name"] not in existing]
            for seed in missing:
                self.session.add(Category(**seed))

            admin_id = await self.session.scalar(
                select(User.id).where(User.username == ADMIN_USERNAME)
            )
            if admin_id is None:
                self.session.add(
                    User(
                        username=ADMIN_USERNAME,
                        email=ADMIN_EMAIL,
                        password_hash=admin_password_hash,
                        bio=ADMIN_BIO,
                    )
                )
            await self.session.flush()
            logger.info(
                "Store initialized: %d categories added, admin %s",
                len(missing),
                "created" if admin_id is None else "present",
            )

    async def health_check(self) -> int:
        return await self.session.scalar(select(func.count(Category.id))) or 0

    # ── Users ─────────────────────────────────────────────────────────────

    async def create_user(self, username: str, email: str, password_hash: str) -> UserPublic:
        async with self._translate_errors("register user"):
            taken = (
                await self.session.execute(
                    select(User.username, User.email).where(
                        or_(User.username == username, User.email == email)
                    )
                )
            ).first()
            if taken is not None:
                field = "username" if taken.username == username else "email"
                raise ConflictError(message=f"That {field} is already registered", field=field)

            user = User(username=username, email=email, password_hash=password_hash)
            self.session.add(user)
            try:
                await self.session.flush()
            except IntegrityError as e:
                # Lost a race against a concurrent registration
                raise ConflictError(context={"original_error": str(e.orig)}) from e
            return UserPublic.model_validate(user)

    async def get_user_credentials(self, identifier: str) -> Optional[UserCredentials]:
        async with self._translate_errors("look up user"):
            user = await self.session.scalar(
                select(User)
                .where(or_(User.username == identifier, User.email == identifier))
                .order_by(User.id)
                .limit(1)
                .execution_options(populate_existing=True)
            )
            return UserCredentials.model_validate(user) if user is not None else None

    async def touch_last_seen(self, user_id: int) -> None:
        async with self._translate_errors("update last seen"):
            await self.session.execute(
                update(User).where(User.id == user_id).values(last_seen=utcnow())
            )

    # ── Read API ──────────────────────────────────────────────────────────

    async def list_categories(self) -> List[CategoryResponse]:
        async with self._translate_errors("list categories"):
            rows = (
                await self.session.execute(
                    select(Category, func.count(Topic.id).label("topic_count"))
                    .outerjoin(Topic, Topic.category_id == Category.id)
                    .group_by(Category.id)
                    .order_by(Category.id)
                )
            ).all()
            return [
                CategoryResponse.model_validate(category).model_copy(
                    update={"topic_count": topic_count}
                )
                for category, topic_count in rows
            ]

    def _topic_query(self):
        post_stats = (
            select(
                Post.topic_id.label("topic_id"),
                func.count(Post.id).label("post_count"),
                func.max(Post.created_at).label("last_post_at"),
            )
            .group_by(Post.topic_id)
            .subquery()
        )
        return (
            select(
                Topic,
                User.username,
                User.avatar_url,
                User.bio.label("user_bio"),
                Category.name.label("category_name"),
                Category.color.label("category_color"),
                func.coalesce(post_stats.c.post_count, 0).label("post_count"),
                post_stats.c.last_post_at,
            )
            .outerjoin(User, Topic.user_id == User.id)
            .outerjoin(Category, Topic.category_id == Category.id)
            .outerjoin(post_stats, post_stats.c.topic_id == Topic.id)
        )

    @staticmethod
    def _topic_fields(row) -> dict:
        data = TopicResponse.model_validate(row.Topic).model_dump()
        data.update(
            username=row.username,
            avatar_url=row.avatar_url,
            category_name=row.category_name,
            category_color=row.category_color,
            post_count=row.post_count,
            last_post_at=row.last_post_at,
        )
        return data

    async def list_topics(self, params: TopicListParams) -> List[TopicListItem]:
        async with self._translate_errors("list topics"):
            query = self._topic_query()
            if params.category is not None:
                query = query.where(Topic.category_id == params.category)
            query = (
                query.order_by(Topic.is_pinned.desc(), Topic.created_at.desc(), Topic.id.desc())
                .limit(params.limit)
                .offset(params.offset)
                .execution_options(populate_existing=True)
            )
            rows = (await self.session.execute(query)).all()
            return [TopicListItem(**self._topic_fields(row)) for row in rows]

    async def get_topic(self, topic_id: int) -> TopicDetail:
        async with self._translate_errors("fetch topic"):
            result = await self.session.execute(
                update(Topic)
                .where(Topic.id == topic_id)
                .values(views=Topic.views + 1)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise NotFoundError(resource="topic", resource_id=topic_id)

            row = (
                await self.session.execute(
                    self._topic_query()
                    .where(Topic.id == topic_id)
                    .execution_options(populate_existing=True)
                )
            ).first()
            if row is None:
                raise NotFoundError(resource="topic", resource_id=topic_id)
            return TopicDetail(**self._topic_fields(row), user_bio=row.user_bio)

    async def list_posts(self, topic_id: int) -> List[PostListItem]:
        async with self._translate_errors("list posts"):
            like_count = (
                select(func.count(Like.id))
                .where(Like.post_id == Post.id)
                .correlate(Post)
                .scalar_subquery()
            )
            rows = (
                await self.session.execute(
                    select(Post, User.username, User.avatar_url, like_count.label("like_count"))
                    .outerjoin(User, Post.user_id == User.id)
                    .where(Post.topic_id == topic_id)
                    .order_by(Post.created_at.asc(), Post.id.asc())
                    .execution_options(populate_existing=True)
                )
            ).all()
            items = []
            for row in rows:
                data = PostResponse.model_validate(row.Post).model_dump()
                data.update(
                    username=row.username,
                    avatar_url=row.avatar_url,
                    like_count=row.like_count,
                )
                items.append(PostListItem(**data))
            return items

    async def get_stats(self) -> StatsResponse:
        async with self._translate_errors("compute stats"):
            cutoff = utcnow() - timedelta(hours=ACTIVE_USER_WINDOW_HOURS)
            scalar = self.session.scalar
            return StatsResponse(
                user_count=await scalar(select(func.count(User.id))) or 0,
                topic_count=await scalar(select(func.count(Topic.id))) or 0,
                post_count=await scalar(select(func.count(Post.id))) or 0,
                active_users=await scalar(
                    select(func.count(User.id)).where(User.last_seen > cutoff)
                )
                or 0,
            )

    # ── Write API ─────────────────────────────────────────────────────────

    async def create_topic(
        self, title: str, content: str, category_id: int, user_id: int
    ) -> TopicResponse:
        async with self._translate_errors("create topic"):
            topic = Topic(
                title=title,
                content=content,
                category_id=category_id,
                user_id=user_id,
            )
            self.session.add(topic)
            await self.session.flush()
            logger.info("Topic %s created in category %s by user %s", topic.id, category_id, user_id)
            return TopicResponse.model_validate(topic)

    async def create_post(
        self,
        content: str,
        topic_id: int,
        user_id: int,
        parent_id: Optional[int] = None,
    ) -> PostResponse:
        async with self._translate_errors("create post"):
            if await self.session.get(Topic, topic_id) is None:
                raise ValidationError(message=f"Topic {topic_id} does not exist", field="topic_id")

            if parent_id is not None:
                parent = await self.session.get(Post, parent_id)
                if parent is None:
                    raise ValidationError(
                        message=f"Parent post {parent_id} does not exist", field="parent_id"
                    )
                if parent.topic_id != topic_id:
                    raise ValidationError(
                        message=f"Parent post {parent_id} belongs to a different topic",
                        field="parent_id",
                    )

            post = Post(content=content, topic_id=topic_id, user_id=user_id, parent_id=parent_id)
            self.session.add(post)
            await self.session.flush()

            await self.session.execute(
                update(Topic)
                .where(Topic.id == topic_id)
                .values(updated_at=post.created_at)
                .execution_options(synchronize_session=False)
            )
            logger.info("Post %s added to topic %s", post.id, topic_id)
            return PostResponse.model_validate(post)

    async def _adjust_like_counter(self, post_id: int, delta: int) -> None:
        await self.session.execute(
            update(Post)
            .where(Post.id == post_id)
            .values(likes=Post.likes + delta)
            .execution_options(synchronize_session=False)
        )

    async def _remove_like(self, user_id: int, post_id: int) -> bool:
        result = await self.session.execute(
            delete(Like)
            .where(Like.user_id == user_id, Like.post_id == post_id)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount:
            await self._adjust_like_counter(post_id, -1)
            return True
        return False

    async def toggle_like(self, user_id: int, post_id: int) -> bool:
        async with self._translate_errors("toggle like"):
            if await self.session.get(Post, post_id) is None:
                raise NotFoundError(resource="post", resource_id=post_id)
            if await self.session.get(User, user_id) is None:
                raise ValidationError(message=f"User {user_id} does not exist", field="user_id")

            if await self._remove_like(user_id, post_id):
                return False

            try:
                async with self.session.begin_nested():
                    self.session.add(Like(user_id=user_id, post_id=post_id))
            except IntegrityError:
                logger.info(
                    "Concurrent like on post %s by user %s; toggling it off", post_id, user_id
                )
                await self._remove_like(user_id, post_id)
                return False

            await self._adjust_like_counter(post_id, 1)
            return True
