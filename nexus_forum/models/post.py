"""
Nexus Forum Backend — Post SQLAlchemy Model
============================================

What:  ORM model for the `posts` table: a reply within a topic.

Constraints:
    - topic_id is NOT NULL and ON DELETE CASCADE: dropping a topic drops its posts
    - parent_id optionally points at another post (threaded replies); the
      store checks that the parent lives in the same topic
    - likes mirrors COUNT(likes WHERE post_id = id); it is changed only in
      the same transaction that inserts or deletes the like row
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Index, Integer, Text, func, text
from sqlalchemy.orm import Mapped, mapped_column

from nexus_forum.database import Base, utcnow


class Post(Base):
    __tablename__ = "posts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)

    topic_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("topics.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=True
    )
    parent_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("posts.id"), nullable=True
    )

    likes: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=text("0")
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )

    __table_args__ = (
        Index("idx_posts_topic_created_at", "topic_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Post(id={self.id}, topic_id={self.topic_id}, likes={self.likes})>"
