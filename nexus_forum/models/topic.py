"""
Nexus Forum Backend — Topic SQLAlchemy Model
=============================================

What:  ORM model for the `topics` table: a discussion thread in a category.

References:
    user_id     → users.id       (no cascade)
    category_id → categories.id  (no cascade)

    Reads outer-join both references, so a topic whose author or category
    row is missing is still listed.

Mutations after creation:
    - views:      +1 on every GET /api/topics/{id}
    - updated_at: bumped whenever a post is added

Index on (is_pinned, created_at):
    Serves the listing order "pinned first, newest first".
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    false,
    func,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from nexus_forum.database import Base, utcnow


class Topic(Base):
    __tablename__ = "topics"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)

    user_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=True
    )
    category_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("categories.id"), nullable=True
    )

    views: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=text("0")
    )

    # Stored and returned only; nothing in the API enforces them
    is_pinned: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false()
    )
    is_locked: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false()
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )

    __table_args__ = (
        Index("idx_topics_category_id", "category_id"),
        Index("idx_topics_pinned_created_at", "is_pinned", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Topic(id={self.id}, title='{self.title}', views={self.views})>"
