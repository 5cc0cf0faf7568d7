"""
Nexus Forum Backend — Category SQLAlchemy Model
================================================

What:  ORM model for the `categories` table.

Categories are seeded at initialization and static afterwards. The seed is
keyed on `name`, so the column is unique. topic_count is never stored; the
store computes it with a LEFT JOIN on every read.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Integer, String, Text, func, text
from sqlalchemy.orm import Mapped, mapped_column

from nexus_forum.database import Base, utcnow

DEFAULT_CATEGORY_COLOR = "#667eea"


class Category(Base):
    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # 7-char hex colour, e.g. #48bb78
    color: Mapped[str] = mapped_column(
        String(7),
        nullable=False,
        default=DEFAULT_CATEGORY_COLOR,
        server_default=text(f"'{DEFAULT_CATEGORY_COLOR}'"),
    )
    icon: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )

    def __repr__(self) -> str:
        return f"<Category(id={self.id}, name='{self.name}')>"
