"""
Nexus Forum Backend — User SQLAlchemy Model
============================================

What:  ORM model representing the `users` table.
How:   username and email carry UNIQUE constraints. The store checks for a
       taken username or email before inserting; the constraints catch a
       concurrent registration that slips past that check.

Lifecycle:
    1. Created on registration (or seeded: the `admin` account)
    2. last_seen bumped on every successful login
    3. Never deleted
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from nexus_forum.database import Base, utcnow


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    email: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)

    # Salted hash produced by werkzeug.security; the plaintext is never stored
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    avatar_url: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    bio: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )
    last_seen: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username='{self.username}')>"
