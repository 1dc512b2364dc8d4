# src/verser/models/user.py
"""SQLAlchemy models for user accounts and presence."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from sqlalchemy import DateTime, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from verser.db.session import Base
from verser.db.time import utcnow


class UserStatus(StrEnum):
    """Presence states recorded on the user row."""

    ONLINE = "online"
    OFFLINE = "offline"
    AWAY = "away"


class User(Base):
    """Registered account; the relay keeps `status` and `last_seen` current."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    email: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    # Never serialized; see schemas.user.UserPublic.
    password_hash: Mapped[str | None] = mapped_column(Text, nullable=True)
    avatar: Mapped[str | None] = mapped_column(Text, nullable=True)
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(Text, nullable=False, default=UserStatus.OFFLINE.value)
    last_seen: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
