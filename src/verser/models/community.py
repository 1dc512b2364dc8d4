"""SQLAlchemy models for communities and their role-carrying memberships."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from sqlalchemy import DateTime, ForeignKey, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from verser.db.session import Base
from verser.db.time import utcnow


class CommunityRole(StrEnum):
    """Role a user holds inside a single community."""

    ADMIN = "admin"
    MAINTAINER = "maintainer"
    MEMBER = "member"


class Community(Base):
    """Community metadata used for grouping members and posts."""

    __tablename__ = "communities"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    icon: Mapped[str] = mapped_column(Text, nullable=False, default="fas fa-users")
    color: Mapped[str] = mapped_column(Text, nullable=False, default="blue")
    # Denormalized; storage adjusts it on join/leave.
    member_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    online_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )


class CommunityMember(Base):
    """Membership row linking a user to a community with a role.

    There is no unique constraint on (user_id, community_id);
    callers check membership before inserting.
    """

    __tablename__ = "community_memberships"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    community_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("communities.id", ondelete="CASCADE"), nullable=False, index=True
    )
    role: Mapped[str] = mapped_column(Text, nullable=False, default=CommunityRole.MEMBER.value)
    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
