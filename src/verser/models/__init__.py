# src/verser/models/__init__.py
"""SQLAlchemy models for the Verser application."""

from .community import Community, CommunityMember, CommunityRole
from .conversation import Conversation, Message
from .user import User, UserStatus

__all__ = [
    "Community", "CommunityMember", "CommunityRole",
    "Conversation", "Message",
    "User", "UserStatus",
]
