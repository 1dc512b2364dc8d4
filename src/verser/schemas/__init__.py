# src/verser/schemas/__init__.py
"""
Pydantic schemas for API request/response models and realtime frames.

These schemas define the structure of API data for serialization and validation.
"""

from .community import (
    CommunityCreate,
    CommunityMemberResponse,
    CommunityResponse,
    MembershipResponse,
    RoleResponse,
    RoleUpdate,
)
from .conversation import (
    ConversationCreate,
    ConversationResponse,
    MessageCreate,
    MessageResponse,
    MessageWithUser,
)
from .user import UserPublic

__all__ = [
    "CommunityCreate", "CommunityMemberResponse", "CommunityResponse",
    "MembershipResponse", "RoleResponse", "RoleUpdate",
    "ConversationCreate", "ConversationResponse",
    "MessageCreate", "MessageResponse", "MessageWithUser",
    "UserPublic",
]
