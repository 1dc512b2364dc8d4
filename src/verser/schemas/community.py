# src/verser/schemas/community.py
"""Community-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from verser.models.community import CommunityRole

from .user import UserPublic


class CommunityCreate(BaseModel):
    """Schema for creating a new community."""

    name: str = Field(..., min_length=1, max_length=100)
    description: str | None = None
    icon: str = "fas fa-users"
    color: str = "blue"


class CommunityResponse(BaseModel):
    """Schema for community information returned by the API."""

    id: int
    name: str
    description: str | None
    icon: str
    color: str
    member_count: int
    online_count: int
    created_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class MembershipResponse(BaseModel):
    """A single membership row."""

    id: int
    user_id: int
    community_id: int
    role: CommunityRole
    joined_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class CommunityMemberResponse(UserPublic):
    """Public user data annotated with the user's role in the community."""

    role: CommunityRole
    joined_at: datetime | None = None


class RoleUpdate(BaseModel):
    """Body of a role change request."""

    role: CommunityRole


class RoleResponse(BaseModel):
    """Caller's role in a community, or null when not a member."""

    role: CommunityRole | None
