"""User-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class UserPublic(BaseModel):
    """Public projection of a user; sensitive columns are never included."""

    id: int
    username: str
    avatar: str | None = None
    bio: str | None = None
    status: str
    last_seen: datetime | None = None
    created_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)
