"""Conversation and chat message schemas."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from .user import UserPublic


class ConversationCreate(BaseModel):
    """Schema for opening a new conversation."""

    name: str = Field(default="New Chat", min_length=1, max_length=100)
    type: Literal["group", "direct"] = "direct"
    avatar: str | None = None
    description: str | None = None


class ConversationResponse(BaseModel):
    """Conversation metadata returned by the API."""

    id: int
    name: str
    type: str
    avatar: str | None
    description: str | None
    member_count: int
    created_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class MessageCreate(BaseModel):
    """Schema for posting a message over REST; the author is the caller."""

    content: str = Field(..., min_length=1, max_length=5000)
    type: Literal["text", "image", "file"] = "text"


class MessageResponse(BaseModel):
    """Persisted chat message."""

    id: int
    conversation_id: int
    user_id: int
    content: str
    type: str
    created_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class MessageWithUser(MessageResponse):
    """Message joined with its author's public record."""

    user: UserPublic | None = None
