"""Wire schemas for the realtime relay.

Frames are JSON text objects discriminated by ``type``. Field names on the
wire are camelCase (``userId``, ``conversationId``, ``isTyping``); the
embedded ``message`` and ``user`` records reuse the REST schemas.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from verser.models.user import UserStatus

from .conversation import MessageResponse
from .user import UserPublic


# Ids must fit a signed 64-bit database column.
WireId = Annotated[int, Field(ge=-(2**63), le=2**63 - 1)]


class _Frame(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class JoinFrame(_Frame):
    """Bind a user id to the sending connection."""

    type: Literal["join"]
    user_id: WireId | None = Field(default=None, alias="userId")


class SendMessageFrame(_Frame):
    """Persist a chat message and fan it out to every connection."""

    type: Literal["send_message"]
    user_id: WireId | None = Field(default=None, alias="userId")
    conversation_id: WireId | None = Field(default=None, alias="conversationId")
    content: str | None = None


class TypingFrame(_Frame):
    """Ephemeral typing indicator."""

    type: Literal["typing"]
    user_id: WireId | None = Field(default=None, alias="userId")
    conversation_id: WireId | None = Field(default=None, alias="conversationId")
    is_typing: bool | None = Field(default=None, alias="isTyping")


class PongFrame(_Frame):
    """Heartbeat reply to a ``ping`` event."""

    type: Literal["pong"]


InboundFrame = Annotated[
    JoinFrame | SendMessageFrame | TypingFrame | PongFrame,
    Field(discriminator="type"),
]

inbound_frame_adapter: TypeAdapter[Any] = TypeAdapter(InboundFrame)

INBOUND_FRAME_TYPES = frozenset({"join", "send_message", "typing", "pong"})


class _Event(BaseModel):
    def to_wire(self) -> dict[str, Any]:
        """Return the JSON-ready dict sent to clients."""
        return self.model_dump(mode="json", by_alias=True)


class UserStatusEvent(_Event):
    type: Literal["user_status"] = "user_status"
    user_id: int = Field(serialization_alias="userId")
    status: UserStatus


class NewMessageEvent(_Event):
    type: Literal["new_message"] = "new_message"
    message: MessageResponse
    user: UserPublic | None


class UserTypingEvent(_Event):
    type: Literal["user_typing"] = "user_typing"
    user_id: int | None = Field(serialization_alias="userId")
    conversation_id: int | None = Field(serialization_alias="conversationId")
    is_typing: bool | None = Field(serialization_alias="isTyping")


class PingEvent(_Event):
    type: Literal["ping"] = "ping"
