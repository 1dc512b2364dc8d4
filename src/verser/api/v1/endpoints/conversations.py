# src/verser/api/v1/endpoints/conversations.py
"""Conversation and chat message endpoints.

Posting here is the REST counterpart of the relay's ``send_message`` frame;
it persists the message but does not fan it out over WebSockets.
"""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from verser.models import Conversation, Message
from verser.schemas.conversation import (
    ConversationCreate,
    ConversationResponse,
    MessageCreate,
    MessageResponse,
    MessageWithUser,
)
from verser.schemas.user import UserPublic

from ..dependencies import CurrentUserDep, StorageDep

router = APIRouter(prefix="/conversations", tags=["conversations"])


async def _with_user(storage: StorageDep, message: Message) -> MessageWithUser:
    user = await storage.get_user(message.user_id)
    return MessageWithUser(
        **MessageResponse.model_validate(message).model_dump(),
        user=UserPublic.model_validate(user) if user is not None else None,
    )


@router.get("/", response_model=list[ConversationResponse])
async def list_conversations(
    _current_user: CurrentUserDep,
    storage: StorageDep,
) -> list[Conversation]:
    """List all conversations."""
    return await storage.list_conversations()


@router.post("/", response_model=ConversationResponse, status_code=status.HTTP_201_CREATED)
async def create_conversation(
    conversation_data: ConversationCreate,
    _current_user: CurrentUserDep,
    storage: StorageDep,
) -> Conversation:
    """Open a new conversation."""
    return await storage.create_conversation(
        name=conversation_data.name,
        type=conversation_data.type,
        avatar=conversation_data.avatar,
        description=conversation_data.description,
    )


@router.get("/{conversation_id}/messages", response_model=list[MessageWithUser])
async def list_messages(
    conversation_id: int,
    _current_user: CurrentUserDep,
    storage: StorageDep,
) -> list[MessageWithUser]:
    """Return a conversation's messages, oldest first, each with its author."""
    messages = await storage.get_messages_by_conversation(conversation_id)
    return [await _with_user(storage, message) for message in messages]


@router.post(
    "/{conversation_id}/messages",
    response_model=MessageWithUser,
    status_code=status.HTTP_201_CREATED,
)
async def post_message(
    conversation_id: int,
    message_data: MessageCreate,
    current_user: CurrentUserDep,
    storage: StorageDep,
) -> MessageWithUser:
    """Post a message to an existing conversation as the caller."""
    if await storage.get_conversation(conversation_id) is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Conversation not found"
        )

    message = await storage.create_message(
        conversation_id=conversation_id,
        user_id=current_user.id,
        content=message_data.content,
        type=message_data.type,
    )
    return await _with_user(storage, message)
