"""Storage contract shared by the realtime relay and the REST layer.

Backends return ORM model instances (``User``, ``Community`` ...). Lookups
for rows that do not exist return ``None``/``False``/empty lists rather than
raising; infrastructure failures are reported as :class:`StorageError`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from verser.models import (
    Community,
    CommunityMember,
    CommunityRole,
    Conversation,
    Message,
    User,
)

__all__ = ["Storage", "StorageError"]


class StorageError(RuntimeError):
    """Raised when a backend cannot complete an operation."""


class Storage(ABC):
    """Async persistence interface for users, chat and community membership."""

    # Users

    @abstractmethod
    async def get_user(self, user_id: int) -> User | None:
        """Return a user by id."""

    @abstractmethod
    async def get_user_by_username(self, username: str) -> User | None:
        """Return a user by unique username."""

    @abstractmethod
    async def create_user(
        self,
        *,
        username: str,
        email: str,
        password_hash: str | None = None,
        avatar: str | None = None,
        bio: str | None = None,
    ) -> User:
        """Insert a new user; new accounts start ``offline``."""

    @abstractmethod
    async def update_user_status(self, user_id: int, status: str) -> User | None:
        """Set presence status and refresh ``last_seen``."""

    @abstractmethod
    async def list_users(self) -> list[User]:
        """Return every user."""

    # Conversations

    @abstractmethod
    async def get_conversation(self, conversation_id: int) -> Conversation | None:
        """Return a conversation by id."""

    @abstractmethod
    async def list_conversations(self) -> list[Conversation]:
        """Return every conversation."""

    @abstractmethod
    async def create_conversation(
        self,
        *,
        name: str,
        type: str = "group",
        avatar: str | None = None,
        description: str | None = None,
        member_count: int = 0,
    ) -> Conversation:
        """Insert a new conversation."""

    # Messages

    @abstractmethod
    async def create_message(
        self,
        *,
        conversation_id: int,
        user_id: int,
        content: str,
        type: str = "text",
    ) -> Message:
        """Append a chat message."""

    @abstractmethod
    async def get_messages_by_conversation(self, conversation_id: int) -> list[Message]:
        """Return a conversation's messages, oldest first."""

    @abstractmethod
    async def get_recent_messages(self, limit: int = 50) -> list[Message]:
        """Return the newest messages across all conversations, newest first."""

    # Communities

    @abstractmethod
    async def get_community(self, community_id: int) -> Community | None:
        """Return a community by id."""

    @abstractmethod
    async def list_communities(self) -> list[Community]:
        """Return every community."""

    @abstractmethod
    async def create_community(
        self,
        *,
        name: str,
        description: str | None = None,
        icon: str = "fas fa-users",
        color: str = "blue",
    ) -> Community:
        """Insert a new community with zero members."""

    @abstractmethod
    async def delete_community(self, community_id: int) -> bool:
        """Delete a community and all of its memberships."""

    # Community memberships

    @abstractmethod
    async def join_community(
        self,
        user_id: int,
        community_id: int,
        role: CommunityRole = CommunityRole.MEMBER,
    ) -> CommunityMember:
        """Insert a membership row and bump the community's member count.

        No duplicate check is made here.
        """

    @abstractmethod
    async def leave_community(self, user_id: int, community_id: int) -> bool:
        """Delete the membership row; ``False`` when there was none."""

    @abstractmethod
    async def is_community_member(self, user_id: int, community_id: int) -> bool:
        """Return whether a membership row exists."""

    @abstractmethod
    async def get_community_role(
        self, user_id: int, community_id: int
    ) -> CommunityRole | None:
        """Return the member's role, or ``None`` for non-members."""

    @abstractmethod
    async def get_community_members(self, community_id: int) -> list[User]:
        """Return the users holding a membership in the community."""

    @abstractmethod
    async def get_community_memberships(self, community_id: int) -> list[CommunityMember]:
        """Return the raw membership rows of a community."""

    @abstractmethod
    async def get_user_communities(self, user_id: int) -> list[Community]:
        """Return the communities a user belongs to."""

    @abstractmethod
    async def update_community_role(
        self,
        user_id: int,
        community_id: int,
        role: CommunityRole,
    ) -> CommunityMember | None:
        """Overwrite the role on an existing membership row."""
