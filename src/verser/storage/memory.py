"""Process-local storage backend kept entirely in dictionaries."""

from __future__ import annotations

from itertools import count

from verser.db.time import utcnow
from verser.models import (
    Community,
    CommunityMember,
    CommunityRole,
    Conversation,
    Message,
    User,
    UserStatus,
)

from .base import Storage

__all__ = ["MemoryStorage"]


class MemoryStorage(Storage):
    """In-memory backend for development and tests.

    Rows are transient ORM instances that are never attached to a session.
    Nothing survives a restart.
    """

    def __init__(self) -> None:
        self.users: dict[int, User] = {}
        self.conversations: dict[int, Conversation] = {}
        self.messages: dict[int, Message] = {}
        self.communities: dict[int, Community] = {}
        self.memberships: dict[int, CommunityMember] = {}
        self._user_ids = count(1)
        self._conversation_ids = count(1)
        self._message_ids = count(1)
        self._community_ids = count(1)
        self._membership_ids = count(1)

    def _find_membership(self, user_id: int, community_id: int) -> CommunityMember | None:
        for membership in self.memberships.values():
            if membership.user_id == user_id and membership.community_id == community_id:
                return membership
        return None

    # Users

    async def get_user(self, user_id: int) -> User | None:
        return self.users.get(user_id)

    async def get_user_by_username(self, username: str) -> User | None:
        return next((u for u in self.users.values() if u.username == username), None)

    async def create_user(
        self,
        *,
        username: str,
        email: str,
        password_hash: str | None = None,
        avatar: str | None = None,
        bio: str | None = None,
    ) -> User:
        user = User(
            id=next(self._user_ids),
            username=username,
            email=email,
            password_hash=password_hash,
            avatar=avatar,
            bio=bio,
            status=UserStatus.OFFLINE.value,
            last_seen=None,
            created_at=utcnow(),
        )
        self.users[user.id] = user
        return user

    async def update_user_status(self, user_id: int, status: str) -> User | None:
        user = self.users.get(user_id)
        if user is None:
            return None
        user.status = str(status)
        user.last_seen = utcnow()
        return user

    async def list_users(self) -> list[User]:
        return list(self.users.values())

    # Conversations

    async def get_conversation(self, conversation_id: int) -> Conversation | None:
        return self.conversations.get(conversation_id)

    async def list_conversations(self) -> list[Conversation]:
        return list(self.conversations.values())

    async def create_conversation(
        self,
        *,
        name: str,
        type: str = "group",
        avatar: str | None = None,
        description: str | None = None,
        member_count: int = 0,
    ) -> Conversation:
        conversation = Conversation(
            id=next(self._conversation_ids),
            name=name,
            type=type,
            avatar=avatar,
            description=description,
            member_count=member_count,
            created_at=utcnow(),
        )
        self.conversations[conversation.id] = conversation
        return conversation

    # Messages

    async def create_message(
        self,
        *,
        conversation_id: int,
        user_id: int,
        content: str,
        type: str = "text",
    ) -> Message:
        message = Message(
            id=next(self._message_ids),
            conversation_id=conversation_id,
            user_id=user_id,
            content=content,
            type=type,
            created_at=utcnow(),
        )
        self.messages[message.id] = message
        return message

    async def get_messages_by_conversation(self, conversation_id: int) -> list[Message]:
        rows = [m for m in self.messages.values() if m.conversation_id == conversation_id]
        return sorted(rows, key=lambda m: (m.created_at, m.id))

    async def get_recent_messages(self, limit: int = 50) -> list[Message]:
        rows = sorted(self.messages.values(), key=lambda m: (m.created_at, m.id), reverse=True)
        return rows[:limit]

    # Communities

    async def get_community(self, community_id: int) -> Community | None:
        return self.communities.get(community_id)

    async def list_communities(self) -> list[Community]:
        return list(self.communities.values())

    async def create_community(
        self,
        *,
        name: str,
        description: str | None = None,
        icon: str = "fas fa-users",
        color: str = "blue",
    ) -> Community:
        community = Community(
            id=next(self._community_ids),
            name=name,
            description=description,
            icon=icon,
            color=color,
            member_count=0,
            online_count=0,
            created_at=utcnow(),
        )
        self.communities[community.id] = community
        return community

    async def delete_community(self, community_id: int) -> bool:
        if self.communities.pop(community_id, None) is None:
            return False
        stale = [k for k, m in self.memberships.items() if m.community_id == community_id]
        for key in stale:
            del self.memberships[key]
        return True

    # Community memberships

    async def join_community(
        self,
        user_id: int,
        community_id: int,
        role: CommunityRole = CommunityRole.MEMBER,
    ) -> CommunityMember:
        membership = CommunityMember(
            id=next(self._membership_ids),
            user_id=user_id,
            community_id=community_id,
            role=CommunityRole(role).value,
            joined_at=utcnow(),
        )
        self.memberships[membership.id] = membership

        community = self.communities.get(community_id)
        if community is not None:
            community.member_count += 1
        return membership

    async def leave_community(self, user_id: int, community_id: int) -> bool:
        membership = self._find_membership(user_id, community_id)
        if membership is None:
            return False
        del self.memberships[membership.id]

        community = self.communities.get(community_id)
        if community is not None:
            community.member_count = max(0, community.member_count - 1)
        return True

    async def is_community_member(self, user_id: int, community_id: int) -> bool:
        return self._find_membership(user_id, community_id) is not None

    async def get_community_role(
        self, user_id: int, community_id: int
    ) -> CommunityRole | None:
        membership = self._find_membership(user_id, community_id)
        return CommunityRole(membership.role) if membership else None

    async def get_community_members(self, community_id: int) -> list[User]:
        members = []
        for membership in await self.get_community_memberships(community_id):
            user = self.users.get(membership.user_id)
            if user is not None:
                members.append(user)
        return members

    async def get_community_memberships(self, community_id: int) -> list[CommunityMember]:
        return [m for m in self.memberships.values() if m.community_id == community_id]

    async def get_user_communities(self, user_id: int) -> list[Community]:
        communities = []
        for membership in self.memberships.values():
            if membership.user_id != user_id:
                continue
            community = self.communities.get(membership.community_id)
            if community is not None:
                communities.append(community)
        return communities

    async def update_community_role(
        self,
        user_id: int,
        community_id: int,
        role: CommunityRole,
    ) -> CommunityMember | None:
        membership = self._find_membership(user_id, community_id)
        if membership is None:
            return None
        membership.role = CommunityRole(role).value
        return membership
