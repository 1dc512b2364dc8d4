"""Relational storage backend built on SQLAlchemy sessions."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import TypeVar

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from verser.db.session import SessionLocal
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

from .base import Storage, StorageError

__all__ = ["SqlStorage"]

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SqlStorage(Storage):
    """Storage backed by any SQLAlchemy-supported database.

    Each call opens its own short-lived session in a worker thread so that
    blocking drivers never stall the event loop. The session factory must be
    configured with ``expire_on_commit=False`` because rows are returned
    detached.
    """

    def __init__(self, session_factory: sessionmaker[Session] | None = None) -> None:
        """Initialize the backend with a session factory (defaults to ``SessionLocal``)."""
        self._session_factory = session_factory or SessionLocal

    async def _run(self, work: Callable[[Session], T]) -> T:
        return await asyncio.to_thread(self._run_sync, work)

    def _run_sync(self, work: Callable[[Session], T]) -> T:
        try:
            with self._session_factory() as db:
                result = work(db)
                db.commit()
                return result
        except (SQLAlchemyError, OverflowError) as exc:
            logger.error("Storage operation failed: %s", exc)
            raise StorageError(str(exc)) from exc

    @staticmethod
    def _membership(db: Session, user_id: int, community_id: int) -> CommunityMember | None:
        return db.scalars(
            select(CommunityMember)
            .where(
                CommunityMember.user_id == user_id,
                CommunityMember.community_id == community_id,
            )
            .order_by(CommunityMember.id)
        ).first()

    # Users

    async def get_user(self, user_id: int) -> User | None:
        return await self._run(lambda db: db.get(User, user_id))

    async def get_user_by_username(self, username: str) -> User | None:
        return await self._run(
            lambda db: db.scalars(select(User).where(User.username == username)).first()
        )

    async def create_user(
        self,
        *,
        username: str,
        email: str,
        password_hash: str | None = None,
        avatar: str | None = None,
        bio: str | None = None,
    ) -> User:
        def work(db: Session) -> User:
            user = User(
                username=username,
                email=email,
                password_hash=password_hash,
                avatar=avatar,
                bio=bio,
                status=UserStatus.OFFLINE.value,
            )
            db.add(user)
            db.flush()
            return user

        return await self._run(work)

    async def update_user_status(self, user_id: int, status: str) -> User | None:
        def work(db: Session) -> User | None:
            user = db.get(User, user_id)
            if user is None:
                return None
            user.status = str(status)
            user.last_seen = utcnow()
            db.flush()
            return user

        return await self._run(work)

    async def list_users(self) -> list[User]:
        return await self._run(lambda db: list(db.scalars(select(User).order_by(User.id))))

    # Conversations

    async def get_conversation(self, conversation_id: int) -> Conversation | None:
        return await self._run(lambda db: db.get(Conversation, conversation_id))

    async def list_conversations(self) -> list[Conversation]:
        return await self._run(
            lambda db: list(db.scalars(select(Conversation).order_by(Conversation.id)))
        )

    async def create_conversation(
        self,
        *,
        name: str,
        type: str = "group",
        avatar: str | None = None,
        description: str | None = None,
        member_count: int = 0,
    ) -> Conversation:
        def work(db: Session) -> Conversation:
            conversation = Conversation(
                name=name,
                type=type,
                avatar=avatar,
                description=description,
                member_count=member_count,
            )
            db.add(conversation)
            db.flush()
            return conversation

        return await self._run(work)

    # Messages

    async def create_message(
        self,
        *,
        conversation_id: int,
        user_id: int,
        content: str,
        type: str = "text",
    ) -> Message:
        def work(db: Session) -> Message:
            message = Message(
                conversation_id=conversation_id,
                user_id=user_id,
                content=content,
                type=type,
            )
            db.add(message)
            db.flush()
            return message

        return await self._run(work)

    async def get_messages_by_conversation(self, conversation_id: int) -> list[Message]:
        return await self._run(
            lambda db: list(
                db.scalars(
                    select(Message)
                    .where(Message.conversation_id == conversation_id)
                    .order_by(Message.created_at, Message.id)
                )
            )
        )

    async def get_recent_messages(self, limit: int = 50) -> list[Message]:
        return await self._run(
            lambda db: list(
                db.scalars(
                    select(Message)
                    .order_by(Message.created_at.desc(), Message.id.desc())
                    .limit(limit)
                )
            )
        )

    # Communities

    async def get_community(self, community_id: int) -> Community | None:
        return await self._run(lambda db: db.get(Community, community_id))

    async def list_communities(self) -> list[Community]:
        return await self._run(
            lambda db: list(db.scalars(select(Community).order_by(Community.id)))
        )

    async def create_community(
        self,
        *,
        name: str,
        description: str | None = None,
        icon: str = "fas fa-users",
        color: str = "blue",
    ) -> Community:
        def work(db: Session) -> Community:
            community = Community(
                name=name,
                description=description,
                icon=icon,
                color=color,
                member_count=0,
                online_count=0,
            )
            db.add(community)
            db.flush()
            return community

        return await self._run(work)

    async def delete_community(self, community_id: int) -> bool:
        def work(db: Session) -> bool:
            community = db.get(Community, community_id)
            if community is None:
                return False
            db.execute(delete(CommunityMember).where(CommunityMember.community_id == community_id))
            db.delete(community)
            return True

        return await self._run(work)

    # Community memberships

    async def join_community(
        self,
        user_id: int,
        community_id: int,
        role: CommunityRole = CommunityRole.MEMBER,
    ) -> CommunityMember:
        def work(db: Session) -> CommunityMember:
            membership = CommunityMember(
                user_id=user_id,
                community_id=community_id,
                role=CommunityRole(role).value,
            )
            db.add(membership)
            community = db.get(Community, community_id)
            if community is not None:
                community.member_count += 1
            db.flush()
            return membership

        return await self._run(work)

    async def leave_community(self, user_id: int, community_id: int) -> bool:
        def work(db: Session) -> bool:
            membership = self._membership(db, user_id, community_id)
            if membership is None:
                return False
            db.delete(membership)
            community = db.get(Community, community_id)
            if community is not None:
                community.member_count = max(0, community.member_count - 1)
            return True

        return await self._run(work)

    async def is_community_member(self, user_id: int, community_id: int) -> bool:
        return await self._run(
            lambda db: self._membership(db, user_id, community_id) is not None
        )

    async def get_community_role(
        self, user_id: int, community_id: int
    ) -> CommunityRole | None:
        def work(db: Session) -> CommunityRole | None:
            membership = self._membership(db, user_id, community_id)
            return CommunityRole(membership.role) if membership else None

        return await self._run(work)

    async def get_community_members(self, community_id: int) -> list[User]:
        return await self._run(
            lambda db: list(
                db.scalars(
                    select(User)
                    .join(CommunityMember, CommunityMember.user_id == User.id)
                    .where(CommunityMember.community_id == community_id)
                    .order_by(CommunityMember.id)
                )
            )
        )

    async def get_community_memberships(self, community_id: int) -> list[CommunityMember]:
        return await self._run(
            lambda db: list(
                db.scalars(
                    select(CommunityMember)
                    .where(CommunityMember.community_id == community_id)
                    .order_by(CommunityMember.id)
                )
            )
        )

    async def get_user_communities(self, user_id: int) -> list[Community]:
        return await self._run(
            lambda db: list(
                db.scalars(
                    select(Community)
                    .join(CommunityMember, CommunityMember.community_id == Community.id)
                    .where(CommunityMember.user_id == user_id)
                    .order_by(CommunityMember.id)
                )
            )
        )

    async def update_community_role(
        self,
        user_id: int,
        community_id: int,
        role: CommunityRole,
    ) -> CommunityMember | None:
        def work(db: Session) -> CommunityMember | None:
            membership = self._membership(db, user_id, community_id)
            if membership is None:
                return None
            membership.role = CommunityRole(role).value
            db.flush()
            return membership

        return await self._run(work)
