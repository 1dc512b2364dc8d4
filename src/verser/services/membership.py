# src/verser/services/membership.py
"""Community membership records and the role policy applied on top of them."""

from __future__ import annotations

import logging

from verser.models import Community, CommunityMember, CommunityRole, User
from verser.storage import Storage

logger = logging.getLogger(__name__)

MANAGER_ROLES = frozenset({CommunityRole.ADMIN, CommunityRole.MAINTAINER})


class MembershipStore:
    """Thin facade over the storage membership operations.

    The store never checks permissions and never rejects duplicate joins;
    callers consult :meth:`is_member` first and apply the ``can_*`` policy
    functions below.
    """

    def __init__(self, storage: Storage) -> None:
        self.storage = storage

    async def join(
        self,
        user_id: int,
        community_id: int,
        role: CommunityRole = CommunityRole.MEMBER,
    ) -> CommunityMember:
        """Create a membership row with ``role``."""
        membership = await self.storage.join_community(user_id, community_id, role)
        logger.info("User %s joined community %s as %s", user_id, community_id, membership.role)
        return membership

    async def leave(self, user_id: int, community_id: int) -> bool:
        """Remove the membership row. Returns ``False`` if there was none."""
        removed = await self.storage.leave_community(user_id, community_id)
        if removed:
            logger.info("User %s left community %s", user_id, community_id)
        return removed

    async def is_member(self, user_id: int, community_id: int) -> bool:
        return await self.storage.is_community_member(user_id, community_id)

    async def get_role(self, user_id: int, community_id: int) -> CommunityRole | None:
        return await self.storage.get_community_role(user_id, community_id)

    async def list_members(self, community_id: int) -> list[User]:
        return await self.storage.get_community_members(community_id)

    async def list_memberships(self, community_id: int) -> list[CommunityMember]:
        return await self.storage.get_community_memberships(community_id)

    async def list_communities_for_user(self, user_id: int) -> list[Community]:
        return await self.storage.get_user_communities(user_id)

    async def update_role(
        self,
        user_id: int,
        community_id: int,
        new_role: CommunityRole,
    ) -> CommunityMember | None:
        """Overwrite an existing member's role; ``None`` for non-members."""
        membership = await self.storage.update_community_role(user_id, community_id, new_role)
        if membership is not None:
            logger.info(
                "User %s is now %s in community %s", user_id, membership.role, community_id
            )
        return membership


def can_manage_members(role: CommunityRole | None) -> bool:
    """Admins and maintainers may change roles and remove members."""
    return role in MANAGER_ROLES


def can_assign_role(actor_role: CommunityRole | None, new_role: CommunityRole) -> bool:
    """Return whether ``actor_role`` may set another member's role to ``new_role``.

    Only admins may grant ``admin``.
    """
    if not can_manage_members(actor_role):
        return False
    return new_role != CommunityRole.ADMIN or actor_role == CommunityRole.ADMIN


def can_remove_member(actor_role: CommunityRole | None, target_role: CommunityRole | None) -> bool:
    """Return whether ``actor_role`` may remove a member holding ``target_role``.

    Only admins may remove admins.
    """
    if not can_manage_members(actor_role):
        return False
    return target_role != CommunityRole.ADMIN or actor_role == CommunityRole.ADMIN


def can_delete_community(actor_role: CommunityRole | None) -> bool:
    return actor_role == CommunityRole.ADMIN
