# src/verser/api/v1/endpoints/communities.py
"""Community and membership endpoints for the Verser API."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Response, status

from verser.models import Community, CommunityMember, CommunityRole
from verser.schemas.community import (
    CommunityCreate,
    CommunityMemberResponse,
    CommunityResponse,
    MembershipResponse,
    RoleResponse,
    RoleUpdate,
)
from verser.schemas.user import UserPublic
from verser.services.membership import (
    can_assign_role,
    can_delete_community,
    can_remove_member,
)

from ..dependencies import CurrentUserDep, MembershipDep, StorageDep

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/communities", tags=["communities"])


def _forbidden() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="Insufficient permissions",
    )


async def _require_community(storage: StorageDep, community_id: int) -> Community:
    community = await storage.get_community(community_id)
    if community is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Community not found"
        )
    return community


@router.get("/", response_model=list[CommunityResponse])
async def list_communities(storage: StorageDep) -> list[Community]:
    """List all communities."""
    return await storage.list_communities()


# /user routes are declared before /{community_id} so they are matched first.
@router.get("/user", response_model=list[CommunityResponse])
async def list_my_communities(
    current_user: CurrentUserDep,
    memberships: MembershipDep,
) -> list[Community]:
    """List the communities the caller belongs to."""
    return await memberships.list_communities_for_user(current_user.id)


@router.get("/user/{user_id}", response_model=list[CommunityResponse])
async def list_user_communities(
    user_id: int,
    memberships: MembershipDep,
) -> list[Community]:
    """List the communities a given user belongs to."""
    return await memberships.list_communities_for_user(user_id)


@router.get("/{community_id}", response_model=CommunityResponse)
async def get_community(community_id: int, storage: StorageDep) -> Community:
    """Get a specific community by ID."""
    return await _require_community(storage, community_id)


@router.post("/",
          response_model=CommunityResponse,
          status_code=status.HTTP_201_CREATED)
async def create_community(
    community_data: CommunityCreate,
    current_user: CurrentUserDep,
    storage: StorageDep,
    memberships: MembershipDep,
) -> Community:
    """Create a new community; the creator becomes its admin."""
    community = await storage.create_community(
        name=community_data.name,
        description=community_data.description,
        icon=community_data.icon,
        color=community_data.color,
    )
    await memberships.join(current_user.id, community.id, CommunityRole.ADMIN)
    logger.info("User %s created community %s", current_user.id, community.id)

    # Re-read so member_count reflects the creator's membership.
    return await _require_community(storage, community.id)


@router.delete(
    "/{community_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
)
async def delete_community(
    community_id: int,
    current_user: CurrentUserDep,
    storage: StorageDep,
    memberships: MembershipDep,
) -> Response:
    """Delete a community and all of its memberships (admins only)."""
    await _require_community(storage, community_id)

    actor_role = await memberships.get_role(current_user.id, community_id)
    if not can_delete_community(actor_role):
        raise _forbidden()

    await storage.delete_community(community_id)
    logger.info("User %s deleted community %s", current_user.id, community_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{community_id}/join",
    response_model=MembershipResponse,
    status_code=status.HTTP_201_CREATED,
)
async def join_community(
    community_id: int,
    current_user: CurrentUserDep,
    storage: StorageDep,
    memberships: MembershipDep,
) -> CommunityMember:
    """Join a community as a regular member."""
    await _require_community(storage, community_id)

    if await memberships.is_member(current_user.id, community_id):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Already a member of this community"
        )

    return await memberships.join(current_user.id, community_id)


@router.delete(
    "/{community_id}/leave",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
)
async def leave_community(
    community_id: int,
    current_user: CurrentUserDep,
    memberships: MembershipDep,
) -> Response:
    """Leave a community."""
    if not await memberships.leave(current_user.id, community_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Not a member of this community"
        )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{community_id}/members", response_model=list[CommunityMemberResponse])
async def list_members(
    community_id: int,
    storage: StorageDep,
    memberships: MembershipDep,
) -> list[CommunityMemberResponse]:
    """List a community's members together with their roles."""
    await _require_community(storage, community_id)

    users = {user.id: user for user in await memberships.list_members(community_id)}
    members: list[CommunityMemberResponse] = []
    for membership in await memberships.list_memberships(community_id):
        user = users.get(membership.user_id)
        if user is None:
            continue
        public = UserPublic.model_validate(user)
        members.append(
            CommunityMemberResponse(
                **public.model_dump(),
                role=CommunityRole(membership.role),
                joined_at=membership.joined_at,
            )
        )
    return members


@router.get("/{community_id}/role", response_model=RoleResponse)
async def get_my_role(
    community_id: int,
    current_user: CurrentUserDep,
    memberships: MembershipDep,
) -> RoleResponse:
    """Return the caller's role in the community, or null."""
    role = await memberships.get_role(current_user.id, community_id)
    return RoleResponse(role=role)


@router.put(
    "/{community_id}/members/{user_id}/role",
    response_model=MembershipResponse,
)
async def update_member_role(
    community_id: int,
    user_id: int,
    body: RoleUpdate,
    current_user: CurrentUserDep,
    memberships: MembershipDep,
) -> CommunityMember:
    """Change another member's role."""
    actor_role = await memberships.get_role(current_user.id, community_id)
    if not can_assign_role(actor_role, body.role):
        raise _forbidden()

    target_role = await memberships.get_role(user_id, community_id)
    if target_role is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User is not a member of this community"
        )
    # Demoting an admin needs the same rights as removing one.
    if not can_remove_member(actor_role, target_role):
        raise _forbidden()

    membership = await memberships.update_role(user_id, community_id, body.role)
    if membership is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User is not a member of this community"
        )
    return membership


@router.delete(
    "/{community_id}/members/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
)
async def remove_member(
    community_id: int,
    user_id: int,
    current_user: CurrentUserDep,
    memberships: MembershipDep,
) -> Response:
    """Remove a member from the community."""
    actor_role = await memberships.get_role(current_user.id, community_id)
    target_role = await memberships.get_role(user_id, community_id)
    if target_role is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User is not a member of this community"
        )
    if not can_remove_member(actor_role, target_role):
        raise _forbidden()

    await memberships.leave(user_id, community_id)
    logger.info(
        "User %s removed user %s from community %s", current_user.id, user_id, community_id
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)
