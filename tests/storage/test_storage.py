# mypy: ignore-errors
"""Behaviour shared by the in-memory and SQL storage backends."""

import pytest
from sqlalchemy.exc import OperationalError

from verser.models import CommunityRole, UserStatus
from verser.storage import SqlStorage, StorageError


async def _user(storage, username="alex_johnson"):
    return await storage.create_user(username=username, email=f"{username}@example.com")


@pytest.mark.asyncio
async def test_new_users_start_offline(storage) -> None:
    """Accounts are created offline and without a last_seen stamp."""
    user = await _user(storage)
    assert user.id is not None
    assert user.status == UserStatus.OFFLINE
    assert user.last_seen is None

    fetched = await storage.get_user_by_username("alex_johnson")
    assert fetched is not None
    assert fetched.id == user.id


@pytest.mark.asyncio
async def test_update_user_status_refreshes_last_seen(storage) -> None:
    """Status changes are persisted together with a last_seen timestamp."""
    user = await _user(storage)

    updated = await storage.update_user_status(user.id, UserStatus.ONLINE)

    assert updated is not None
    assert updated.status == "online"
    assert updated.last_seen is not None
    assert (await storage.get_user(user.id)).status == "online"


@pytest.mark.asyncio
async def test_update_status_of_unknown_user_returns_none(storage) -> None:
    assert await storage.update_user_status(404, UserStatus.ONLINE) is None


@pytest.mark.asyncio
async def test_messages_by_conversation_are_oldest_first(storage) -> None:
    """Messages come back in creation order and only for the asked conversation."""
    user = await _user(storage)
    first = await storage.create_message(conversation_id=5, user_id=user.id, content="one")
    await storage.create_message(conversation_id=6, user_id=user.id, content="elsewhere")
    second = await storage.create_message(conversation_id=5, user_id=user.id, content="two")

    messages = await storage.get_messages_by_conversation(5)

    assert [m.id for m in messages] == [first.id, second.id]
    assert all(m.type == "text" for m in messages)


@pytest.mark.asyncio
async def test_recent_messages_are_newest_first_and_limited(storage) -> None:
    user = await _user(storage)
    for n in range(3):
        await storage.create_message(conversation_id=1, user_id=user.id, content=f"m{n}")

    recent = await storage.get_recent_messages(limit=2)

    assert [m.content for m in recent] == ["m2", "m1"]


@pytest.mark.asyncio
async def test_join_and_leave_track_member_count(storage) -> None:
    """member_count follows joins and leaves and never drops below zero."""
    user = await _user(storage)
    community = await storage.create_community(name="Photography")
    assert community.member_count == 0

    membership = await storage.join_community(user.id, community.id)
    assert membership.role == CommunityRole.MEMBER
    assert (await storage.get_community(community.id)).member_count == 1

    assert await storage.leave_community(user.id, community.id) is True
    assert (await storage.get_community(community.id)).member_count == 0

    assert await storage.leave_community(user.id, community.id) is False
    assert (await storage.get_community(community.id)).member_count == 0


@pytest.mark.asyncio
async def test_membership_queries(storage) -> None:
    """Members, memberships and a user's communities are all derived from the rows."""
    alex = await _user(storage)
    jane = await _user(storage, "jane_smith")
    web = await storage.create_community(name="Web Developers")
    design = await storage.create_community(name="UI/UX Designers")

    await storage.join_community(alex.id, web.id, CommunityRole.ADMIN)
    await storage.join_community(jane.id, web.id)
    await storage.join_community(alex.id, design.id)

    assert await storage.is_community_member(jane.id, web.id) is True
    assert await storage.is_community_member(jane.id, design.id) is False
    assert await storage.get_community_role(alex.id, web.id) == CommunityRole.ADMIN
    assert await storage.get_community_role(jane.id, design.id) is None

    assert {u.username for u in await storage.get_community_members(web.id)} == {
        "alex_johnson",
        "jane_smith",
    }
    assert {m.user_id for m in await storage.get_community_memberships(web.id)} == {
        alex.id,
        jane.id,
    }
    assert {c.name for c in await storage.get_user_communities(alex.id)} == {
        "Web Developers",
        "UI/UX Designers",
    }


@pytest.mark.asyncio
async def test_update_community_role(storage) -> None:
    user = await _user(storage)
    community = await storage.create_community(name="Startup Founders")
    await storage.join_community(user.id, community.id)

    updated = await storage.update_community_role(
        user.id, community.id, CommunityRole.MAINTAINER
    )

    assert updated is not None
    assert updated.role == CommunityRole.MAINTAINER
    assert await storage.get_community_role(user.id, community.id) == CommunityRole.MAINTAINER
    assert await storage.update_community_role(999, community.id, CommunityRole.ADMIN) is None


@pytest.mark.asyncio
async def test_delete_community_removes_memberships(storage) -> None:
    """Deleting a community drops its membership rows with it."""
    user = await _user(storage)
    community = await storage.create_community(name="Digital Marketing")
    await storage.join_community(user.id, community.id)

    assert await storage.delete_community(community.id) is True

    assert await storage.get_community(community.id) is None
    assert await storage.is_community_member(user.id, community.id) is False
    assert await storage.get_user_communities(user.id) == []
    assert await storage.delete_community(community.id) is False


@pytest.mark.asyncio
async def test_join_does_not_deduplicate(storage) -> None:
    """Uniqueness of (user, community) is left to callers."""
    user = await _user(storage)
    community = await storage.create_community(name="React Developers")

    await storage.join_community(user.id, community.id)
    await storage.join_community(user.id, community.id)

    assert len(await storage.get_community_memberships(community.id)) == 2
    assert (await storage.get_community(community.id)).member_count == 2


@pytest.mark.asyncio
async def test_conversations_round_trip(storage) -> None:
    conversation = await storage.create_conversation(name="Team", description="Daily sync")

    assert conversation.type == "group"
    assert (await storage.get_conversation(conversation.id)).name == "Team"
    assert [c.id for c in await storage.list_conversations()] == [conversation.id]


@pytest.mark.asyncio
async def test_sql_errors_surface_as_storage_error(mocker, session_factory) -> None:
    """Driver failures are wrapped so callers only handle StorageError."""
    storage = SqlStorage(session_factory)
    failing = mocker.MagicMock()
    failing.return_value.__enter__.return_value.get.side_effect = OperationalError(
        "SELECT", {}, Exception("database is locked")
    )
    storage._session_factory = failing

    with pytest.raises(StorageError):
        await storage.get_user(1)


@pytest.mark.asyncio
async def test_out_of_range_ids_surface_as_storage_error(sql_storage) -> None:
    with pytest.raises(StorageError):
        await sql_storage.get_user(10**20)
