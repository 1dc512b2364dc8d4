# mypy: ignore-errors
# tests/v1/test_communities.py
"""Tests for community and membership endpoints."""

from fastapi import status

from verser.models import CommunityRole


def test_list_communities(client, community) -> None:
    """Test listing all communities."""
    response = client.get("/api/v1/communities/")
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert isinstance(data, list)
    assert any(c["id"] == community.id for c in data)
    assert any(c["name"] == "Web Developers" for c in data)


def test_get_community(client, community) -> None:
    """Test getting a specific community."""
    response = client.get(f"/api/v1/communities/{community.id}")
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["id"] == community.id
    assert data["icon"] == "fas fa-users"
    assert data["color"] == "blue"


def test_get_nonexistent_community(client) -> None:
    """Test getting a non-existent community."""
    response = client.get("/api/v1/communities/99999")
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_create_community_makes_creator_admin(client, test_user, auth_token) -> None:
    """The creator is auto-joined as admin and counted as a member."""
    response = client.post(
        "/api/v1/communities/",
        json={"name": "Startup Founders", "description": "Networking", "icon": "fas fa-rocket"},
        headers=auth_token,
    )
    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["name"] == "Startup Founders"
    assert data["icon"] == "fas fa-rocket"
    assert data["member_count"] == 1

    role = client.get(f"/api/v1/communities/{data['id']}/role", headers=auth_token)
    assert role.json() == {"role": "admin"}


def test_create_community_requires_auth(client) -> None:
    response = client.post("/api/v1/communities/", json={"name": "Nope"})
    assert response.status_code in {status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN}


def test_invalid_token_is_rejected(client) -> None:
    response = client.get(
        "/api/v1/communities/user", headers={"Authorization": "Bearer not-a-jwt"}
    )
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["detail"] == "Could not validate credentials"


def test_join_community(client, test_user, auth_token, community) -> None:
    """Test joining a community."""
    response = client.post(f"/api/v1/communities/{community.id}/join", headers=auth_token)
    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["user_id"] == test_user.id
    assert data["role"] == "member"

    refreshed = client.get(f"/api/v1/communities/{community.id}").json()
    assert refreshed["member_count"] == 1


def test_join_same_community_twice(client, auth_token, community) -> None:
    """Test joining a community twice."""
    first = client.post(f"/api/v1/communities/{community.id}/join", headers=auth_token)
    assert first.status_code == status.HTTP_201_CREATED

    second = client.post(f"/api/v1/communities/{community.id}/join", headers=auth_token)
    assert second.status_code == status.HTTP_409_CONFLICT
    assert "Already a member" in second.json()["detail"]


def test_join_missing_community(client, auth_token) -> None:
    response = client.post("/api/v1/communities/99999/join", headers=auth_token)
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_leave_community(client, test_user, auth_token, community, add_member) -> None:
    """Test leaving a community."""
    add_member(test_user, community)

    response = client.delete(f"/api/v1/communities/{community.id}/leave", headers=auth_token)
    assert response.status_code == status.HTTP_204_NO_CONTENT

    role = client.get(f"/api/v1/communities/{community.id}/role", headers=auth_token)
    assert role.json() == {"role": None}
    assert client.get(f"/api/v1/communities/{community.id}").json()["member_count"] == 0


def test_leave_when_not_member(client, auth_token, community) -> None:
    response = client.delete(f"/api/v1/communities/{community.id}/leave", headers=auth_token)
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_list_members_with_roles(client, test_user, other_user, community, add_member) -> None:
    """Members come back with their role and without credentials."""
    add_member(test_user, community, CommunityRole.ADMIN)
    add_member(other_user, community)

    response = client.get(f"/api/v1/communities/{community.id}/members")
    assert response.status_code == status.HTTP_200_OK
    members = {m["username"]: m for m in response.json()}
    assert members["alex_johnson"]["role"] == "admin"
    assert members["jane_smith"]["role"] == "member"
    assert all("password_hash" not in m for m in members.values())


def test_user_communities(client, test_user, auth_token, community, add_member) -> None:
    add_member(test_user, community)

    mine = client.get("/api/v1/communities/user", headers=auth_token)
    assert mine.status_code == status.HTTP_200_OK
    assert [c["id"] for c in mine.json()] == [community.id]

    theirs = client.get(f"/api/v1/communities/user/{test_user.id}")
    assert [c["id"] for c in theirs.json()] == [community.id]


def test_admin_promotes_member(
    client, test_user, other_user, auth_token, community, add_member
) -> None:
    add_member(test_user, community, CommunityRole.ADMIN)
    add_member(other_user, community)

    response = client.put(
        f"/api/v1/communities/{community.id}/members/{other_user.id}/role",
        json={"role": "maintainer"},
        headers=auth_token,
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["role"] == "maintainer"


def test_member_cannot_promote_self_to_admin(
    client, test_user, other_user, other_auth_token, community, add_member
) -> None:
    """A plain member is refused when trying to become admin."""
    add_member(test_user, community, CommunityRole.ADMIN)
    add_member(other_user, community)

    response = client.put(
        f"/api/v1/communities/{community.id}/members/{other_user.id}/role",
        json={"role": "admin"},
        headers=other_auth_token,
    )
    assert response.status_code == status.HTTP_403_FORBIDDEN

    role = client.get(f"/api/v1/communities/{community.id}/role", headers=other_auth_token)
    assert role.json() == {"role": "member"}


def test_maintainer_cannot_grant_admin(
    client, test_user, other_user, third_user, third_auth_token, community, add_member
) -> None:
    add_member(test_user, community, CommunityRole.ADMIN)
    add_member(other_user, community)
    add_member(third_user, community, CommunityRole.MAINTAINER)

    response = client.put(
        f"/api/v1/communities/{community.id}/members/{other_user.id}/role",
        json={"role": "admin"},
        headers=third_auth_token,
    )
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_maintainer_cannot_demote_admin(
    client, test_user, third_user, third_auth_token, community, add_member
) -> None:
    add_member(test_user, community, CommunityRole.ADMIN)
    add_member(third_user, community, CommunityRole.MAINTAINER)

    response = client.put(
        f"/api/v1/communities/{community.id}/members/{test_user.id}/role",
        json={"role": "member"},
        headers=third_auth_token,
    )
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_role_update_for_non_member(client, test_user, auth_token, community, add_member) -> None:
    add_member(test_user, community, CommunityRole.ADMIN)

    response = client.put(
        f"/api/v1/communities/{community.id}/members/99999/role",
        json={"role": "maintainer"},
        headers=auth_token,
    )
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_role_update_rejects_unknown_role(
    client, test_user, other_user, auth_token, community, add_member
) -> None:
    add_member(test_user, community, CommunityRole.ADMIN)
    add_member(other_user, community)

    response = client.put(
        f"/api/v1/communities/{community.id}/members/{other_user.id}/role",
        json={"role": "owner"},
        headers=auth_token,
    )
    assert response.status_code == 422


def test_maintainer_removes_member(
    client, other_user, third_user, third_auth_token, community, add_member
) -> None:
    add_member(other_user, community)
    add_member(third_user, community, CommunityRole.MAINTAINER)

    response = client.delete(
        f"/api/v1/communities/{community.id}/members/{other_user.id}",
        headers=third_auth_token,
    )
    assert response.status_code == status.HTTP_204_NO_CONTENT

    members = client.get(f"/api/v1/communities/{community.id}/members").json()
    assert [m["id"] for m in members] == [third_user.id]


def test_maintainer_cannot_remove_admin(
    client, test_user, third_user, third_auth_token, community, add_member
) -> None:
    """Only admins may remove another admin."""
    add_member(test_user, community, CommunityRole.ADMIN)
    add_member(third_user, community, CommunityRole.MAINTAINER)

    response = client.delete(
        f"/api/v1/communities/{community.id}/members/{test_user.id}",
        headers=third_auth_token,
    )
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_member_cannot_remove_anyone(
    client, test_user, other_user, other_auth_token, community, add_member
) -> None:
    add_member(test_user, community)
    add_member(other_user, community)

    response = client.delete(
        f"/api/v1/communities/{community.id}/members/{test_user.id}",
        headers=other_auth_token,
    )
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_remove_missing_member(client, test_user, auth_token, community, add_member) -> None:
    add_member(test_user, community, CommunityRole.ADMIN)

    response = client.delete(
        f"/api/v1/communities/{community.id}/members/99999",
        headers=auth_token,
    )
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_non_admin_cannot_delete_community(
    client, third_user, third_auth_token, community, add_member
) -> None:
    add_member(third_user, community, CommunityRole.MAINTAINER)

    response = client.delete(f"/api/v1/communities/{community.id}", headers=third_auth_token)
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_admin_deletes_community(client, test_user, auth_token, community, add_member) -> None:
    add_member(test_user, community, CommunityRole.ADMIN)

    response = client.delete(f"/api/v1/communities/{community.id}", headers=auth_token)
    assert response.status_code == status.HTTP_204_NO_CONTENT

    assert client.get(f"/api/v1/communities/{community.id}").status_code == 404
    assert client.get("/api/v1/communities/user", headers=auth_token).json() == []


def test_delete_missing_community(client, auth_token) -> None:
    response = client.delete("/api/v1/communities/99999", headers=auth_token)
    assert response.status_code == status.HTTP_404_NOT_FOUND
