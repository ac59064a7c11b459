"""
Integration tests for member management endpoints.
"""

import pytest
from httpx import AsyncClient

from authz.models import Organization, User

pytestmark = pytest.mark.integration


def _members_url(org: Organization, suffix: str = "") -> str:
    return f"/api/v1/organizations/{org.id}/members{suffix}"


class TestListMembers:
    """GET /members"""

    @pytest.mark.asyncio
    async def test_admin_lists_members(
        self, client: AsyncClient, test_organization: Organization, admin_user: User, auth_headers
    ):
        response = await client.get(_members_url(test_organization), headers=auth_headers(admin_user))

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 4
        assert [m["role"] for m in data["members"]] == ["OWNER", "ADMIN", "STAFF", "CLIENT"]

    @pytest.mark.asyncio
    async def test_staff_cannot_list(
        self, client: AsyncClient, test_organization: Organization, staff_user: User, auth_headers
    ):
        response = await client.get(_members_url(test_organization), headers=auth_headers(staff_user))

        assert response.status_code == 403
        body = response.json()
        assert body["error"] == "insufficient_role"
        assert body["details"] == {"required": "ADMIN", "current": "STAFF"}


class TestOwnerGuard:
    """OWNER rows over HTTP."""

    @pytest.mark.asyncio
    async def test_demote_owner_rejected(
        self, client: AsyncClient, test_organization: Organization, owner_user: User, admin_user: User, auth_headers
    ):
        response = await client.patch(
            _members_url(test_organization, f"/{owner_user.id}"),
            headers=auth_headers(admin_user),
            json={"role": "CLIENT"},
        )
        assert response.status_code == 403
        assert response.json()["error"] == "cannot_modify_owner"

    @pytest.mark.asyncio
    async def test_client_targeting_owner_gets_owner_error(
        self, client: AsyncClient, test_organization: Organization, owner_user: User, client_user: User, auth_headers
    ):
        response = await client.delete(
            _members_url(test_organization, f"/{owner_user.id}"), headers=auth_headers(client_user)
        )
        assert response.status_code == 403
        assert response.json()["error"] == "cannot_modify_owner"

    @pytest.mark.asyncio
    async def test_owner_cannot_leave(
        self, client: AsyncClient, test_organization: Organization, owner_user: User, auth_headers
    ):
        response = await client.post(
            f"/api/v1/organizations/{test_organization.id}/leave", headers=auth_headers(owner_user)
        )
        assert response.status_code == 403
        assert response.json()["error"] == "cannot_modify_owner"


class TestMutations:
    """Role changes, removal, add and leave."""

    @pytest.mark.asyncio
    async def test_update_role(
        self, client: AsyncClient, test_organization: Organization, admin_user: User, client_user: User, auth_headers
    ):
        response = await client.patch(
            _members_url(test_organization, f"/{client_user.id}"),
            headers=auth_headers(admin_user),
            json={"role": "STAFF"},
        )
        assert response.status_code == 200
        assert response.json()["role"] == "STAFF"

    @pytest.mark.asyncio
    async def test_assign_owner_rejected(
        self, client: AsyncClient, test_organization: Organization, owner_user: User, admin_user: User, auth_headers
    ):
        response = await client.patch(
            _members_url(test_organization, f"/{admin_user.id}"),
            headers=auth_headers(owner_user),
            json={"role": "OWNER"},
        )
        assert response.status_code == 400
        assert response.json()["error"] == "invalid_role_assignment"

    @pytest.mark.asyncio
    async def test_self_modification_rejected(
        self, client: AsyncClient, test_organization: Organization, admin_user: User, auth_headers
    ):
        response = await client.delete(
            _members_url(test_organization, f"/{admin_user.id}"), headers=auth_headers(admin_user)
        )
        assert response.status_code == 400
        assert response.json()["error"] == "cannot_modify_self"

    @pytest.mark.asyncio
    async def test_bulk_update(
        self,
        client: AsyncClient,
        test_organization: Organization,
        owner_user: User,
        staff_user: User,
        client_user: User,
        auth_headers,
    ):
        response = await client.patch(
            _members_url(test_organization),
            headers=auth_headers(owner_user),
            json={"updates": [{"user_id": staff_user.id, "role": "ADMIN"}, {"user_id": client_user.id, "role": "STAFF"}]},
        )
        assert response.status_code == 200
        assert [m["role"] for m in response.json()] == ["ADMIN", "STAFF"]

    @pytest.mark.asyncio
    async def test_remove_member(
        self, client: AsyncClient, test_organization: Organization, admin_user: User, client_user: User, auth_headers
    ):
        response = await client.delete(
            _members_url(test_organization, f"/{client_user.id}"), headers=auth_headers(admin_user)
        )
        assert response.status_code == 204

        response = await client.get(f"/api/v1/organizations/{test_organization.id}", headers=auth_headers(client_user))
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_add_member(
        self,
        client: AsyncClient,
        test_organization: Organization,
        other_organization: Organization,
        admin_user: User,
        outsider_user: User,
        auth_headers,
    ):
        response = await client.post(
            _members_url(test_organization),
            headers=auth_headers(admin_user),
            json={"email": outsider_user.email, "role": "CLIENT"},
        )
        assert response.status_code == 201
        assert response.json()["user_id"] == outsider_user.id

        again = await client.post(
            _members_url(test_organization),
            headers=auth_headers(admin_user),
            json={"email": outsider_user.email, "role": "CLIENT"},
        )
        assert again.status_code == 409
        assert again.json()["error"] == "user_already_member"

    @pytest.mark.asyncio
    async def test_staff_leaves(
        self, client: AsyncClient, test_organization: Organization, staff_user: User, auth_headers
    ):
        response = await client.post(
            f"/api/v1/organizations/{test_organization.id}/leave", headers=auth_headers(staff_user)
        )
        assert response.status_code == 204
