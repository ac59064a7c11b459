"""
Integration tests for the super-principal channel.
"""

from uuid import uuid4

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from authz.domain.roles import Role
from authz.models import Membership, Organization, User
from authz.security import issue_super_token

pytestmark = pytest.mark.integration


class TestSuperAdminEndpoints:
    """Cookie-only authentication, no organization scope."""

    @pytest.mark.asyncio
    async def test_check_without_cookie(self, client: AsyncClient):
        response = await client.get("/api/v1/super-admin/check")
        assert response.status_code == 200
        assert response.json() == {"is_super_admin": False}

    @pytest.mark.asyncio
    async def test_check_with_cookie(self, client: AsyncClient, super_headers):
        response = await client.get("/api/v1/super-admin/check", headers=super_headers)
        assert response.json() == {"is_super_admin": True}

    @pytest.mark.asyncio
    async def test_list_all_organizations(
        self,
        client: AsyncClient,
        test_organization: Organization,
        other_organization: Organization,
        super_headers,
    ):
        response = await client.get("/api/v1/super-admin/organizations", headers=super_headers)
        assert response.status_code == 200
        assert [o["slug"] for o in response.json()] == ["acme-corp", "globex"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("cookie", [None, "garbage", "1.abc"])
    async def test_forged_or_missing_cookie(self, client: AsyncClient, cookie):
        headers = {"Cookie": f"authz_super={cookie}"} if cookie else {}
        response = await client.get("/api/v1/super-admin/organizations", headers=headers)
        assert response.status_code == 403
        assert response.json()["error"] == "forbidden"

    @pytest.mark.asyncio
    async def test_stale_cookie(self, client: AsyncClient):
        response = await client.get(
            "/api/v1/super-admin/organizations", headers={"Cookie": f"authz_super={issue_super_token(issued_at=1000)}"}
        )
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_remove_memberships(self, client: AsyncClient, test_organization: Organization, super_headers):
        response = await client.post("/api/v1/super-admin/remove-memberships", headers=super_headers)
        assert response.status_code == 200
        assert response.json() == {"removed": 0}

    @pytest.mark.asyncio
    async def test_view_organization_hides_super_identity(
        self,
        client: AsyncClient,
        test_db: AsyncSession,
        test_organization: Organization,
        admin_user: User,
        auth_headers,
        super_headers,
    ):
        org_url = f"/api/v1/super-admin/organizations/{test_organization.id}"
        members_url = f"/api/v1/organizations/{test_organization.id}/members"
        admin = auth_headers(admin_user)
        test_db.add(User(id="user-root", email="root@ops.example.com", name="Root"))
        test_db.add(Membership(user_id="user-root", organization_id=test_organization.id, role=Role.CLIENT))
        await test_db.commit()

        response = await client.get(org_url, headers=super_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["slug"] == "acme-corp"
        assert data["member_count"] == 4
        assert [m["role"] for m in data["members"]] == ["OWNER", "ADMIN", "STAFF", "CLIENT"]
        assert "root@ops.example.com" not in [m["email"] for m in data["members"]]

        listing = await client.get(members_url, headers=admin)
        assert listing.json()["total"] == 4
        assert "root@ops.example.com" not in [m["email"] for m in listing.json()["members"]]

    @pytest.mark.asyncio
    async def test_view_organization_requires_cookie(
        self, client: AsyncClient, test_organization: Organization, admin_user: User, auth_headers
    ):
        response = await client.get(
            f"/api/v1/super-admin/organizations/{test_organization.id}", headers=auth_headers(admin_user)
        )
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_view_unknown_organization(self, client: AsyncClient, super_headers):
        response = await client.get(f"/api/v1/super-admin/organizations/{uuid4()}", headers=super_headers)
        assert response.status_code == 404
        assert response.json()["error"] == "not_found"
