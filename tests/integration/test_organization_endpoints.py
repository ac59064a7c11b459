"""
Integration tests for organization endpoints and scope resolution.
"""

from uuid import uuid4

import pytest
from httpx import AsyncClient

from authz.models import Organization, User

pytestmark = pytest.mark.integration


class TestAuthentication:
    """Identity boundary."""

    @pytest.mark.asyncio
    async def test_no_credentials(self, client: AsyncClient):
        response = await client.get("/api/v1/organizations")
        assert response.status_code in (401, 403)

    @pytest.mark.asyncio
    async def test_invalid_token(self, client: AsyncClient):
        response = await client.get("/api/v1/organizations", headers={"Authorization": "Bearer nope"})
        assert response.status_code == 401
        assert response.headers["www-authenticate"] == "Bearer"

    @pytest.mark.asyncio
    async def test_health(self, client: AsyncClient):
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestOrganizations:
    """Create, list and get."""

    @pytest.mark.asyncio
    async def test_create_makes_caller_owner(self, client: AsyncClient, outsider_user: User, auth_headers):
        response = await client.post(
            "/api/v1/organizations", headers=auth_headers(outsider_user), json={"name": "Initech"}
        )
        assert response.status_code == 201
        org = response.json()
        assert org["slug"] == "initech"
        assert org["created_by"] == outsider_user.id

        response = await client.get(f"/api/v1/organizations/{org['id']}", headers=auth_headers(outsider_user))
        assert response.status_code == 200
        assert response.json()["role"] == "OWNER"
        assert response.json()["member_count"] == 1

    @pytest.mark.asyncio
    async def test_list_mine(
        self, client: AsyncClient, test_organization: Organization, staff_user: User, auth_headers
    ):
        response = await client.get("/api/v1/organizations", headers=auth_headers(staff_user))
        assert response.status_code == 200
        data = response.json()
        assert len(data) == 1
        assert data[0]["id"] == str(test_organization.id)
        assert data[0]["role"] == "STAFF"

    @pytest.mark.asyncio
    async def test_create_validates_name(self, client: AsyncClient, outsider_user: User, auth_headers):
        response = await client.post("/api/v1/organizations", headers=auth_headers(outsider_user), json={"name": ""})
        assert response.status_code == 422


class TestTenantIsolation:
    """Scope resolution over HTTP."""

    @pytest.mark.asyncio
    async def test_other_tenant_is_no_membership(
        self,
        client: AsyncClient,
        test_organization: Organization,
        other_organization: Organization,
        owner_user: User,
        auth_headers,
    ):
        response = await client.get(
            f"/api/v1/organizations/{other_organization.id}", headers=auth_headers(owner_user)
        )
        assert response.status_code == 403
        assert response.json()["error"] == "no_membership"

    @pytest.mark.asyncio
    async def test_nonexistent_and_foreign_look_the_same(
        self,
        client: AsyncClient,
        test_organization: Organization,
        other_organization: Organization,
        owner_user: User,
        auth_headers,
    ):
        foreign = await client.get(
            f"/api/v1/organizations/{other_organization.id}", headers=auth_headers(owner_user)
        )
        missing = await client.get(f"/api/v1/organizations/{uuid4()}", headers=auth_headers(owner_user))
        malformed = await client.get("/api/v1/organizations/not-a-uuid", headers=auth_headers(owner_user))

        assert foreign.status_code == missing.status_code == malformed.status_code == 403
        assert foreign.json() == missing.json() == malformed.json()
