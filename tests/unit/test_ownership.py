"""
Unit tests for resource ownership enforcement.
"""

from uuid import uuid4

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession

from authz.domain.roles import Decision, Role
from authz.errors import Forbidden, NotFound
from authz.models import Organization, Task, User
from authz.services.ownership import check_ownership, enforce_ownership, get_owned_resource

pytestmark = pytest.mark.unit


@pytest_asyncio.fixture
async def staff_task(test_db: AsyncSession, test_organization: Organization, staff_user: User) -> Task:
    task = Task(organization_id=test_organization.id, owner_user_id=staff_user.id, title="Quarterly report")
    test_db.add(task)
    await test_db.commit()
    return task


class TestEnforceOwnership:
    """Test the pure ownership decision."""

    @pytest.mark.asyncio
    async def test_owner_of_resource_allowed(self, staff_task, test_organization, staff_user, make_scope):
        scope = make_scope(test_organization, staff_user, Role.STAFF)
        assert enforce_ownership(staff_task, scope) is Decision.ALLOW

    @pytest.mark.asyncio
    async def test_non_owner_denied(self, staff_task, test_organization, client_user, make_scope):
        scope = make_scope(test_organization, client_user, Role.CLIENT)
        assert enforce_ownership(staff_task, scope) is Decision.DENY

    @pytest.mark.asyncio
    @pytest.mark.parametrize("role", [Role.ADMIN, Role.OWNER])
    async def test_privileged_allowed(self, staff_task, test_organization, admin_user, make_scope, role):
        scope = make_scope(test_organization, admin_user, role)
        assert enforce_ownership(staff_task, scope) is Decision.ALLOW

    @pytest.mark.asyncio
    async def test_other_org_always_denied(
        self, staff_task, other_organization, outsider_user, make_scope
    ):
        scope = make_scope(other_organization, outsider_user, Role.OWNER)
        assert enforce_ownership(staff_task, scope) is Decision.DENY


class TestCheckOwnership:
    """Test the two-tier NotFound / Forbidden outcome."""

    @pytest.mark.asyncio
    async def test_cross_tenant_is_not_found(self, staff_task, other_organization, outsider_user, make_scope):
        scope = make_scope(other_organization, outsider_user, Role.OWNER)
        with pytest.raises(NotFound):
            check_ownership(staff_task, scope)

    @pytest.mark.asyncio
    async def test_in_tenant_non_owner_is_forbidden(self, staff_task, test_organization, client_user, make_scope):
        scope = make_scope(test_organization, client_user, Role.CLIENT)
        with pytest.raises(Forbidden):
            check_ownership(staff_task, scope)

    @pytest.mark.asyncio
    async def test_load_filters_by_tenant(
        self, test_db, staff_task, other_organization, outsider_user, make_scope
    ):
        scope = make_scope(other_organization, outsider_user, Role.OWNER)
        with pytest.raises(NotFound):
            await get_owned_resource(test_db, Task, staff_task.id, scope)

    @pytest.mark.asyncio
    async def test_load_unknown_id(self, test_db, test_organization, admin_user, make_scope):
        scope = make_scope(test_organization, admin_user, Role.ADMIN)
        with pytest.raises(NotFound):
            await get_owned_resource(test_db, Task, uuid4(), scope)

    @pytest.mark.asyncio
    async def test_load_owned(self, test_db, staff_task, test_organization, staff_user, make_scope):
        scope = make_scope(test_organization, staff_user, Role.STAFF)
        task = await get_owned_resource(test_db, Task, staff_task.id, scope)
        assert task.id == staff_task.id
