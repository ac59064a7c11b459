"""
Resource ownership enforcement.

Two-tier outcome: a resource that is absent from the caller's organization
(including one that exists in another organization) is NotFound; a resource
in the organization that the caller may not act on is Forbidden.
"""

import logging
from typing import Protocol, Type, TypeVar
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from authz.domain.roles import Decision
from authz.domain.scope import OrgScope
from authz.errors import Forbidden, NotFound

logger = logging.getLogger(__name__)


class OwnedResource(Protocol):
    organization_id: UUID
    owner_user_id: str


ResourceT = TypeVar("ResourceT")


def enforce_ownership(resource: OwnedResource, scope: OrgScope) -> Decision:
    """
    Decide whether the scoped principal may act on a tenant-filtered resource.

    Privileged members (ADMIN and above) may act on any resource of their
    organization; everyone else only on resources they own.
    """
    if resource.organization_id != scope.organization_id:
        # Caller skipped the tenant filter; never allow.
        logger.warning(
            f"Ownership check on resource from organization {resource.organization_id} "
            f"under scope {scope.organization_id}"
        )
        return Decision.DENY

    if scope.role.is_privileged or resource.owner_user_id == scope.user_id:
        return Decision.ALLOW
    return Decision.DENY


async def load_scoped_resource(
    db: AsyncSession,
    model: Type[ResourceT],
    resource_id: UUID,
    scope: OrgScope,
) -> ResourceT:
    """
    Load a resource by id, filtered by the scope's organization.

    Args:
        db: Database session
        model: Mapped class using ``TenantResourceMixin``
        resource_id: Resource primary key
        scope: Resolved organization scope

    Returns:
        The resource

    Raises:
        NotFound: If no such resource exists in this organization
    """
    result = await db.execute(
        select(model).where(
            model.id == resource_id,
            model.organization_id == scope.organization_id,
        )
    )
    resource = result.scalar_one_or_none()
    if resource is None:
        raise NotFound(f"{model.__name__} not found")
    return resource


def check_ownership(resource: OwnedResource, scope: OrgScope) -> OwnedResource:
    """
    Guard form of ``enforce_ownership``.

    Raises:
        NotFound: If the resource belongs to another organization
        Forbidden: If the resource is in-tenant but the caller is neither
            privileged nor its owner
    """
    if resource.organization_id != scope.organization_id:
        raise NotFound()
    if not enforce_ownership(resource, scope).allowed:
        raise Forbidden()
    return resource


async def get_owned_resource(
    db: AsyncSession,
    model: Type[ResourceT],
    resource_id: UUID,
    scope: OrgScope,
) -> ResourceT:
    """Tenant-filtered load followed by the ownership check."""
    resource = await load_scoped_resource(db, model, resource_id, scope)
    check_ownership(resource, scope)
    return resource
