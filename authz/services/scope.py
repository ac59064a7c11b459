"""
Organization scope resolution.

The only place where the tenant boundary of a request is established.
"""

import logging
from typing import Optional, Union
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from authz.domain.scope import Identity, OrgScope
from authz.errors import MissingOrgContext, NoMembership
from authz.models import Membership

logger = logging.getLogger(__name__)


def parse_org_ref(org_ref: Union[str, UUID, None]) -> Optional[UUID]:
    """Parse a request-supplied organization reference; None when unusable."""
    if isinstance(org_ref, UUID):
        return org_ref
    try:
        return UUID(str(org_ref).strip())
    except (TypeError, ValueError):
        return None


async def resolve_scope(
    db: AsyncSession,
    identity: Identity,
    org_ref: Union[str, UUID, None],
) -> OrgScope:
    """
    Resolve the active organization and the caller's role in it.

    Args:
        db: Database session
        identity: Authenticated user
        org_ref: Organization reference supplied by the request

    Returns:
        Immutable organization scope

    Raises:
        MissingOrgContext: If no organization reference was supplied
        NoMembership: If the user is not a member of the referenced
            organization, including when it does not exist
    """
    if org_ref is None or (isinstance(org_ref, str) and not org_ref.strip()):
        raise MissingOrgContext()

    org_id = parse_org_ref(org_ref)
    if org_id is None:
        logger.info(f"Rejected malformed organization reference from user {identity.user_id}")
        raise NoMembership()

    result = await db.execute(
        select(Membership.role).where(
            Membership.user_id == identity.user_id,
            Membership.organization_id == org_id,
        )
    )
    role = result.scalar_one_or_none()

    if role is None:
        logger.info(f"User {identity.user_id} has no membership in organization {org_id}")
        raise NoMembership()

    return OrgScope(
        organization_id=org_id,
        user_id=identity.user_id,
        email=identity.email,
        role=role,
    )
