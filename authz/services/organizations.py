"""
Organization (tenant) management.

Creating an organization makes the creator its first OWNER in the same
transaction. Organizations are never deleted here.
"""

import logging
import re
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy import case, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from authz.domain.invitations import utc_now
from authz.domain.roles import Role, require_role
from authz.domain.scope import Identity, OrgScope
from authz.errors import NotFound, SlugConflict
from authz.models import Membership, Organization
from authz.services.users import upsert_user

logger = logging.getLogger(__name__)

SLUG_PATTERN = re.compile(r"^[a-zA-Z0-9][a-zA-Z0-9-]{1,48}[a-zA-Z0-9]$")
SLUG_BASE_MAX_LENGTH = 46
SLUG_MAX_ATTEMPTS = 100


def is_valid_org_slug(slug: Optional[str]) -> bool:
    """3-50 characters, alphanumeric or hyphen, no leading or trailing hyphen."""
    return bool(slug) and SLUG_PATTERN.match(slug) is not None


def generate_org_slug(name: str) -> str:
    """
    Derive a URL-safe slug from an organization name.

    Args:
        name: Display name

    Returns:
        Lower-case slug, ``"org"`` when nothing usable remains
    """
    slug = re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")
    slug = slug[:SLUG_BASE_MAX_LENGTH].strip("-")
    if len(slug) < 3:
        return "org"
    return slug


@dataclass
class OrganizationSummary:
    """Organization as listed for one of its members."""
    organization: Organization
    role: Role
    member_count: int


class OrganizationManager:
    """Organization operations for an authenticated user"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _unique_slug(self, base: str) -> str:
        base = base[:SLUG_BASE_MAX_LENGTH].strip("-") or "org"
        result = await self.db.execute(
            select(Organization.slug).where(
                (Organization.slug == base) | Organization.slug.like(f"{base}-%")
            )
        )
        taken = set(result.scalars().all())
        if base not in taken:
            return base
        for suffix in range(1, SLUG_MAX_ATTEMPTS + 1):
            candidate = f"{base}-{suffix}"
            if candidate not in taken:
                return candidate
        raise SlugConflict()

    async def create_organization(
        self,
        identity: Identity,
        name: str,
        slug: Optional[str] = None,
    ) -> Organization:
        """
        Create an organization owned by the calling identity.

        Args:
            identity: Creator (becomes OWNER)
            name: Display name
            slug: Requested slug; generated from the name when absent or invalid

        Returns:
            The new organization

        Raises:
            SlugConflict: If a concurrent create took the chosen slug
        """
        name = name.strip()
        base = slug.lower() if is_valid_org_slug(slug) else generate_org_slug(name)
        final_slug = await self._unique_slug(base)

        await upsert_user(self.db, identity)

        now = utc_now()
        organization = Organization(
            name=name,
            slug=final_slug,
            created_by=identity.user_id,
            created_at=now,
            updated_at=now,
        )
        self.db.add(organization)
        await self.db.flush()

        self.db.add(
            Membership(
                user_id=identity.user_id,
                organization_id=organization.id,
                role=Role.OWNER,
                created_at=now,
                updated_at=now,
            )
        )

        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise SlugConflict(slug=final_slug)

        logger.info(f"Organization {organization.id} ({final_slug}) created by {identity.user_id}")
        return organization

    async def list_my_organizations(self, identity: Identity) -> List[OrganizationSummary]:
        """Organizations the identity belongs to: owned ones first, then by name."""
        member_count = (
            select(func.count(Membership.id))
            .where(Membership.organization_id == Organization.id)
            .correlate(Organization)
            .scalar_subquery()
        )
        owner_first = case((Membership.role == Role.OWNER, 0), else_=1)

        result = await self.db.execute(
            select(Organization, Membership.role, member_count)
            .join(Membership, Membership.organization_id == Organization.id)
            .where(Membership.user_id == identity.user_id)
            .order_by(owner_first, Organization.name.asc())
        )
        return [
            OrganizationSummary(organization=org, role=role, member_count=count or 0)
            for org, role, count in result.all()
        ]

    async def get_organization(self, scope: OrgScope) -> OrganizationSummary:
        require_role(scope, Role.CLIENT)
        organization = await self.db.get(Organization, scope.organization_id)
        if organization is None:
            raise NotFound("Organization not found")

        count = await self.db.scalar(
            select(func.count(Membership.id)).where(Membership.organization_id == organization.id)
        )
        return OrganizationSummary(organization=organization, role=scope.role, member_count=count or 0)
