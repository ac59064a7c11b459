"""
Super-principal operations.

The super-principal is authenticated by the signed cookie alone and never
holds a Membership; these operations bypass scope resolution entirely.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from authz.config.settings import Settings, get_settings
from authz.domain.invitations import normalize_email
from authz.errors import NotFound
from authz.models import Membership, Organization, User
from authz.services.memberships import ROLE_RANK, MemberView
from authz.services.users import hidden_emails, is_super_email

logger = logging.getLogger(__name__)


@dataclass
class OrganizationDetail:
    """Read-only view of one organization for the super-principal."""
    organization: Organization
    members: List[MemberView]

    @property
    def member_count(self) -> int:
        return len(self.members)


class SuperAdminService:
    """Cross-tenant operations for the super-principal"""

    def __init__(self, db: AsyncSession, settings: Optional[Settings] = None):
        self.db = db
        self.settings = settings or get_settings()

    def is_super_identity(self, email: Optional[str]) -> bool:
        return is_super_email(email, self.settings)

    async def list_all_organizations(self) -> List[Organization]:
        result = await self.db.execute(select(Organization).order_by(Organization.name.asc()))
        return list(result.scalars().all())

    async def get_organization_detail(self, organization_id: UUID) -> OrganizationDetail:
        """
        Load one organization and its members, owners first.

        The super identity is filtered out of the member list, including any
        stray membership it may hold.

        Raises:
            NotFound: If the organization does not exist
        """
        organization = await self.db.get(Organization, organization_id)
        if organization is None:
            raise NotFound("Organization not found")

        conditions = [Membership.organization_id == organization_id]
        hidden = hidden_emails(self.settings)
        if hidden:
            conditions.append(User.email.notin_(hidden))

        result = await self.db.execute(
            select(Membership, User)
            .join(User, User.id == Membership.user_id)
            .where(*conditions)
            .order_by(ROLE_RANK.desc(), User.name.asc(), Membership.created_at.asc())
        )
        members = [
            MemberView(
                user_id=user.id,
                name=user.name,
                email=user.email,
                role=membership.role,
                joined_at=membership.created_at,
                can_modify=False,
            )
            for membership, user in result.all()
        ]

        logger.info(f"Super-principal viewed organization {organization_id}")
        return OrganizationDetail(organization=organization, members=members)

    async def remove_super_memberships(self) -> int:
        """
        Delete any Membership rows held by the configured super identity.

        Returns:
            Number of memberships removed
        """
        if not self.settings.super_admin_email:
            return 0

        email = normalize_email(self.settings.super_admin_email)
        user_ids = select(User.id).where(User.email == email).scalar_subquery()
        removed = await self.db.execute(
            delete(Membership)
            .where(Membership.user_id.in_(user_ids))
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()

        if removed.rowcount:
            logger.warning(f"Removed {removed.rowcount} memberships held by the super identity")
        return removed.rowcount or 0
