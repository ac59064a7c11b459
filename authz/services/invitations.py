"""Invitation Lifecycle Management

Purpose: Issue, track and resolve organization invitations

State machine:
    PENDING --accept--> ACCEPTED
    PENDING --revoke--> REVOKED
    PENDING --(now >= expires_at)--> EXPIRED

PENDING is the only state that is ever written away from. Expiry is never
scheduled; it is computed on every read and accept, and persisted only
opportunistically (on a failed accept, or before issuing a fresh invite).

Concurrency:
- Two concurrent creates for the same (email, organization) collide on the
  partial unique index; the loser gets InviteAlreadyExists.
- Two concurrent accepts race on a compare-and-swap UPDATE guarded by
  ``status = 'PENDING'``; only the winner inserts the Membership, in the same
  transaction as the status change.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from authz.config.settings import Settings, get_settings
from authz.domain.invitations import (InvitationStatus, effective_status,
                                      normalize_email, utc_now)
from authz.domain.roles import ASSIGNABLE_ROLES, Role, require_role
from authz.domain.scope import Identity, OrgScope
from authz.errors import (EmailMismatch, InvalidInviteStatus, InvalidRoleAssignment,
                          InviteAlreadyExists, InviteExpired, InviteNotFound,
                          SuperIdentityMembership, UserAlreadyMember)
from authz.models import Invitation, Membership, Organization, User
from authz.security import generate_invite_token
from authz.services.users import is_super_email, upsert_user

logger = logging.getLogger(__name__)


@dataclass
class InvitationView:
    """Invitation as seen at a point in time (effective status applied)."""
    invitation: Invitation
    status: InvitationStatus

    @property
    def can_revoke(self) -> bool:
        return self.status is InvitationStatus.PENDING


@dataclass
class InvitationPreview:
    """Public, read-only details shown before accepting an invitation."""
    email: str
    role: Role
    status: InvitationStatus
    expires_at: datetime
    organization_name: str
    organization_slug: str
    member_count: int


class InvitationManager:
    """Invitation lifecycle manager

    Wraps one request-scoped database session. Every public method is a
    single unit of work that commits or rolls back before returning.
    """

    def __init__(self, db: AsyncSession, settings: Optional[Settings] = None):
        """Initialize invitation manager

        Args:
            db: Database session
            settings: Settings (defaults to the cached application settings)
        """
        self.db = db
        self.settings = settings or get_settings()

    def accept_url(self, invitation: Invitation) -> str:
        """Link delivered to the invitee"""
        return f"{self.settings.app_url.rstrip('/')}/invite?token={invitation.token}"

    async def create_invitation(
        self,
        scope: OrgScope,
        email: str,
        role: Role,
        now: Optional[datetime] = None,
    ) -> Invitation:
        """Create a PENDING invitation

        Args:
            scope: Actor scope (ADMIN or above)
            email: Invitee email (matched case-insensitively)
            role: Role granted on acceptance (never OWNER)
            now: Current time (defaults to utc_now())

        Returns:
            The new invitation

        Raises:
            InsufficientRole: If the actor is below ADMIN
            InvalidRoleAssignment: If role is OWNER
            UserAlreadyMember: If the email's user is already a member
            InviteAlreadyExists: If a live PENDING invitation exists
            SuperIdentityMembership: If email is the super identity
        """
        require_role(scope, Role.ADMIN)
        if role not in ASSIGNABLE_ROLES:
            raise InvalidRoleAssignment(f"Cannot invite with role {role.value}")

        now = now or utc_now()
        email = normalize_email(email)
        if is_super_email(email, self.settings):
            raise SuperIdentityMembership()
        org_id = scope.organization_id

        member = await self.db.execute(
            select(Membership.id)
            .join(User, User.id == Membership.user_id)
            .where(User.email == email, Membership.organization_id == org_id)
        )
        if member.first() is not None:
            raise UserAlreadyMember()

        existing = await self.db.execute(
            select(Invitation.id).where(
                Invitation.organization_id == org_id,
                Invitation.email == email,
                Invitation.status == InvitationStatus.PENDING,
                Invitation.expires_at > now,
            )
        )
        if existing.first() is not None:
            raise InviteAlreadyExists()

        # Stale PENDING rows would otherwise hold the partial unique index
        await self.db.execute(
            update(Invitation)
            .where(
                Invitation.organization_id == org_id,
                Invitation.email == email,
                Invitation.status == InvitationStatus.PENDING,
                Invitation.expires_at <= now,
            )
            .values(status=InvitationStatus.EXPIRED, updated_at=now)
            .execution_options(synchronize_session=False)
        )

        invitation = Invitation(
            organization_id=org_id,
            email=email,
            role=role,
            token=generate_invite_token(self.settings.invite_token_bytes),
            status=InvitationStatus.PENDING,
            expires_at=now + timedelta(days=self.settings.invite_ttl_days),
            invited_by=scope.user_id,
            created_at=now,
            updated_at=now,
        )
        self.db.add(invitation)

        try:
            await self.db.commit()
        except IntegrityError:
            # Lost the race against a concurrent create
            await self.db.rollback()
            raise InviteAlreadyExists()

        logger.info(
            f"Invitation {invitation.id} created for {email} in organization {org_id} "
            f"by {scope.user_id} (role {role.value})"
        )
        return invitation

    async def list_invitations(
        self,
        scope: OrgScope,
        status: Optional[InvitationStatus] = None,
        page: int = 1,
        limit: int = 20,
        now: Optional[datetime] = None,
    ) -> Tuple[List[InvitationView], int]:
        """List the organization's invitations, newest first

        The status filter applies to the effective status, so PENDING rows
        past expiry are listed under EXPIRED.

        Returns:
            (page of invitation views, total matching count)
        """
        require_role(scope, Role.ADMIN)
        now = now or utc_now()
        page = max(1, page)
        limit = min(100, max(1, limit))

        conditions = [Invitation.organization_id == scope.organization_id]
        if status is InvitationStatus.PENDING:
            conditions += [Invitation.status == InvitationStatus.PENDING, Invitation.expires_at > now]
        elif status is InvitationStatus.EXPIRED:
            conditions.append(
                or_(
                    Invitation.status == InvitationStatus.EXPIRED,
                    and_(Invitation.status == InvitationStatus.PENDING, Invitation.expires_at <= now),
                )
            )
        elif status is not None:
            conditions.append(Invitation.status == status)

        total = await self.db.scalar(select(func.count(Invitation.id)).where(*conditions))
        result = await self.db.execute(
            select(Invitation)
            .where(*conditions)
            .order_by(Invitation.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )

        views = [
            InvitationView(invitation=inv, status=effective_status(inv.status, inv.expires_at, now))
            for inv in result.scalars().all()
        ]
        return views, total or 0

    async def get_invitation_preview(self, token: str, now: Optional[datetime] = None) -> InvitationPreview:
        """Public preview of an invitation by token

        Raises:
            InviteNotFound: If the token is unknown
        """
        now = now or utc_now()
        result = await self.db.execute(
            select(Invitation, Organization)
            .join(Organization, Organization.id == Invitation.organization_id)
            .where(Invitation.token == token)
        )
        row = result.first()
        if row is None:
            raise InviteNotFound()

        invitation, organization = row
        member_count = await self.db.scalar(
            select(func.count(Membership.id)).where(Membership.organization_id == organization.id)
        )
        return InvitationPreview(
            email=invitation.email,
            role=invitation.role,
            status=effective_status(invitation.status, invitation.expires_at, now),
            expires_at=invitation.expires_at,
            organization_name=organization.name,
            organization_slug=organization.slug,
            member_count=member_count or 0,
        )

    async def accept_invitation(
        self,
        token: str,
        identity: Identity,
        now: Optional[datetime] = None,
    ) -> Membership:
        """Accept an invitation and create the membership atomically

        Args:
            token: Invitation token
            identity: Accepting identity (authenticated separately)
            now: Current time (defaults to utc_now())

        Returns:
            The membership granted (or the pre-existing one)

        Raises:
            InviteNotFound: If the token is unknown
            InviteExpired: If the invitation is past its expiry
            InvalidInviteStatus: If the invitation is no longer PENDING,
                including when a concurrent accept won the race
            EmailMismatch: If the accepting email differs from the invited one
            SuperIdentityMembership: If the accepting identity is the super identity
        """
        now = now or utc_now()

        result = await self.db.execute(select(Invitation).where(Invitation.token == token))
        invitation = result.scalar_one_or_none()
        if invitation is None:
            raise InviteNotFound()

        current = effective_status(invitation.status, invitation.expires_at, now)
        if current is InvitationStatus.EXPIRED:
            await self._persist_expiry(invitation.id, now)
            raise InviteExpired()
        if current is not InvitationStatus.PENDING:
            raise InvalidInviteStatus(f"Invitation is {current.value.lower()}")

        if normalize_email(identity.email) != normalize_email(invitation.email):
            logger.warning(f"Invitation {invitation.id} presented by non-matching identity {identity.user_id}")
            raise EmailMismatch()
        if is_super_email(identity.email, self.settings):
            logger.warning(f"Invitation {invitation.id} presented by the super identity")
            raise SuperIdentityMembership()

        # Compare-and-swap: only one accept can move the row out of PENDING
        swapped = await self.db.execute(
            update(Invitation)
            .where(
                Invitation.id == invitation.id,
                Invitation.status == InvitationStatus.PENDING,
                Invitation.expires_at > now,
            )
            .values(status=InvitationStatus.ACCEPTED, accepted_by=identity.user_id, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        if swapped.rowcount != 1:
            raise InvalidInviteStatus("Invitation is no longer pending")

        await upsert_user(self.db, identity)

        existing = await self.db.execute(
            select(Membership).where(
                Membership.user_id == identity.user_id,
                Membership.organization_id == invitation.organization_id,
            )
        )
        membership = existing.scalar_one_or_none()

        if membership is None:
            membership = Membership(
                user_id=identity.user_id,
                organization_id=invitation.organization_id,
                role=invitation.role,
                created_at=now,
                updated_at=now,
            )
            self.db.add(membership)

        try:
            await self.db.commit()
        except IntegrityError:
            # Membership created concurrently through another path
            await self.db.rollback()
            raise UserAlreadyMember()

        await self.db.refresh(invitation)
        logger.info(
            f"Invitation {invitation.id} accepted by {identity.user_id}; "
            f"member of {invitation.organization_id} as {membership.role.value}"
        )
        return membership

    async def revoke_invitation(
        self,
        scope: OrgScope,
        invitation_id: UUID,
        now: Optional[datetime] = None,
    ) -> Invitation:
        """Revoke a PENDING invitation of the scope's organization

        Raises:
            InsufficientRole: If the actor is below ADMIN
            InviteNotFound: If no such invitation exists in this organization
            InvalidInviteStatus: If the invitation is not PENDING (no change)
        """
        require_role(scope, Role.ADMIN)
        now = now or utc_now()

        result = await self.db.execute(
            select(Invitation).where(
                Invitation.id == invitation_id,
                Invitation.organization_id == scope.organization_id,
            )
        )
        invitation = result.scalar_one_or_none()
        if invitation is None:
            raise InviteNotFound("Invitation not found")

        current = effective_status(invitation.status, invitation.expires_at, now)
        if current is not InvitationStatus.PENDING:
            raise InvalidInviteStatus(f"Cannot revoke {current.value.lower()} invitation")

        swapped = await self.db.execute(
            update(Invitation)
            .where(Invitation.id == invitation.id, Invitation.status == InvitationStatus.PENDING)
            .values(status=InvitationStatus.REVOKED, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        if swapped.rowcount != 1:
            raise InvalidInviteStatus("Invitation is no longer pending")

        await self.db.commit()
        await self.db.refresh(invitation)
        logger.info(f"Invitation {invitation.id} revoked by {scope.user_id}")
        return invitation

    async def _persist_expiry(self, invitation_id: UUID, now: datetime) -> None:
        await self.db.execute(
            update(Invitation)
            .where(Invitation.id == invitation_id, Invitation.status == InvitationStatus.PENDING)
            .values(status=InvitationStatus.EXPIRED, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()

