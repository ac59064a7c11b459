"""Membership Management

Purpose: List, add, re-role and remove organization members

Every mutation goes through the same guard chain:
1. OWNER memberships are never changed or removed, whatever the actor's
   role (CannotModifyOwner),
2. the actor must be ADMIN or above and the target must be a member of the
   actor's organization (InsufficientRole, MemberNotFound),
3. actors never mutate their own membership through admin paths
   (CannotModifySelf),
4. actors only mutate members ranked strictly below them (InsufficientRole).

The OWNER guard is repeated in the UPDATE/DELETE WHERE clause so a stale
read can never demote or remove an owner.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import case, delete, func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from authz.config.settings import Settings, get_settings
from authz.domain.invitations import normalize_email, utc_now
from authz.domain.roles import ASSIGNABLE_ROLES, Role, can_modify_member, require_role
from authz.domain.scope import OrgScope
from authz.errors import (CannotModifyOwner, CannotModifySelf, InsufficientRole,
                          InvalidRoleAssignment, MemberNotFound, UserAlreadyMember,
                          UserNotFound)
from authz.models import Membership, User
from authz.services.users import get_user_by_email, hidden_emails, is_super_email

logger = logging.getLogger(__name__)

ROLE_RANK = case({role: role.ordinal for role in Role}, value=Membership.role)


def _escape_like(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


@dataclass
class MemberView:
    """Member row as shown to organization admins."""
    user_id: str
    name: str
    email: str
    role: Role
    joined_at: datetime
    can_modify: bool


class MembershipManager:
    """Membership store operations for one organization scope"""

    def __init__(self, db: AsyncSession, settings: Optional[Settings] = None):
        self.db = db
        self.settings = settings or get_settings()

    async def list_members(
        self,
        scope: OrgScope,
        role: Optional[Role] = None,
        search: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
    ) -> Tuple[List[MemberView], int]:
        """
        List members of the scope's organization, owners first.

        Args:
            scope: Actor scope (ADMIN or above)
            role: Optional role filter
            search: Optional case-insensitive match on name or email
            page: 1-based page number
            limit: Page size (1-100)

        Returns:
            (page of members, total matching count)
        """
        require_role(scope, Role.ADMIN)
        page = max(1, page)
        limit = min(100, max(1, limit))

        conditions = [Membership.organization_id == scope.organization_id]
        hidden = hidden_emails(self.settings)
        if hidden:
            conditions.append(User.email.notin_(hidden))
        if role is not None:
            conditions.append(Membership.role == role)
        if search:
            pattern = f"%{_escape_like(search.strip().lower())}%"
            conditions.append(
                or_(
                    func.lower(User.name).like(pattern, escape="\\"),
                    User.email.like(pattern, escape="\\"),
                )
            )

        total = await self.db.scalar(
            select(func.count(Membership.id))
            .join(User, User.id == Membership.user_id)
            .where(*conditions)
        )
        result = await self.db.execute(
            select(Membership, User)
            .join(User, User.id == Membership.user_id)
            .where(*conditions)
            .order_by(ROLE_RANK.desc(), User.name.asc(), Membership.created_at.asc())
            .offset((page - 1) * limit)
            .limit(limit)
        )

        members = [
            MemberView(
                user_id=user.id,
                name=user.name,
                email=user.email,
                role=membership.role,
                joined_at=membership.created_at,
                can_modify=(
                    user.id != scope.user_id
                    and membership.role is not Role.OWNER
                    and can_modify_member(scope.role, membership.role)
                ),
            )
            for membership, user in result.all()
        ]
        return members, total or 0

    async def add_member(self, scope: OrgScope, email: str, role: Role) -> Membership:
        """
        Directly add an existing user to the scope's organization.

        Raises:
            InsufficientRole: If the actor is below ADMIN
            InvalidRoleAssignment: If role is OWNER
            UserNotFound: If no user has this email
            UserAlreadyMember: If the user is already a member
        """
        require_role(scope, Role.ADMIN)
        if role not in ASSIGNABLE_ROLES:
            raise InvalidRoleAssignment(f"Cannot assign role {role.value}")

        email = normalize_email(email)
        user = await get_user_by_email(self.db, email)
        if user is None or is_super_email(email, self.settings):
            raise UserNotFound()

        existing = await self.db.execute(
            select(Membership.id).where(
                Membership.user_id == user.id,
                Membership.organization_id == scope.organization_id,
            )
        )
        if existing.first() is not None:
            raise UserAlreadyMember()

        membership = Membership(user_id=user.id, organization_id=scope.organization_id, role=role)
        self.db.add(membership)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise UserAlreadyMember()

        logger.info(f"User {user.id} added to {scope.organization_id} as {role.value} by {scope.user_id}")
        return membership

    async def _guard_target(self, scope: OrgScope, target_user_id: str) -> Membership:
        """Load a mutation target and run the guard chain against it."""
        result = await self.db.execute(
            select(Membership).where(
                Membership.user_id == target_user_id,
                Membership.organization_id == scope.organization_id,
            )
        )
        target = result.scalar_one_or_none()

        # Owner protection applies whatever the actor's own role is
        if target is not None and target.role is Role.OWNER:
            logger.warning(
                f"Rejected change to owner {target.user_id} of {scope.organization_id} by {scope.user_id}"
            )
            raise CannotModifyOwner()

        require_role(scope, Role.ADMIN)
        if target is None:
            raise MemberNotFound()
        if target.user_id == scope.user_id:
            raise CannotModifySelf()
        if not can_modify_member(scope.role, target.role):
            raise InsufficientRole("Cannot modify a member with equal or higher role")
        return target

    @staticmethod
    def _check_assignable(new_role: Role) -> None:
        if new_role not in ASSIGNABLE_ROLES:
            raise InvalidRoleAssignment(f"Cannot assign role {new_role.value}; ownership transfer is not supported here")

    async def _apply_role(self, target: Membership, new_role: Role, now: datetime) -> None:
        changed = await self.db.execute(
            update(Membership)
            .where(Membership.id == target.id, Membership.role != Role.OWNER)
            .values(role=new_role, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        if changed.rowcount != 1:
            await self.db.rollback()
            raise CannotModifyOwner()

    async def update_member_role(
        self,
        scope: OrgScope,
        target_user_id: str,
        new_role: Role,
    ) -> Membership:
        """
        Change another member's role.

        Raises:
            CannotModifyOwner: If the target is an OWNER, whatever the actor's role
            InsufficientRole: If the actor is below ADMIN, or not above the target
            MemberNotFound: If the target is not a member of this organization
            CannotModifySelf: If the target is the actor
            InvalidRoleAssignment: If new_role is OWNER
        """
        target = await self._guard_target(scope, target_user_id)
        self._check_assignable(new_role)

        await self._apply_role(target, new_role, utc_now())
        await self.db.commit()
        await self.db.refresh(target)

        logger.info(
            f"Member {target_user_id} of {scope.organization_id} set to {new_role.value} by {scope.user_id}"
        )
        return target

    async def bulk_update_member_roles(
        self,
        scope: OrgScope,
        updates: Sequence[Tuple[str, Role]],
    ) -> List[Membership]:
        """
        Change several members' roles as one all-or-nothing operation.

        Every target is validated before anything is written; one OWNER
        target rejects the whole batch with CannotModifyOwner.
        """
        targets = []
        for target_user_id, new_role in updates:
            target = await self._guard_target(scope, target_user_id)
            self._check_assignable(new_role)
            targets.append((target, new_role))
        require_role(scope, Role.ADMIN)

        now = utc_now()
        for target, new_role in targets:
            await self._apply_role(target, new_role, now)
        await self.db.commit()

        for target, _ in targets:
            await self.db.refresh(target)

        logger.info(f"Bulk role update of {len(targets)} members in {scope.organization_id} by {scope.user_id}")
        return [target for target, _ in targets]

    async def remove_member(self, scope: OrgScope, target_user_id: str) -> None:
        """
        Remove another member from the organization.

        Raises:
            CannotModifyOwner: If the target is an OWNER, whatever the actor's role
            InsufficientRole: If the actor is below ADMIN, or not above the target
            MemberNotFound: If the target is not a member of this organization
            CannotModifySelf: If the target is the actor (use leave instead)
        """
        target = await self._guard_target(scope, target_user_id)

        removed = await self.db.execute(
            delete(Membership)
            .where(Membership.id == target.id, Membership.role != Role.OWNER)
            .execution_options(synchronize_session=False)
        )
        if removed.rowcount != 1:
            raise CannotModifyOwner()
        await self.db.commit()

        logger.info(f"Member {target_user_id} removed from {scope.organization_id} by {scope.user_id}")

    async def leave_organization(self, scope: OrgScope) -> None:
        """
        Remove the actor's own membership.

        Raises:
            CannotModifyOwner: If the actor is an OWNER
        """
        require_role(scope, Role.CLIENT)
        if scope.role is Role.OWNER:
            raise CannotModifyOwner("Owners cannot leave their organization")

        removed = await self.db.execute(
            delete(Membership)
            .where(
                Membership.user_id == scope.user_id,
                Membership.organization_id == scope.organization_id,
                Membership.role != Role.OWNER,
            )
            .execution_options(synchronize_session=False)
        )
        if removed.rowcount != 1:
            raise MemberNotFound()
        await self.db.commit()

        logger.info(f"User {scope.user_id} left organization {scope.organization_id}")
