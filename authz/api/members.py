"""
Member management API routes.

Role checks happen inside MembershipManager so that OWNER protection is
reported before the actor's own rank.
"""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, EmailStr, Field
from sqlalchemy.ext.asyncio import AsyncSession

from authz.database import get_db
from authz.domain.roles import Role
from authz.domain.scope import OrgScope
from authz.middleware.auth import get_org_scope, require_admin
from authz.services.memberships import MembershipManager

router = APIRouter(prefix="/api/v1/organizations/{org_id}", tags=["members"])


# Pydantic schemas
class MemberResponse(BaseModel):
    """Member row as listed for admins."""
    user_id: str
    name: str
    email: str
    role: Role
    joined_at: datetime
    can_modify: bool

    class Config:
        from_attributes = True


class MemberListResponse(BaseModel):
    members: List[MemberResponse]
    total: int
    page: int
    limit: int


class MembershipResponse(BaseModel):
    """Schema for a membership edge."""
    user_id: str
    organization_id: str
    role: Role
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_membership(cls, membership) -> "MembershipResponse":
        return cls(
            user_id=membership.user_id,
            organization_id=str(membership.organization_id),
            role=membership.role,
            created_at=membership.created_at,
            updated_at=membership.updated_at,
        )


class MemberAdd(BaseModel):
    email: EmailStr
    role: Role = Role.CLIENT


class RoleUpdate(BaseModel):
    role: Role


class BulkRoleUpdateItem(BaseModel):
    user_id: str = Field(..., min_length=1)
    role: Role


class BulkRoleUpdate(BaseModel):
    updates: List[BulkRoleUpdateItem] = Field(..., min_length=1, max_length=100)


@router.get("/members", response_model=MemberListResponse)
async def list_members(
    role: Optional[Role] = None,
    search: Optional[str] = Query(None, max_length=100),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    scope: OrgScope = Depends(require_admin)
):
    """List members, owners first. Requires ADMIN."""
    members, total = await MembershipManager(db).list_members(scope, role, search, page, limit)
    return MemberListResponse(
        members=[MemberResponse.model_validate(member) for member in members],
        total=total,
        page=page,
        limit=limit,
    )


@router.post("/members", response_model=MembershipResponse, status_code=status.HTTP_201_CREATED)
async def add_member(
    member: MemberAdd,
    db: AsyncSession = Depends(get_db),
    scope: OrgScope = Depends(get_org_scope)
):
    """
    Add an existing user by email. Requires ADMIN.

    Raises:
        UserNotFound: If no user has this email
        UserAlreadyMember: If the user already belongs to the organization
    """
    membership = await MembershipManager(db).add_member(scope, member.email, member.role)
    return MembershipResponse.from_membership(membership)


@router.patch("/members", response_model=List[MembershipResponse])
async def bulk_update_member_roles(
    payload: BulkRoleUpdate,
    db: AsyncSession = Depends(get_db),
    scope: OrgScope = Depends(get_org_scope)
):
    """Change several roles at once; nothing is written if any change is rejected."""
    memberships = await MembershipManager(db).bulk_update_member_roles(
        scope, [(item.user_id, item.role) for item in payload.updates]
    )
    return [MembershipResponse.from_membership(m) for m in memberships]


@router.patch("/members/{user_id}", response_model=MembershipResponse)
async def update_member_role(
    user_id: str,
    payload: RoleUpdate,
    db: AsyncSession = Depends(get_db),
    scope: OrgScope = Depends(get_org_scope)
):
    """
    Change a member's role.

    Raises:
        CannotModifyOwner: If the target is an OWNER
        CannotModifySelf: If the target is the caller
        InsufficientRole: If the caller is not above the target
    """
    membership = await MembershipManager(db).update_member_role(scope, user_id, payload.role)
    return MembershipResponse.from_membership(membership)


@router.delete("/members/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_member(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    scope: OrgScope = Depends(get_org_scope)
):
    """Remove a member. Owners cannot be removed."""
    await MembershipManager(db).remove_member(scope, user_id)


@router.post("/leave", status_code=status.HTTP_204_NO_CONTENT)
async def leave_organization(
    db: AsyncSession = Depends(get_db),
    scope: OrgScope = Depends(get_org_scope)
):
    """Leave the organization. Owners cannot leave."""
    await MembershipManager(db).leave_organization(scope)
