"""
Invitation API routes.

Admin-side routes live under the organization; the preview and accept
routes are keyed by the invitation token instead.
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, EmailStr, Field
from sqlalchemy.ext.asyncio import AsyncSession

from authz.database import get_db
from authz.domain.invitations import InvitationStatus
from authz.domain.roles import Role
from authz.domain.scope import Identity, OrgScope
from authz.middleware.auth import get_current_identity, require_admin
from authz.services.invitations import InvitationManager, InvitationView

router = APIRouter(prefix="/api/v1", tags=["invitations"])


# Pydantic schemas
class InvitationCreate(BaseModel):
    """Schema for inviting an email address."""
    email: EmailStr
    role: Role = Role.CLIENT


class InvitationResponse(BaseModel):
    """Schema for invitation response (status is the effective status)."""
    id: UUID
    email: str
    role: Role
    status: InvitationStatus
    expires_at: datetime
    invited_by: str
    created_at: datetime
    can_revoke: bool


class InvitationCreatedResponse(InvitationResponse):
    accept_url: str


class InvitationListResponse(BaseModel):
    invitations: List[InvitationResponse]
    total: int
    page: int
    limit: int


class InvitationPreviewResponse(BaseModel):
    email: str
    role: Role
    status: InvitationStatus
    expires_at: datetime
    organization_name: str
    organization_slug: str
    member_count: int

    class Config:
        from_attributes = True


class InvitationAccept(BaseModel):
    token: str = Field(..., min_length=1, max_length=128)


class AcceptedMembershipResponse(BaseModel):
    organization_id: UUID
    role: Role


def _view_response(view: InvitationView) -> dict:
    invitation = view.invitation
    return {
        "id": invitation.id,
        "email": invitation.email,
        "role": invitation.role,
        "status": view.status,
        "expires_at": invitation.expires_at,
        "invited_by": invitation.invited_by,
        "created_at": invitation.created_at,
        "can_revoke": view.can_revoke,
    }


@router.post(
    "/organizations/{org_id}/invitations",
    response_model=InvitationCreatedResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_invitation(
    invitation: InvitationCreate,
    db: AsyncSession = Depends(get_db),
    scope: OrgScope = Depends(require_admin)
):
    """
    Invite an email address into the organization. Requires ADMIN.

    Raises:
        InviteAlreadyExists: If a live PENDING invitation exists
        UserAlreadyMember: If the email already belongs to a member
        InvalidRoleAssignment: If the role is OWNER
    """
    manager = InvitationManager(db)
    created = await manager.create_invitation(scope, invitation.email, invitation.role)
    body = _view_response(InvitationView(invitation=created, status=created.status))
    body["accept_url"] = manager.accept_url(created)
    return InvitationCreatedResponse(**body)


@router.get("/organizations/{org_id}/invitations", response_model=InvitationListResponse)
async def list_invitations(
    status_filter: Optional[InvitationStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    scope: OrgScope = Depends(require_admin)
):
    """List invitations, newest first, with expiry applied at read time."""
    views, total = await InvitationManager(db).list_invitations(scope, status_filter, page, limit)
    return InvitationListResponse(
        invitations=[InvitationResponse(**_view_response(view)) for view in views],
        total=total,
        page=page,
        limit=limit,
    )


@router.delete(
    "/organizations/{org_id}/invitations/{invite_id}",
    response_model=InvitationResponse,
)
async def revoke_invitation(
    invite_id: UUID,
    db: AsyncSession = Depends(get_db),
    scope: OrgScope = Depends(require_admin)
):
    """Revoke a PENDING invitation."""
    revoked = await InvitationManager(db).revoke_invitation(scope, invite_id)
    return InvitationResponse(**_view_response(InvitationView(invitation=revoked, status=revoked.status)))


@router.post("/invitations/accept", response_model=AcceptedMembershipResponse)
async def accept_invitation(
    payload: InvitationAccept,
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(get_current_identity)
):
    """
    Accept an invitation as the authenticated identity.

    Raises:
        InviteNotFound: Unknown token
        InviteExpired: Invitation past its expiry
        InvalidInviteStatus: Invitation already accepted or revoked
        EmailMismatch: Token presented by a different email
    """
    membership = await InvitationManager(db).accept_invitation(payload.token, identity)
    return AcceptedMembershipResponse(organization_id=membership.organization_id, role=membership.role)


@router.get("/invitations/{token}", response_model=InvitationPreviewResponse)
async def preview_invitation(
    token: str,
    db: AsyncSession = Depends(get_db)
):
    """Public preview of an invitation (no authentication)."""
    preview = await InvitationManager(db).get_invitation_preview(token)
    return InvitationPreviewResponse.model_validate(preview)
