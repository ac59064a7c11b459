"""
Super-principal API routes.

Authenticated only by the signed super-principal cookie; no organization
scope is resolved for these routes.
"""

from datetime import datetime
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from authz.api.members import MemberResponse
from authz.config.settings import get_settings
from authz.database import get_db
from authz.middleware.auth import require_super_principal
from authz.security import verify_super_token
from authz.services.super_admin import SuperAdminService

router = APIRouter(prefix="/api/v1/super-admin", tags=["super-admin"])


class SuperAdminCheckResponse(BaseModel):
    is_super_admin: bool


class SuperOrganizationResponse(BaseModel):
    id: UUID
    name: str
    slug: str
    created_by: str
    created_at: datetime

    class Config:
        from_attributes = True


class SuperOrganizationDetailResponse(SuperOrganizationResponse):
    member_count: int
    members: List[MemberResponse]


class RemovedMembershipsResponse(BaseModel):
    removed: int


@router.get("/check", response_model=SuperAdminCheckResponse)
async def check_super_admin(request: Request):
    """Report whether the request carries a valid super-principal cookie."""
    raw_token = request.cookies.get(get_settings().super_cookie_name)
    return SuperAdminCheckResponse(is_super_admin=verify_super_token(raw_token))


@router.get(
    "/organizations",
    response_model=List[SuperOrganizationResponse],
    dependencies=[Depends(require_super_principal)],
)
async def list_all_organizations(db: AsyncSession = Depends(get_db)):
    """List every organization, by name."""
    return await SuperAdminService(db).list_all_organizations()


@router.get(
    "/organizations/{org_id}",
    response_model=SuperOrganizationDetailResponse,
    dependencies=[Depends(require_super_principal)],
)
async def get_organization_detail(org_id: UUID, db: AsyncSession = Depends(get_db)):
    """View one organization and its members, without holding a membership."""
    detail = await SuperAdminService(db).get_organization_detail(org_id)
    org = detail.organization
    return SuperOrganizationDetailResponse(
        id=org.id,
        name=org.name,
        slug=org.slug,
        created_by=org.created_by,
        created_at=org.created_at,
        member_count=detail.member_count,
        members=[MemberResponse.model_validate(m) for m in detail.members],
    )


@router.post(
    "/remove-memberships",
    response_model=RemovedMembershipsResponse,
    dependencies=[Depends(require_super_principal)],
)
async def remove_super_memberships(db: AsyncSession = Depends(get_db)):
    """Delete memberships accidentally held by the super identity."""
    removed = await SuperAdminService(db).remove_super_memberships()
    return RemovedMembershipsResponse(removed=removed)
