"""
Organization API routes.

Create an organization, list the caller's organizations, and read one.
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from authz.database import get_db
from authz.domain.roles import Role
from authz.domain.scope import Identity, OrgScope
from authz.middleware.auth import get_current_identity, get_org_scope
from authz.services.organizations import OrganizationManager, OrganizationSummary

router = APIRouter(prefix="/api/v1/organizations", tags=["organizations"])


# Pydantic schemas
class OrganizationCreate(BaseModel):
    """Schema for creating a new organization."""
    name: str = Field(..., min_length=1, max_length=100)
    slug: Optional[str] = Field(None, max_length=50)


class OrganizationResponse(BaseModel):
    """Schema for organization response."""
    id: UUID
    name: str
    slug: str
    created_by: str
    created_at: datetime

    class Config:
        from_attributes = True


class MyOrganizationResponse(OrganizationResponse):
    """Organization with the caller's role and the member count."""
    role: Role
    member_count: int


def _summary_response(summary: OrganizationSummary) -> MyOrganizationResponse:
    org = summary.organization
    return MyOrganizationResponse(
        id=org.id,
        name=org.name,
        slug=org.slug,
        created_by=org.created_by,
        created_at=org.created_at,
        role=summary.role,
        member_count=summary.member_count,
    )


@router.post("", response_model=OrganizationResponse, status_code=status.HTTP_201_CREATED)
async def create_organization(
    organization: OrganizationCreate,
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(get_current_identity)
):
    """
    Create a new organization.

    The caller becomes its OWNER. The slug is derived from the name when
    omitted or invalid, and suffixed to stay unique.

    Raises:
        SlugConflict: If a concurrent create took the same slug
    """
    manager = OrganizationManager(db)
    return await manager.create_organization(identity, organization.name, organization.slug)


@router.get("", response_model=List[MyOrganizationResponse])
async def list_my_organizations(
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(get_current_identity)
):
    """List the caller's organizations, owned ones first."""
    summaries = await OrganizationManager(db).list_my_organizations(identity)
    return [_summary_response(summary) for summary in summaries]


@router.get("/{org_id}", response_model=MyOrganizationResponse)
async def get_organization(
    org_id: str,
    db: AsyncSession = Depends(get_db),
    scope: OrgScope = Depends(get_org_scope)
):
    """
    Get an organization the caller belongs to.

    Non-members get the same NoMembership outcome whether or not the
    organization exists.
    """
    summary = await OrganizationManager(db).get_organization(scope)
    return _summary_response(summary)
