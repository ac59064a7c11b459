"""
Task API routes.

Tenant-owned records guarded by scope resolution plus ownership. The
organization is taken from the X-Org-Id header (or ``orgId`` query).
"""

from datetime import datetime
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from authz.database import get_db
from authz.domain.roles import Role, require_role
from authz.domain.scope import OrgScope
from authz.middleware.auth import get_org_scope
from authz.models import Task
from authz.services.ownership import get_owned_resource

router = APIRouter(prefix="/api/v1/tasks", tags=["tasks"])


class TaskCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)


class TaskResponse(BaseModel):
    id: UUID
    organization_id: UUID
    owner_user_id: str
    title: str
    created_at: datetime

    class Config:
        from_attributes = True


@router.post("", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
async def create_task(
    task: TaskCreate,
    db: AsyncSession = Depends(get_db),
    scope: OrgScope = Depends(get_org_scope)
):
    """Create a task owned by the caller. Requires STAFF."""
    require_role(scope, Role.STAFF)
    db_task = Task(organization_id=scope.organization_id, owner_user_id=scope.user_id, title=task.title)
    db.add(db_task)
    await db.commit()
    await db.refresh(db_task)
    return db_task


@router.get("", response_model=List[TaskResponse])
async def list_tasks(
    db: AsyncSession = Depends(get_db),
    scope: OrgScope = Depends(get_org_scope)
):
    """Privileged members see every task of the organization; others their own."""
    query = select(Task).where(Task.organization_id == scope.organization_id)
    if not scope.role.is_privileged:
        query = query.where(Task.owner_user_id == scope.user_id)
    result = await db.execute(query.order_by(Task.created_at.desc()))
    return result.scalars().all()


@router.get("/{task_id}", response_model=TaskResponse)
async def get_task(
    task_id: UUID,
    db: AsyncSession = Depends(get_db),
    scope: OrgScope = Depends(get_org_scope)
):
    """
    Get a task.

    Raises:
        NotFound: If the task is not in the caller's organization
        Forbidden: If the caller neither owns it nor is ADMIN or above
    """
    return await get_owned_resource(db, Task, task_id, scope)


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_task(
    task_id: UUID,
    db: AsyncSession = Depends(get_db),
    scope: OrgScope = Depends(get_org_scope)
):
    """Delete a task the caller owns (or any task, for ADMIN and above)."""
    task = await get_owned_resource(db, Task, task_id, scope)
    await db.delete(task)
    await db.commit()
