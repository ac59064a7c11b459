"""
Tenant-owned business resources.

Business tables (tasks, time logs, expenses, ...) live outside the
authorization core; they share the two columns the ownership enforcer reads.
"""

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import DateTime, ForeignKey, String, Uuid
from sqlalchemy.orm import Mapped, declared_attr, mapped_column

from authz.domain.invitations import utc_now
from authz.models.base import Base


class TenantResourceMixin:
    """Columns every tenant-owned resource carries.

    ``organization_id`` is set at creation and never changes.
    """

    @declared_attr
    def organization_id(cls) -> Mapped[UUID]:
        return mapped_column(
            Uuid,
            ForeignKey("organizations.id", ondelete="CASCADE"),
            nullable=False,
            index=True
        )

    @declared_attr
    def owner_user_id(cls) -> Mapped[str]:
        return mapped_column(String(255), nullable=False, index=True)


class Task(TenantResourceMixin, Base):
    """Task owned by one user inside one organization."""

    __tablename__ = "tasks"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now, nullable=False)

    def __repr__(self) -> str:
        return f"<Task(id={self.id}, org_id={self.organization_id}, owner={self.owner_user_id})>"
