"""
Invitation model: a time-boxed, token-bearing promise of future membership.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import DateTime, Enum, ForeignKey, Index, String, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from authz.domain.invitations import InvitationStatus, utc_now
from authz.domain.roles import Role
from authz.models.base import Base


class Invitation(Base):
    """
    Invitation to join an organization.

    Created PENDING; ends in exactly one of ACCEPTED, REVOKED or EXPIRED.
    Terminal states are never written again.
    """

    __tablename__ = "invitations"

    # Primary key
    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    # Foreign keys
    organization_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    # Invitation details
    email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)  # lower-cased
    role: Mapped[Role] = mapped_column(
        Enum(Role, name="membership_role", native_enum=False, length=20),
        nullable=False
    )
    token: Mapped[str] = mapped_column(String(128), unique=True, nullable=False)
    status: Mapped[InvitationStatus] = mapped_column(
        Enum(InvitationStatus, name="invitation_status", native_enum=False, length=20),
        nullable=False,
        default=InvitationStatus.PENDING
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    # Actors
    invited_by: Mapped[str] = mapped_column(String(255), nullable=False)
    accepted_by: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        onupdate=utc_now,
        nullable=False
    )

    # Relationships
    organization: Mapped["Organization"] = relationship("Organization", back_populates="invitations")

    __table_args__ = (
        # At most one PENDING invitation per (email, organization)
        Index(
            "uq_invitation_pending_email_org",
            "email",
            "organization_id",
            unique=True,
            postgresql_where=text("status = 'PENDING'"),
            sqlite_where=text("status = 'PENDING'"),
        ),
    )

    def __repr__(self) -> str:
        return f"<Invitation(id={self.id}, email={self.email}, status={self.status})>"
