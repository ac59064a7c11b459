"""
Database models for the authorization core.

- Organizations (tenants)
- Users (identity provider mirror)
- Memberships (user/org/role edges)
- Invitations (pending memberships)
- Tenant-owned resources (tasks)
"""

from authz.models.organization import Organization
from authz.models.user import User
from authz.models.membership import Membership
from authz.models.invitation import Invitation
from authz.models.resource import Task, TenantResourceMixin

__all__ = [
    "Organization",
    "User",
    "Membership",
    "Invitation",
    "Task",
    "TenantResourceMixin",
]
