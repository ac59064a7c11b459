"""
Request-scoped principal values.
"""

from dataclasses import dataclass
from uuid import UUID

from authz.domain.roles import Role


@dataclass(frozen=True)
class Identity:
    """Authenticated user as reported by the external identity provider.

    Attributes:
        user_id: Stable, opaque user identifier
        email: Email address (lower-cased)
        name: Display name
    """
    user_id: str
    email: str
    name: str = ""


@dataclass(frozen=True)
class OrgScope:
    """Resolved organization context for one request.

    Produced only by ``resolve_scope``; downstream code takes the tenant
    boundary from here and nowhere else.
    """
    organization_id: UUID
    user_id: str
    email: str
    role: Role
