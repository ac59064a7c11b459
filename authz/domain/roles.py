"""
Role hierarchy for organization memberships.

Four closed roles in a total order: OWNER > ADMIN > STAFF > CLIENT.
Every "minimum role" check in the codebase goes through ``enforce_role``.
"""

from enum import Enum

from authz.errors import InsufficientRole


class Role(str, Enum):
    """Membership role within an organization"""
    OWNER = "OWNER"
    ADMIN = "ADMIN"
    STAFF = "STAFF"
    CLIENT = "CLIENT"

    @property
    def ordinal(self) -> int:
        """Numeric rank of the role (OWNER=4 ... CLIENT=1)"""
        return _ORDINALS[self]

    @property
    def is_privileged(self) -> bool:
        """Privileged roles may manage members and act on any resource"""
        return self.ordinal >= Role.ADMIN.ordinal


_ORDINALS = {
    Role.OWNER: 4,
    Role.ADMIN: 3,
    Role.STAFF: 2,
    Role.CLIENT: 1,
}

# Roles an invitation or a role update may grant. OWNER is only ever
# granted by creating an organization.
ASSIGNABLE_ROLES = frozenset({Role.ADMIN, Role.STAFF, Role.CLIENT})


class Decision(str, Enum):
    """Outcome of a pure authorization check"""
    ALLOW = "allow"
    DENY = "deny"

    @property
    def allowed(self) -> bool:
        return self is Decision.ALLOW


def enforce_role(resolved: Role, required: Role) -> Decision:
    """Allow iff the resolved role ranks at or above the required role."""
    if resolved.ordinal >= required.ordinal:
        return Decision.ALLOW
    return Decision.DENY


def require_role(scope, min_role: Role):
    """
    Guard form of ``enforce_role`` for an already-resolved scope.

    Args:
        scope: Resolved ``OrgScope``
        min_role: Minimum role required

    Returns:
        The scope, unchanged

    Raises:
        InsufficientRole: If the scope's role ranks below ``min_role``
    """
    if not enforce_role(scope.role, min_role).allowed:
        raise InsufficientRole(
            f"Role {min_role.value} or higher required",
            required=min_role.value,
            current=scope.role.value,
        )
    return scope


def can_modify_member(actor_role: Role, target_role: Role) -> bool:
    """Actors may only modify members strictly below their own rank."""
    return actor_role.ordinal > target_role.ordinal
