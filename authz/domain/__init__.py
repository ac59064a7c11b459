"""
Pure domain types for the authorization core: roles, scopes and the
invitation state machine. No I/O happens in this package.
"""

from authz.domain.invitations import InvitationStatus, effective_status, normalize_email
from authz.domain.roles import ASSIGNABLE_ROLES, Decision, Role, enforce_role, require_role
from authz.domain.scope import Identity, OrgScope

__all__ = [
    "ASSIGNABLE_ROLES",
    "Decision",
    "Identity",
    "InvitationStatus",
    "OrgScope",
    "Role",
    "effective_status",
    "enforce_role",
    "normalize_email",
    "require_role",
]
