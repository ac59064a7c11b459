"""
Typed authorization outcomes.

Every expected, user-facing failure of the authorization core is an
``AuthzError`` subclass with a stable ``code`` and an HTTP ``status_code``.
They are rendered by the exception handler registered in ``authz.main`` and
are never logged as server faults.
"""

from typing import Any, Optional

from fastapi import status


class AuthzError(Exception):
    """Base class for expected authorization failures."""

    code: str = "authz_error"
    status_code: int = status.HTTP_400_BAD_REQUEST
    message: str = "Authorization failed"

    def __init__(self, message: Optional[str] = None, **context: Any):
        self.message = message or self.message
        self.context = context
        super().__init__(self.message)

    def to_dict(self) -> dict:
        """Convert to the JSON error body"""
        body = {"error": self.code, "message": self.message}
        if self.context:
            body["details"] = self.context
        return body


# Scope resolution
class MissingOrgContext(AuthzError):
    code = "missing_org_context"
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Organization context required (X-Org-Id header, org_id path or orgId query)"


class NoMembership(AuthzError):
    # Same outcome for "organization does not exist" and "not a member"
    code = "no_membership"
    status_code = status.HTTP_403_FORBIDDEN
    message = "Access denied: you are not a member of this organization"


class InsufficientRole(AuthzError):
    code = "insufficient_role"
    status_code = status.HTTP_403_FORBIDDEN
    message = "Insufficient role for this operation"


# Resource access
class NotFound(AuthzError):
    code = "not_found"
    status_code = status.HTTP_404_NOT_FOUND
    message = "Resource not found"


class Forbidden(AuthzError):
    code = "forbidden"
    status_code = status.HTTP_403_FORBIDDEN
    message = "You do not have access to this resource"


class MemberNotFound(NotFound):
    code = "member_not_found"
    message = "Member not found"


class UserNotFound(NotFound):
    code = "user_not_found"
    message = "No user with this email address"


# Invitations
class InviteNotFound(NotFound):
    code = "invite_not_found"
    message = "Invalid invitation"


class InviteExpired(InviteNotFound):
    code = "invite_expired"
    status_code = status.HTTP_410_GONE
    message = "Invitation has expired"


class InviteAlreadyExists(AuthzError):
    code = "invite_already_exists"
    status_code = status.HTTP_409_CONFLICT
    message = "A pending invitation already exists for this email"


class UserAlreadyMember(AuthzError):
    code = "user_already_member"
    status_code = status.HTTP_409_CONFLICT
    message = "User is already a member of this organization"


class InvalidInviteStatus(AuthzError):
    code = "invalid_invite_status"
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Invitation is no longer pending"


class EmailMismatch(AuthzError):
    code = "email_mismatch"
    status_code = status.HTTP_403_FORBIDDEN
    message = "Invitation was issued for a different email address"


# Role mutation
class CannotModifyOwner(AuthzError):
    code = "cannot_modify_owner"
    status_code = status.HTTP_403_FORBIDDEN
    message = "Organization owners cannot be modified or removed"


class CannotModifySelf(AuthzError):
    code = "cannot_modify_self"
    status_code = status.HTTP_400_BAD_REQUEST
    message = "You cannot modify your own membership"


class InvalidRoleAssignment(AuthzError):
    code = "invalid_role_assignment"
    status_code = status.HTTP_400_BAD_REQUEST
    message = "This role cannot be assigned"


# Organizations
class SlugConflict(AuthzError):
    code = "slug_conflict"
    status_code = status.HTTP_409_CONFLICT
    message = "Organization slug already exists"


# Super-principal channel
class SuperPrincipalRequired(AuthzError):
    code = "forbidden"
    status_code = status.HTTP_403_FORBIDDEN
    message = "Forbidden"


class SuperIdentityMembership(AuthzError):
    code = "super_identity_membership"
    status_code = status.HTTP_400_BAD_REQUEST
    message = "The super identity cannot hold organization memberships"


# Identity mirror
class IdentityConflict(AuthzError):
    code = "identity_conflict"
    status_code = status.HTTP_409_CONFLICT
    message = "This email address is already registered to another identity"
