"""
Storage-backed operations of the authorization core.
"""

from authz.services.invitations import InvitationManager, InvitationPreview, InvitationView
from authz.services.memberships import MemberView, MembershipManager
from authz.services.organizations import OrganizationManager, OrganizationSummary
from authz.services.ownership import check_ownership, enforce_ownership, get_owned_resource
from authz.services.scope import resolve_scope
from authz.services.super_admin import OrganizationDetail, SuperAdminService
from authz.services.users import get_user_by_email, upsert_user

__all__ = [
    "InvitationManager",
    "InvitationPreview",
    "InvitationView",
    "MemberView",
    "MembershipManager",
    "OrganizationDetail",
    "OrganizationManager",
    "OrganizationSummary",
    "SuperAdminService",
    "check_ownership",
    "enforce_ownership",
    "get_owned_resource",
    "get_user_by_email",
    "resolve_scope",
    "upsert_user",
]
