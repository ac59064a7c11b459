"""
Authentication and authorization dependencies for the API.
"""

from .auth import (
    get_current_identity,
    get_org_scope,
    require_admin,
    require_role_dependency,
    require_super_principal,
)

__all__ = [
    "get_current_identity",
    "get_org_scope",
    "require_role_dependency",
    "require_admin",
    "require_super_principal",
]
