"""
API routers for the authorization service.
"""

from . import invitations, members, organizations, super_admin, tasks

__all__ = ["invitations", "members", "organizations", "super_admin", "tasks"]
