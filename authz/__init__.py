"""
Vebtask authorization core.

Tenant-scoped authorization for the Vebtask productivity platform:
- Organization scope resolution (which tenant a request runs against)
- Role hierarchy enforcement (OWNER > ADMIN > STAFF > CLIENT)
- Resource ownership checks with cross-tenant NotFound semantics
- Invitation lifecycle (PENDING -> ACCEPTED | REVOKED | EXPIRED)
- Membership-free super-principal channel
"""

__version__ = "1.0.0"

from authz.config import Settings

__all__ = ["Settings"]
