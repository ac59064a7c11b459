"""
Identity and organization-scope dependencies.

Provides FastAPI dependencies for:
- Identity token validation
- Organization scope resolution
- Minimum-role authorization
- The super-principal cookie check
"""

import logging
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from authz.config.settings import get_settings
from authz.database import get_db
from authz.domain.roles import Role, require_role
from authz.domain.scope import Identity, OrgScope
from authz.errors import SuperPrincipalRequired
from authz.security import decode_identity_token, verify_super_token
from authz.services.scope import resolve_scope
from authz.services.users import upsert_user

logger = logging.getLogger(__name__)

# HTTP Bearer token scheme
security = HTTPBearer()

# Get settings
settings = get_settings()


async def get_current_identity(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> Identity:
    """
    Validate the identity token and return the caller's identity.

    The local user mirror is refreshed on every authenticated request so
    invitations can be matched by email.

    Args:
        credentials: HTTP Authorization header with Bearer token
        db: Database session

    Returns:
        Authenticated identity

    Raises:
        HTTPException: If the token is invalid or lacks a subject or email
        IdentityConflict: If the token's email is mirrored for another user id
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        identity = decode_identity_token(credentials.credentials)
    except (JWTError, ValueError):
        raise credentials_exception

    await upsert_user(db, identity)
    await db.commit()
    return identity


def get_org_ref(request: Request) -> Optional[str]:
    """Organization reference: path ``org_id``, then header, then ``orgId`` query."""
    return (
        request.path_params.get("org_id")
        or request.headers.get(settings.org_header_name)
        or request.query_params.get("orgId")
    )


async def get_org_scope(
    request: Request,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db)
) -> OrgScope:
    """
    Resolve the request's organization scope.

    Usage:
        @router.get("/orgs/{org_id}/tasks")
        async def list_tasks(scope: OrgScope = Depends(get_org_scope)):
            ...

    Raises:
        MissingOrgContext: If the request names no organization
        NoMembership: If the caller is not a member of it
    """
    return await resolve_scope(db, identity, get_org_ref(request))


def require_role_dependency(min_role: Role):
    """
    Dependency factory for minimum-role authorization.

    Usage:
        @router.get("/admin", dependencies=[Depends(require_role_dependency(Role.ADMIN))])
        async def admin_endpoint():
            ...

    Args:
        min_role: Minimum role within the resolved organization

    Returns:
        FastAPI dependency returning the resolved scope
    """
    async def role_checker(scope: OrgScope = Depends(get_org_scope)) -> OrgScope:
        return require_role(scope, min_role)

    return role_checker


require_admin = require_role_dependency(Role.ADMIN)


async def require_super_principal(request: Request) -> bool:
    """
    Require a valid super-principal cookie.

    Raises:
        SuperPrincipalRequired: If the cookie is absent, stale or forged
    """
    raw_token = request.cookies.get(settings.super_cookie_name)
    if not verify_super_token(raw_token):
        if raw_token:
            logger.warning("Rejected super-principal cookie")
        raise SuperPrincipalRequired()
    return True
