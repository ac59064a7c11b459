"""
Identity provider user mirror.
"""

import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from authz.config.settings import Settings, get_settings
from authz.domain.invitations import normalize_email
from authz.domain.scope import Identity
from authz.errors import IdentityConflict
from authz.models import User

logger = logging.getLogger(__name__)


def hidden_emails(settings: Optional[Settings] = None) -> List[str]:
    """Emails that never hold memberships or appear in member listings."""
    configured = (settings or get_settings()).super_admin_email
    return [normalize_email(configured)] if configured else []


def is_super_email(email: Optional[str], settings: Optional[Settings] = None) -> bool:
    return bool(email) and normalize_email(email) in hidden_emails(settings)


async def upsert_user(db: AsyncSession, identity: Identity) -> User:
    """
    Insert or refresh the local copy of an identity provider user.

    Flushes but does not commit; the caller owns the transaction.

    Args:
        db: Database session
        identity: Authenticated identity

    Returns:
        The user row

    Raises:
        IdentityConflict: If the email is already mirrored for another user id
    """
    user = await db.get(User, identity.user_id)
    email = normalize_email(identity.email)

    if user is None:
        user = User(id=identity.user_id, email=email, name=identity.name or "")
        db.add(user)
        logger.info(f"Registered identity {identity.user_id}")
    elif user.email != email or (identity.name and user.name != identity.name):
        user.email = email
        user.name = identity.name or user.name

    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        logger.warning(f"Identity mirror conflict: {identity.user_id} presented email held by another user")
        raise IdentityConflict()
    return user


async def get_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    result = await db.execute(select(User).where(User.email == normalize_email(email)))
    return result.scalar_one_or_none()
