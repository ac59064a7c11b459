"""
Security utilities for the authorization core.

Provides invitation token generation, the HMAC-signed super-principal token,
and decoding of identity tokens issued by the external session service.
"""

import hashlib
import hmac
import secrets
import time
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import jwt

from authz.config.settings import get_settings
from authz.domain.invitations import normalize_email
from authz.domain.scope import Identity

settings = get_settings()


def generate_invite_token(num_bytes: Optional[int] = None) -> str:
    """
    Generate an unguessable invitation token.

    Args:
        num_bytes: Random bytes of entropy (defaults to settings, never below 16)

    Returns:
        URL-safe token string
    """
    num_bytes = max(num_bytes or settings.invite_token_bytes, 16)
    return secrets.token_urlsafe(num_bytes)


def _sign_timestamp(timestamp: str, secret: str) -> str:
    return hmac.new(secret.encode("utf-8"), timestamp.encode("utf-8"), hashlib.sha256).hexdigest()


def issue_super_token(secret: Optional[str] = None, issued_at: Optional[int] = None) -> str:
    """
    Issue a super-principal token: ``<unix-ts>.<hex HMAC-SHA256(secret, ts)>``.

    Args:
        secret: Signing secret (defaults to the configured super-admin secret)
        issued_at: Unix timestamp to sign (defaults to now)

    Returns:
        Token string for the super-principal cookie

    Raises:
        ValueError: If no secret is configured
    """
    secret = secret or settings.super_admin_secret
    if not secret:
        raise ValueError("Super-admin secret is not configured")

    timestamp = str(int(time.time()) if issued_at is None else issued_at)
    return f"{timestamp}.{_sign_timestamp(timestamp, secret)}"


def verify_super_token(
    raw_token: Optional[str],
    secret: Optional[str] = None,
    max_age_seconds: Optional[int] = None,
    now: Optional[float] = None,
) -> bool:
    """
    Verify a super-principal token.

    Pure cryptographic check; no database lookup. Rejects malformed,
    tampered, stale or future-dated tokens, and every token when no secret
    is configured.

    Args:
        raw_token: Token from the super-principal cookie
        secret: Signing secret (defaults to the configured super-admin secret)
        max_age_seconds: Maximum token age (defaults to settings)
        now: Current unix time (defaults to time.time())

    Returns:
        True if the token is authentic and fresh, False otherwise
    """
    secret = secret or settings.super_admin_secret
    if not secret or not raw_token:
        return False
    # compare_digest and int() both choke on non-ASCII input
    if not raw_token.isascii():
        return False

    timestamp, sep, signature = raw_token.partition(".")
    if not sep or not timestamp.isdigit() or not signature:
        return False

    expected = _sign_timestamp(timestamp, secret)
    if not hmac.compare_digest(expected, signature):
        return False

    now = time.time() if now is None else now
    max_age = settings.super_token_max_age_seconds if max_age_seconds is None else max_age_seconds
    age = now - int(timestamp)
    if age < -settings.super_token_max_skew_seconds:
        return False
    return age <= max_age


def create_identity_token(
    user_id: str, email: str, name: str = "", expires_delta: Optional[timedelta] = None
) -> str:
    """
    Create an identity token in the shape the session service issues.

    Used by development tooling and tests; production tokens come from the
    external identity provider.

    Args:
        user_id: Identity provider user id
        email: User email
        name: Display name
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT token string
    """
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(hours=1))

    to_encode = {
        "sub": user_id,  # Subject (user ID)
        "email": email,
        "name": name,
        "exp": expire,
        "iat": now,
    }
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_identity_token(token: str) -> Identity:
    """
    Decode an identity token into an ``Identity``.

    Args:
        token: JWT token string

    Returns:
        Identity carried by the token

    Raises:
        JWTError: If token is invalid or expired
        ValueError: If required claims are missing
    """
    payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])

    user_id = payload.get("sub")
    email = payload.get("email")
    if not user_id or not email:
        raise ValueError("Identity token is missing sub or email claim")

    return Identity(user_id=str(user_id), email=normalize_email(email), name=payload.get("name") or "")
