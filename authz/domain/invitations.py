"""
Invitation state machine.

PENDING is the only non-terminal state. Expiry is never scheduled: it is a
pure function of (status, expires_at, now) evaluated on every read.
"""

from datetime import datetime, timezone
from enum import Enum


class InvitationStatus(str, Enum):
    """Stored invitation status"""
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    EXPIRED = "EXPIRED"
    REVOKED = "REVOKED"

    @property
    def is_terminal(self) -> bool:
        return self is not InvitationStatus.PENDING


def utc_now() -> datetime:
    """Return current UTC time (timezone-aware)."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes read back from backends without tz support."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def is_expired(expires_at: datetime, now: datetime) -> bool:
    return ensure_utc(now) >= ensure_utc(expires_at)


def effective_status(status: InvitationStatus, expires_at: datetime, now: datetime) -> InvitationStatus:
    """
    Status as observed at ``now``.

    A PENDING invitation past its expiry reads as EXPIRED; terminal states
    are returned unchanged.
    """
    if status is InvitationStatus.PENDING and is_expired(expires_at, now):
        return InvitationStatus.EXPIRED
    return status


def normalize_email(email: str) -> str:
    """Canonical form used for storage and case-insensitive matching"""
    return email.strip().lower()
