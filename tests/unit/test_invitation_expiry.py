"""
Unit tests for the invitation state machine.
"""

from datetime import datetime, timedelta, timezone

import pytest

from authz.domain.invitations import (
    InvitationStatus,
    effective_status,
    ensure_utc,
    is_expired,
    normalize_email,
)

pytestmark = pytest.mark.unit

CREATED = datetime(2026, 10, 1, 12, 0, tzinfo=timezone.utc)
EXPIRES = CREATED + timedelta(days=7)


class TestEffectiveStatus:
    """Test expiry computed at read time."""

    def test_pending_before_expiry(self):
        now = CREATED + timedelta(days=6, hours=23)
        assert effective_status(InvitationStatus.PENDING, EXPIRES, now) is InvitationStatus.PENDING

    def test_expired_on_day_eight(self):
        now = CREATED + timedelta(days=8)
        assert effective_status(InvitationStatus.PENDING, EXPIRES, now) is InvitationStatus.EXPIRED

    def test_boundary_is_expired(self):
        assert is_expired(EXPIRES, EXPIRES)
        assert not is_expired(EXPIRES, EXPIRES - timedelta(microseconds=1))

    @pytest.mark.parametrize(
        "status", [InvitationStatus.ACCEPTED, InvitationStatus.REVOKED, InvitationStatus.EXPIRED]
    )
    def test_terminal_states_unchanged(self, status):
        later = EXPIRES + timedelta(days=30)
        assert effective_status(status, EXPIRES, later) is status
        assert status.is_terminal

    def test_naive_datetimes_treated_as_utc(self):
        naive_expiry = EXPIRES.replace(tzinfo=None)
        assert effective_status(InvitationStatus.PENDING, naive_expiry, EXPIRES) is InvitationStatus.EXPIRED
        assert ensure_utc(naive_expiry) == EXPIRES


def test_normalize_email():
    assert normalize_email("  Bob@Example.COM ") == "bob@example.com"
