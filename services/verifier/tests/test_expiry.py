"""Tests for the expiry gate."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from verifier.expiry import ExpiryStatus, check

_EXPIRES = datetime(2026, 3, 1, 18, 0, 0, tzinfo=timezone.utc)


class TestExpiryCheck:
    def test_before_expiry_is_valid(self):
        assert check(_EXPIRES, _EXPIRES - timedelta(seconds=1)) is ExpiryStatus.VALID

    def test_exact_instant_is_valid(self):
        assert check(_EXPIRES, _EXPIRES) is ExpiryStatus.VALID

    def test_after_expiry_is_expired(self):
        assert check(_EXPIRES, _EXPIRES + timedelta(seconds=1)) is ExpiryStatus.EXPIRED

    def test_one_microsecond_late_is_expired(self):
        assert check(_EXPIRES, _EXPIRES + timedelta(microseconds=1)) is ExpiryStatus.EXPIRED

    def test_naive_expiry_read_back_from_store_is_utc(self):
        naive = _EXPIRES.replace(tzinfo=None)
        assert check(naive, _EXPIRES) is ExpiryStatus.VALID
        assert check(naive, _EXPIRES + timedelta(seconds=1)) is ExpiryStatus.EXPIRED

    def test_other_timezone_is_compared_in_utc(self):
        # 19:00 at UTC+1 is the expiry instant itself.
        local = _EXPIRES.astimezone(timezone(timedelta(hours=1)))
        assert check(_EXPIRES, local) is ExpiryStatus.VALID
