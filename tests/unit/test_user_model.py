"""
Unit Tests for the User Domain Model

Tests lockout bookkeeping, the weekly quota window and mood entry
retention without a database.
"""

from datetime import datetime, timedelta

import pytest

from mindsync.domain.enums.subscription_tier import SubscriptionTier
from mindsync.domain.models.user import (
    MoodEntry,
    SecurityState,
    User,
    UserStats,
    mood_average,
)

NOW = datetime(2026, 10, 21, 10, 0)
LOCK = timedelta(hours=2)


class TestSecurityState:
    """Login failure counting and locks."""

    def test_locks_on_fifth_failure(self) -> None:
        state = SecurityState()

        for _ in range(4):
            state.register_failure(5, LOCK, NOW)
        assert not state.is_locked(NOW)

        state.register_failure(5, LOCK, NOW)

        assert state.login_attempts == 5
        assert state.lock_until == NOW + LOCK
        assert state.is_locked(NOW + timedelta(minutes=119))
        assert not state.is_locked(NOW + LOCK)

    def test_expired_lock_restarts_count(self) -> None:
        state = SecurityState(login_attempts=5, lock_until=NOW - timedelta(seconds=1))

        state.register_failure(5, LOCK, NOW)

        assert state.login_attempts == 1
        assert state.lock_until is None

    def test_success_resets(self) -> None:
        state = SecurityState(login_attempts=3)

        state.register_success(NOW)

        assert state.login_attempts == 0
        assert state.last_login == NOW


class TestWeeklyQuota:
    """Quota checks against the ISO week of the last session."""

    def test_free_tier_blocked_at_quota(self) -> None:
        user = User(stats=UserStats(sessions_this_week=5, last_session_date=NOW - timedelta(days=1)))

        assert not user.can_start_session(NOW)

    def test_previous_week_does_not_count(self) -> None:
        # Sunday before the Wednesday in NOW
        user = User(stats=UserStats(sessions_this_week=5, last_session_date=datetime(2026, 10, 18, 23, 0)))

        assert user.stats.effective_sessions_this_week(NOW) == 0
        assert user.can_start_session(NOW)

    def test_premium_unlimited(self) -> None:
        user = User(
            subscription_tier=SubscriptionTier.PREMIUM,
            stats=UserStats(sessions_this_week=1000, last_session_date=NOW),
        )

        assert user.weekly_session_quota is None
        assert user.can_start_session(NOW)


class TestMoodEntries:
    """Mood entry validation and retention."""

    @pytest.mark.parametrize("mood", [0, 11, True, 5.5])
    def test_invalid_mood(self, mood) -> None:
        with pytest.raises(ValueError):
            MoodEntry(mood=mood)

    def test_average_rounded(self) -> None:
        entries = [MoodEntry(mood=m) for m in (7, 8, 8)]

        assert mood_average(entries) == 7.7
        assert mood_average([]) == 0.0

    def test_serialization_omits_password_hash(self) -> None:
        user = User(name="Ana", email="ana@x.com", password_hash="hashed")

        data = user.to_dict()

        assert "password_hash" not in data
        assert "hashed" not in data.values()
