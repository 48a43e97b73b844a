"""
Unit Tests for Usage Stats and Progress

Tests the weekly session quota, streaks, message counters and mood
tracking against a temporary SQLite database.
"""

import asyncio
from datetime import datetime, timedelta
from uuid import uuid4

import pytest

from mindsync.domain.enums.subscription_tier import SubscriptionTier
from mindsync.domain.exceptions import NotFoundError, PersistenceWarning, QuotaExceededError, ValidationError
from mindsync.domain.time_utils import utcnow
from mindsync.infrastructure.database.repositories.user_repository import UserRepository
from mindsync.services.progress.progress_service import ProgressService
from mindsync.services.stats.usage_stats import UsageStatsUpdater

# Wednesday of ISO week 43
WEDNESDAY = datetime(2026, 10, 21, 10, 0)


class TestSessionQuota:
    """Weekly session quota gate."""

    async def test_free_user_rejected_after_five(self, db, create_user) -> None:
        user = await create_user(sessions_this_week=5, last_session_date=WEDNESDAY - timedelta(hours=1))
        stats = UsageStatsUpdater(db)

        with pytest.raises(QuotaExceededError) as exc_info:
            await stats.start_session(user.id, now=WEDNESDAY)

        assert exc_info.value.status_code == 429
        assert exc_info.value.extra["limit"] == 5

    async def test_free_user_fifth_session_allowed(self, db, create_user) -> None:
        user = await create_user(sessions_this_week=4, last_session_date=WEDNESDAY - timedelta(hours=1))

        updated = await UsageStatsUpdater(db).start_session(user.id, now=WEDNESDAY)

        assert updated.stats.sessions_this_week == 5
        assert updated.stats.total_sessions == 1

    async def test_premium_never_rejected(self, db, create_user) -> None:
        user = await create_user(
            tier=SubscriptionTier.PREMIUM,
            sessions_this_week=500,
            last_session_date=WEDNESDAY - timedelta(hours=1),
        )

        updated = await UsageStatsUpdater(db).start_session(user.id, now=WEDNESDAY)

        assert updated.stats.sessions_this_week == 501

    async def test_counter_resets_in_new_week(self, db, create_user) -> None:
        user = await create_user(sessions_this_week=5, last_session_date=WEDNESDAY - timedelta(days=7))

        updated = await UsageStatsUpdater(db).start_session(user.id, now=WEDNESDAY)

        assert updated.stats.sessions_this_week == 1

    @pytest.mark.parametrize("last_session", [None, WEDNESDAY - timedelta(days=7)])
    async def test_concurrent_starts_respect_quota(self, db, create_user, last_session) -> None:
        user = await create_user(sessions_this_week=5, last_session_date=last_session)
        stats = UsageStatsUpdater(db)

        results = await asyncio.gather(
            *(stats.start_session(user.id, now=WEDNESDAY) for _ in range(8)),
            return_exceptions=True,
        )

        rejected = [r for r in results if isinstance(r, QuotaExceededError)]
        accepted = [r for r in results if not isinstance(r, Exception)]
        assert len(accepted) == 5
        assert len(rejected) == 3

        async with db.session() as session:
            model = await UserRepository(session).get_by_id(user.id)
        assert model.sessions_this_week == 5
        assert model.total_sessions == 5

    async def test_unknown_user(self, db, create_user) -> None:
        user = await create_user()
        async with db.session() as session:
            await UserRepository(session).soft_delete(user.id)

        with pytest.raises(NotFoundError):
            await UsageStatsUpdater(db).start_session(user.id, now=WEDNESDAY)


class TestStreak:
    """Streak bookkeeping on session start."""

    @pytest.mark.parametrize(
        "last_session,streak,expected",
        [
            (None, 0, 1),
            (WEDNESDAY - timedelta(hours=2), 3, 3),
            (WEDNESDAY - timedelta(days=1), 3, 4),
            (WEDNESDAY - timedelta(days=3), 3, 1),
        ],
    )
    async def test_streak(self, db, create_user, last_session, streak, expected) -> None:
        user = await create_user(last_session_date=last_session, streak_days=streak)

        updated = await UsageStatsUpdater(db).start_session(user.id, now=WEDNESDAY)

        assert updated.stats.streak_days == expected
        assert updated.stats.last_session_date == WEDNESDAY


class TestRecordExchange:
    """Message counters."""

    async def test_increments_messages_only(self, db, create_user) -> None:
        user = await create_user(last_session_date=WEDNESDAY)
        stats = UsageStatsUpdater(db)
        later = WEDNESDAY + timedelta(minutes=5)

        await stats.record_exchange(user.id, now=later)
        await stats.record_exchange(user.id, now=later)

        async with db.session() as session:
            model = await UserRepository(session).get_by_id(user.id)
        assert model.total_messages == 2
        assert model.last_activity == later
        assert model.last_session_date == WEDNESDAY

    async def test_missing_user_raises_warning(self, db, create_user) -> None:
        with pytest.raises(PersistenceWarning):
            await UsageStatsUpdater(db).record_exchange(uuid4())


class TestMoodTracking:
    """Mood submission, eviction and history."""

    @pytest.mark.parametrize("mood", [0, 11, -3])
    async def test_out_of_range_mood_rejected(self, db, create_user, mood: int) -> None:
        user = await create_user()

        with pytest.raises(ValidationError):
            await ProgressService(db).record_mood(user.id, mood)

    async def test_note_too_long_rejected(self, db, create_user) -> None:
        user = await create_user()

        with pytest.raises(ValidationError):
            await ProgressService(db).record_mood(user.id, 5, "x" * 501)

    async def test_record_and_history(self, db, create_user) -> None:
        user = await create_user()
        progress = ProgressService(db)

        record = await progress.record_mood(user.id, 7, "buen día")
        history = await progress.mood_history(user.id)

        assert record.average == 7.0
        assert record.entry_count == 1
        assert record.days_tracked == 1
        assert [e.mood for e in history.entries] == [7]
        assert history.entries[0].context == "buen día"

    async def test_eviction_keeps_latest_hundred(self, db, create_user) -> None:
        user = await create_user()
        progress = ProgressService(db)

        for i in range(105):
            record = await progress.record_mood(user.id, i % 10 + 1, f"n{i}")

        async with db.session() as session:
            entries = await UserRepository(session).get_mood_entries(user.id)

        assert record.entry_count == 100
        assert len(entries) == 100
        assert [e.context for e in entries] == [f"n{i}" for i in range(5, 105)]
        assert record.average == round(sum(i % 10 + 1 for i in range(5, 105)) / 100, 1)
        assert record.days_tracked == 105

    async def test_history_newest_first_and_trend(self, db, create_user) -> None:
        user = await create_user()
        progress = ProgressService(db)
        for mood in (2, 2, 2, 2, 2, 8, 8, 8, 8, 8):
            await progress.record_mood(user.id, mood)

        history = await progress.mood_history(user.id, days=30)

        assert [e.mood for e in history.entries][:5] == [8, 8, 8, 8, 8]
        assert history.trend == "improving"
        assert history.average == 5.0

    async def test_history_days_validated(self, db, create_user) -> None:
        user = await create_user()

        with pytest.raises(ValidationError):
            await ProgressService(db).mood_history(user.id, days=0)


class TestProgressOverview:
    """Derived overview figures."""

    async def test_overview_for_new_user(self, db, create_user) -> None:
        user = await create_user()

        overview = await ProgressService(db).overview(user.id)

        assert overview["total_sessions"] == 0
        assert overview["weekly_quota"] == 5
        assert overview["engagement"] == "low"
        assert overview["mood_trend"] == "neutral"
        assert overview["weekly_progress"] == 0
        assert "Registra tu estado de ánimo diariamente por una semana" in overview["goals"]

    async def test_overview_engagement_and_trend(self, db, create_user) -> None:
        user = await create_user(
            total_sessions=9,
            total_messages=40,
            days_tracked=3,
            mood_average=7.5,
            last_session_date=utcnow(),
        )

        overview = await ProgressService(db).overview(user.id)

        assert overview["engagement"] == "high"
        assert overview["mood_trend"] == "positive"
        assert overview["weekly_progress"] == 60
