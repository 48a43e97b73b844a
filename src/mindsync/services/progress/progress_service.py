"""
Progress Service

Mood tracking and progress reporting.

Mood entries are stored per user with a FIFO cap; the stored average is
recomputed over the retained entries after each submission. Overview
figures (engagement, mood trend, weekly progress, goals) are derived
from the usage counters on the user row.
"""

from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from mindsync.config.logging_config import get_logger
from mindsync.domain.exceptions import NotFoundError, ValidationError
from mindsync.domain.models.user import (
    MOOD_CONTEXT_MAX_LENGTH,
    MOOD_MAX,
    MOOD_MIN,
    MoodEntry,
    User,
)
from mindsync.domain.time_utils import utcnow
from mindsync.infrastructure.database.connection import DatabaseManager
from mindsync.infrastructure.database.repositories.user_repository import (
    UserRepository,
    to_domain,
)
from mindsync.infrastructure.metrics import MOOD_ENTRIES_TOTAL

logger = get_logger(__name__)

WEEKLY_MOOD_GOAL_DAYS = 5
TREND_WINDOW = 5
TREND_THRESHOLD = 0.5


@dataclass
class MoodRecord:
    """Result of a mood submission."""

    entry: MoodEntry
    average: float
    entry_count: int
    days_tracked: int


@dataclass
class MoodHistory:
    """Stored entries in a time window, newest first, with a summary."""

    entries: list[MoodEntry]
    average: float
    days_tracked: int
    trend: str
    days: int


def mood_trend(newest_first: list[MoodEntry]) -> str:
    """
    Compare the latest entries with the ones before them.

    Returns "improving", "declining" or "stable".
    """
    if len(newest_first) < 2:
        return "stable"

    recent = newest_first[:TREND_WINDOW]
    older = newest_first[TREND_WINDOW:TREND_WINDOW * 2]
    recent_avg = sum(e.mood for e in recent) / len(recent)
    older_avg = sum(e.mood for e in older) / len(older) if older else recent_avg

    diff = recent_avg - older_avg
    if diff > TREND_THRESHOLD:
        return "improving"
    if diff < -TREND_THRESHOLD:
        return "declining"
    return "stable"


def engagement_level(user: User) -> str:
    """Sessions per tracked day: >= 3 high, >= 1.5 medium, else low."""
    stats = user.stats
    if not stats.total_sessions or not stats.days_tracked:
        return "low"
    ratio = stats.total_sessions / stats.days_tracked
    if ratio >= 3:
        return "high"
    if ratio >= 1.5:
        return "medium"
    return "low"


def mood_label(average: float) -> str:
    if not average:
        return "neutral"
    if average >= 7:
        return "positive"
    if average <= 4:
        return "negative"
    return "neutral"


def weekly_progress(user: User) -> int:
    """Percent of the weekly mood-logging goal reached."""
    progress = min((user.stats.days_tracked % 7) / WEEKLY_MOOD_GOAL_DAYS, 1) * 100
    return round(progress)


# CLINICAL_REVIEW_REQUIRED
def suggested_goals(user: User) -> list[str]:
    stats = user.stats
    goals = []
    if stats.days_tracked < 7:
        goals.append("Registra tu estado de ánimo diariamente por una semana")
    if stats.mood_average < 5:
        goals.append("Explora técnicas de mindfulness para mejorar tu bienestar")
    if stats.total_messages < 10:
        goals.append("Interactúa más con el asistente para desarrollar hábitos saludables")
    if not goals:
        goals.append("¡Excelente trabajo! Mantén tu progreso constante")
    return goals


class ProgressService:
    """
    Mood tracking and progress summaries.

    Usage:
        progress = ProgressService(db)
        record = await progress.record_mood(user.id, 7, "buen día")
        history = await progress.mood_history(user.id, days=30)
    """

    def __init__(self, db: DatabaseManager) -> None:
        self._db = db

    async def record_mood(
        self,
        user_id,
        mood: int,
        context: Optional[str] = None,
    ) -> MoodRecord:
        """
        Store a mood entry and refresh the running average.

        Raises:
            ValidationError: Mood outside 1-10 or context too long
            NotFoundError: User missing or deactivated
        """
        if isinstance(mood, bool) or not isinstance(mood, int) or not MOOD_MIN <= mood <= MOOD_MAX:
            raise ValidationError.for_field(
                "mood", f"Mood must be an integer between {MOOD_MIN} and {MOOD_MAX}"
            )
        context = context.strip() if context else None
        if context and len(context) > MOOD_CONTEXT_MAX_LENGTH:
            raise ValidationError.for_field(
                "note", f"Note cannot exceed {MOOD_CONTEXT_MAX_LENGTH} characters"
            )

        entry = MoodEntry(mood=mood, context=context or None)

        async with self._db.session() as session:
            repo = UserRepository(session)
            if await repo.get_active(user_id) is None:
                raise NotFoundError("User not found")
            entries, average = await repo.add_mood_entry(user_id, entry)
            days_tracked = (await repo.get_by_id(user_id)).days_tracked

        MOOD_ENTRIES_TOTAL.inc()
        logger.info(
            "Mood recorded",
            user_id=str(user_id),
            mood=mood,
            has_note=bool(context),
            average=average,
            entry_count=len(entries),
        )
        return MoodRecord(
            entry=entry,
            average=average,
            entry_count=len(entries),
            days_tracked=days_tracked,
        )

    async def mood_history(self, user_id, days: int = 30) -> MoodHistory:
        """
        Stored mood entries from the last ``days`` days, newest first.

        Raises:
            ValidationError: ``days`` outside 1-365
            NotFoundError: User missing or deactivated
        """
        if not 1 <= days <= 365:
            raise ValidationError.for_field("days", "Days must be between 1 and 365")

        since = utcnow() - timedelta(days=days)
        async with self._db.session() as session:
            repo = UserRepository(session)
            model = await repo.get_active(user_id)
            if model is None:
                raise NotFoundError("User not found")
            entries = await repo.get_mood_entries(user_id, since=since)
            user = to_domain(model)

        newest_first = list(reversed(entries))
        return MoodHistory(
            entries=newest_first,
            average=user.stats.mood_average,
            days_tracked=user.stats.days_tracked,
            trend=mood_trend(newest_first),
            days=days,
        )

    async def summary(self, user_id) -> dict:
        """Compact progress summary."""
        user = await self._load(user_id)
        stats = user.stats
        return {
            "total_sessions": stats.total_sessions,
            "total_messages": stats.total_messages,
            "sessions_this_week": stats.effective_sessions_this_week(),
            "streak_days": stats.streak_days,
            "last_activity": stats.last_activity,
            "mood_average": stats.mood_average,
            "days_tracked": stats.days_tracked,
            "created_at": user.created_at,
        }

    async def overview(self, user_id) -> dict:
        """Aggregate stats plus derived engagement, trend, progress and goals."""
        user = await self._load(user_id)
        stats = user.stats
        return {
            "total_sessions": stats.total_sessions,
            "total_messages": stats.total_messages,
            "sessions_this_week": stats.effective_sessions_this_week(),
            "weekly_quota": user.weekly_session_quota,
            "days_tracked": stats.days_tracked,
            "mood_average": stats.mood_average,
            "member_since": user.created_at,
            "last_activity": stats.last_activity,
            "streak_days": stats.streak_days,
            "engagement": engagement_level(user),
            "mood_trend": mood_label(stats.mood_average),
            "weekly_progress": weekly_progress(user),
            "goals": suggested_goals(user),
        }

    async def _load(self, user_id) -> User:
        async with self._db.session() as session:
            model = await UserRepository(session).get_active(user_id)
            if model is None:
                raise NotFoundError("User not found")
            return to_domain(model)
