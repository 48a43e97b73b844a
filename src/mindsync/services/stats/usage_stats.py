"""
Usage Stats Updater

Maintains the usage counters on the user aggregate: sessions (with the
weekly quota gate and streak), messages and last activity.

Counter changes are single atomic UPDATE statements; nothing here
reads a counter, adds to it in Python and writes it back.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from mindsync.config.logging_config import get_logger
from mindsync.domain.exceptions import NotFoundError, PersistenceWarning, QuotaExceededError
from mindsync.domain.models.user import User
from mindsync.domain.time_utils import utcnow
from mindsync.infrastructure.database.connection import DatabaseManager
from mindsync.infrastructure.database.repositories.user_repository import (
    UserRepository,
    to_domain,
)
from mindsync.infrastructure.metrics import (
    CHAT_SESSIONS_STARTED,
    SESSION_QUOTA_REJECTIONS,
    STATS_PERSISTENCE_FAILURES,
)

logger = get_logger(__name__)


class UsageStatsUpdater:
    """
    Usage counter updates for chat activity.

    Usage:
        stats = UsageStatsUpdater(db)
        user = await stats.start_session(user_id)
        await stats.record_exchange(user_id)
    """

    def __init__(self, db: DatabaseManager) -> None:
        self._db = db

    async def start_session(self, user_id: UUID, now: Optional[datetime] = None) -> User:
        """
        Gate and count a new chat session.

        The weekly counter restarts when the previous session was in an
        earlier ISO week. The streak grows by one for a session the day
        after the previous one, stays put on the same day and restarts
        at one after a gap.

        Returns:
            The user after the update

        Raises:
            NotFoundError: User missing or deactivated
            QuotaExceededError: Weekly quota for the tier is used up
        """
        now = now or utcnow()

        async with self._db.session() as session:
            repo = UserRepository(session)
            model = await repo.get_active(user_id)
            if model is None:
                raise NotFoundError("User not found")

            user = to_domain(model)
            tier = user.subscription_tier
            quota = user.weekly_session_quota

            if not user.can_start_session(now):
                self._reject(user, quota)

            counted = await repo.record_session_start(
                user_id,
                now=now,
                streak_days=user.stats.next_streak(now),
                quota=quota,
            )
            if not counted:
                self._reject(user, quota)

            updated = to_domain(await repo.get_by_id(user_id))

        CHAT_SESSIONS_STARTED.labels(tier=tier.value).inc()
        logger.info(
            "Chat session counted",
            user_id=str(user_id),
            tier=tier.value,
            sessions_this_week=updated.stats.sessions_this_week,
            streak_days=updated.stats.streak_days,
        )
        return updated

    def _reject(self, user: User, quota: Optional[int]) -> None:
        SESSION_QUOTA_REJECTIONS.labels(tier=user.subscription_tier.value).inc()
        logger.info(
            "Session quota exceeded",
            user_id=str(user.id),
            tier=user.subscription_tier.value,
            quota=quota,
        )
        raise QuotaExceededError(
            f"Weekly session limit reached for the {user.subscription_tier.value} plan",
            extra={"limit": quota, "tier": user.subscription_tier.value},
        )

    async def record_exchange(
        self,
        user_id: UUID,
        messages: int = 1,
        now: Optional[datetime] = None,
    ) -> None:
        """
        Count a completed exchange.

        Raises:
            PersistenceWarning: The write failed; callers log and continue
        """
        now = now or utcnow()
        try:
            async with self._db.session() as session:
                updated = await UserRepository(session).increment_messages(user_id, messages, now=now)
        except Exception as e:
            STATS_PERSISTENCE_FAILURES.inc()
            raise PersistenceWarning(f"Failed to record message stats: {e}") from e

        if not updated:
            STATS_PERSISTENCE_FAILURES.inc()
            raise PersistenceWarning("Failed to record message stats: user row missing")
