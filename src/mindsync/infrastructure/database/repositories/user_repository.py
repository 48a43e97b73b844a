"""
User Repository

Data access layer for user entities with specialized queries.

Usage counters are changed with single UPDATE statements
(``col = col + n``) instead of read-modify-write so concurrent
requests from the same user do not lose increments.
"""

from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from sqlalchemy import case, delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from mindsync.domain.enums.subscription_tier import SubscriptionTier
from mindsync.domain.models.user import (
    MAX_MOOD_ENTRIES,
    MoodEntry,
    SecurityState,
    User,
    UserPreferences,
    UserStats,
    mood_average,
)
from mindsync.domain.time_utils import utcnow, week_start
from mindsync.infrastructure.database.models.mood_entry_model import MoodEntryModel
from mindsync.infrastructure.database.models.user_model import UserModel
from mindsync.infrastructure.database.repositories.base import BaseRepository


def to_domain(model: UserModel) -> User:
    """Map a user row to the domain entity."""
    return User(
        id=model.id,
        name=model.name,
        email=model.email,
        password_hash=model.password_hash,
        age=model.age,
        gender=model.gender,
        timezone=model.timezone,
        subscription_tier=SubscriptionTier(model.subscription_tier),
        stats=UserStats(
            total_sessions=model.total_sessions,
            total_messages=model.total_messages,
            sessions_this_week=model.sessions_this_week,
            streak_days=model.streak_days,
            last_session_date=model.last_session_date,
            last_activity=model.last_activity,
            mood_average=model.mood_average,
            days_tracked=model.days_tracked,
        ),
        security=SecurityState(
            login_attempts=model.login_attempts,
            lock_until=model.lock_until,
            last_login=model.last_login,
        ),
        preferences=UserPreferences.from_dict(model.preferences),
        is_active=model.is_active,
        is_email_verified=model.is_email_verified,
        created_at=model.created_at,
        updated_at=model.updated_at,
        deleted_at=model.deleted_at,
    )


def _mood_to_domain(model: MoodEntryModel) -> MoodEntry:
    return MoodEntry(
        mood=model.mood,
        context=model.context,
        timestamp=model.timestamp,
        id=model.entry_id,
    )


class UserRepository(BaseRepository[UserModel]):
    """
    Repository for user data access.

    Provides user-specific queries beyond basic CRUD.
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize with user model."""
        super().__init__(UserModel, session)

    async def get_by_email(
        self,
        email: str,
        *,
        include_deleted: bool = False,
    ) -> Optional[UserModel]:
        """
        Get user by email address (case-insensitive).

        Args:
            email: User email
            include_deleted: Also match deactivated accounts

        Returns:
            User if found, None otherwise
        """
        query = select(UserModel).where(
            func.lower(UserModel.email) == email.strip().lower()
        )
        if not include_deleted:
            query = query.where(UserModel.deleted_at.is_(None))

        result = await self._session.execute(
            query.execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def email_exists(self, email: str) -> bool:
        """Check whether any account, active or not, holds this email."""
        return await self.get_by_email(email, include_deleted=True) is not None

    async def get_active(self, user_id: UUID) -> Optional[UserModel]:
        """Get a user that is neither deactivated nor soft deleted."""
        user = await self.get_by_id(user_id)
        if user is None or not user.is_active or user.deleted_at is not None:
            return None
        return user

    async def save_security_state(self, user_id: UUID, state: SecurityState) -> None:
        """Persist login attempt counter, lock and last login."""
        await self._session.execute(
            update(UserModel)
            .where(UserModel.id == user_id)
            .values(
                login_attempts=state.login_attempts,
                lock_until=state.lock_until,
                last_login=state.last_login,
            )
        )

    async def update_profile(self, user_id: UUID, fields: dict[str, Any]) -> bool:
        """
        Apply a partial profile update.

        Args:
            user_id: User to update
            fields: Column name to new value (already validated)

        Returns:
            True if a row was updated
        """
        if not fields:
            return True
        result = await self._session.execute(
            update(UserModel)
            .where(UserModel.id == user_id, UserModel.deleted_at.is_(None))
            .values(**fields, updated_at=utcnow())
        )
        return result.rowcount > 0

    async def update_password_hash(self, user_id: UUID, password_hash: str) -> None:
        await self._session.execute(
            update(UserModel)
            .where(UserModel.id == user_id)
            .values(password_hash=password_hash, updated_at=utcnow())
        )

    async def record_session_start(
        self,
        user_id: UUID,
        *,
        now: datetime,
        streak_days: int,
        quota: Optional[int],
    ) -> bool:
        """
        Count a new chat session against the weekly quota.

        Both the weekly reset and the quota check are evaluated against
        the row inside the UPDATE, so concurrent session starts can
        neither pass a full quota nor reset each other's counter.

        Args:
            user_id: User starting the session
            now: Session start time
            streak_days: Streak value after this session
            quota: Weekly quota for the tier (None for unlimited)

        Returns:
            True if the session was counted, False if the quota is used up
        """
        if quota is not None and quota <= 0:
            return False

        earlier_week = or_(
            UserModel.last_session_date.is_(None),
            UserModel.last_session_date < week_start(now),
        )
        query = (
            update(UserModel)
            .where(UserModel.id == user_id)
            .values(
                total_sessions=UserModel.total_sessions + 1,
                sessions_this_week=case(
                    (earlier_week, 1),
                    else_=UserModel.sessions_this_week + 1,
                ),
                streak_days=streak_days,
                last_session_date=now,
                last_activity=now,
            )
        )
        if quota is not None:
            query = query.where(or_(earlier_week, UserModel.sessions_this_week < quota))

        result = await self._session.execute(query)
        return result.rowcount > 0

    async def increment_messages(self, user_id: UUID, count: int, *, now: datetime) -> bool:
        """Add ``count`` to the message counter and touch last activity."""
        result = await self._session.execute(
            update(UserModel)
            .where(UserModel.id == user_id)
            .values(
                total_messages=UserModel.total_messages + count,
                last_activity=now,
            )
        )
        return result.rowcount > 0

    async def soft_delete(self, user_id: UUID) -> bool:
        """
        Soft delete a user (set deleted_at timestamp).

        Args:
            user_id: User ID to delete

        Returns:
            True if user was soft deleted
        """
        now = utcnow()
        result = await self._session.execute(
            update(UserModel)
            .where(UserModel.id == user_id, UserModel.deleted_at.is_(None))
            .values(deleted_at=now, is_active=False, updated_at=now)
        )
        return result.rowcount > 0

    async def add_mood_entry(self, user_id: UUID, entry: MoodEntry) -> tuple[list[MoodEntry], float]:
        """
        Append a mood entry and evict the oldest beyond the cap.

        Recomputes the stored average over the retained entries.

        Returns:
            Retained entries (oldest first) and the new average
        """
        self._session.add(
            MoodEntryModel(
                entry_id=entry.id,
                user_id=user_id,
                mood=entry.mood,
                context=entry.context,
                timestamp=entry.timestamp,
            )
        )
        await self._session.flush()

        stale = await self._session.execute(
            select(MoodEntryModel.id)
            .where(MoodEntryModel.user_id == user_id)
            .order_by(MoodEntryModel.id.desc())
            .offset(MAX_MOOD_ENTRIES)
        )
        stale_ids = list(stale.scalars().all())
        if stale_ids:
            await self._session.execute(
                delete(MoodEntryModel).where(MoodEntryModel.id.in_(stale_ids))
            )

        entries = await self.get_mood_entries(user_id)
        average = mood_average(entries)

        await self._session.execute(
            update(UserModel)
            .where(UserModel.id == user_id)
            .values(
                mood_average=average,
                days_tracked=UserModel.days_tracked + 1,
                last_activity=entry.timestamp,
            )
        )
        return entries, average

    async def get_mood_entries(
        self,
        user_id: UUID,
        *,
        since: Optional[datetime] = None,
    ) -> list[MoodEntry]:
        """
        Get retained mood entries, oldest first.

        Args:
            user_id: Owning user
            since: Only entries at or after this time
        """
        query = select(MoodEntryModel).where(MoodEntryModel.user_id == user_id)
        if since is not None:
            query = query.where(MoodEntryModel.timestamp >= since)

        result = await self._session.execute(query.order_by(MoodEntryModel.id))
        return [_mood_to_domain(row) for row in result.scalars().all()]
