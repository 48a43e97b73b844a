"""
User Domain Model

Represents a MindSync account: identity, subscription tier, usage
statistics, login security state, preferences and mood samples.

SECURITY: The password hash is carried on the entity for credential
checks but is never included in any serialized representation.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Optional
from uuid import UUID, uuid4

from mindsync.domain.enums.subscription_tier import SubscriptionTier
from mindsync.domain.time_utils import utcnow, week_start

MAX_MOOD_ENTRIES = 100
MOOD_MIN = 1
MOOD_MAX = 10
MOOD_CONTEXT_MAX_LENGTH = 500


@dataclass
class MoodEntry:
    """
    One self-reported wellbeing sample.

    Appended to the owning user's list, never edited in place.
    """

    mood: int
    context: Optional[str] = None
    timestamp: datetime = field(default_factory=utcnow)
    id: UUID = field(default_factory=uuid4)

    def __post_init__(self) -> None:
        if isinstance(self.mood, bool) or not isinstance(self.mood, int):
            raise ValueError("Mood must be an integer")
        if not MOOD_MIN <= self.mood <= MOOD_MAX:
            raise ValueError(f"Mood must be between {MOOD_MIN} and {MOOD_MAX}")
        if self.context is not None and len(self.context) > MOOD_CONTEXT_MAX_LENGTH:
            raise ValueError(f"Context cannot exceed {MOOD_CONTEXT_MAX_LENGTH} characters")

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "mood": self.mood,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
        }


def mood_average(entries: list[MoodEntry]) -> float:
    """Average mood over the entries, rounded to one decimal (0.0 if empty)."""
    if not entries:
        return 0.0
    return round(sum(e.mood for e in entries) / len(entries), 1)


@dataclass
class NotificationSettings:
    push_enabled: bool = True
    email_enabled: bool = True
    frequency: str = "daily"  # immediate, daily, weekly, monthly


@dataclass
class UserPreferences:
    """
    User-selected preferences.

    ``language`` selects both the crisis resource catalog and the
    language the assistant is asked to answer in.
    """

    therapy_style: str = "cognitive"
    communication_style: str = "supportive"
    language: str = "es"
    crisis_support: bool = True
    notification_settings: NotificationSettings = field(default_factory=NotificationSettings)

    def to_dict(self) -> dict:
        return {
            "therapy_style": self.therapy_style,
            "communication_style": self.communication_style,
            "language": self.language,
            "crisis_support": self.crisis_support,
            "notification_settings": {
                "push_enabled": self.notification_settings.push_enabled,
                "email_enabled": self.notification_settings.email_enabled,
                "frequency": self.notification_settings.frequency,
            },
        }

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "UserPreferences":
        data = data or {}
        notifications = data.get("notification_settings") or {}
        return cls(
            therapy_style=data.get("therapy_style", "cognitive"),
            communication_style=data.get("communication_style", "supportive"),
            language=data.get("language", "es"),
            crisis_support=data.get("crisis_support", True),
            notification_settings=NotificationSettings(
                push_enabled=notifications.get("push_enabled", True),
                email_enabled=notifications.get("email_enabled", True),
                frequency=notifications.get("frequency", "daily"),
            ),
        )


@dataclass
class SecurityState:
    """
    Login security state.

    Attributes:
        login_attempts: Consecutive failed logins
        lock_until: Account locked until this time (if set)
        last_login: Last successful login
    """

    login_attempts: int = 0
    lock_until: Optional[datetime] = None
    last_login: Optional[datetime] = None

    def is_locked(self, now: Optional[datetime] = None) -> bool:
        now = now or utcnow()
        return self.lock_until is not None and self.lock_until > now

    def register_failure(
        self,
        max_attempts: int,
        lock_duration: timedelta,
        now: Optional[datetime] = None,
    ) -> None:
        """
        Record a failed login.

        An expired lock restarts the count at one; reaching
        ``max_attempts`` without an active lock sets a new lock.
        """
        now = now or utcnow()
        if self.lock_until is not None and self.lock_until <= now:
            self.login_attempts = 1
            self.lock_until = None
        else:
            self.login_attempts += 1

        if self.login_attempts >= max_attempts and self.lock_until is None:
            self.lock_until = now + lock_duration

    def register_success(self, now: Optional[datetime] = None) -> None:
        self.login_attempts = 0
        self.lock_until = None
        self.last_login = now or utcnow()

    def to_dict(self) -> dict:
        return {
            "is_locked": self.is_locked(),
            "lock_until": self.lock_until.isoformat() if self.lock_until else None,
            "last_login": self.last_login.isoformat() if self.last_login else None,
        }


@dataclass
class UserStats:
    """
    Cumulative usage statistics.

    Counters are incremented at the storage layer; the values held
    here are the last read snapshot.
    """

    total_sessions: int = 0
    total_messages: int = 0
    sessions_this_week: int = 0
    streak_days: int = 0
    last_session_date: Optional[datetime] = None
    last_activity: Optional[datetime] = None
    mood_average: float = 0.0
    days_tracked: int = 0

    def effective_sessions_this_week(self, now: Optional[datetime] = None) -> int:
        """
        Sessions counted against this week's quota.

        The stored counter belongs to the ISO week of the last session;
        a session in an earlier week means nothing has been used yet.
        """
        now = now or utcnow()
        if self.last_session_date is None:
            return 0
        if self.last_session_date < week_start(now):
            return 0
        return self.sessions_this_week

    def next_streak(self, now: Optional[datetime] = None) -> int:
        """Streak value after a session starting at ``now``."""
        now = now or utcnow()
        if self.last_session_date is None:
            return 1
        days = (now.date() - self.last_session_date.date()).days
        if days == 0:
            return max(self.streak_days, 1)
        if days == 1:
            return self.streak_days + 1
        return 1

    def to_dict(self) -> dict:
        return {
            "total_sessions": self.total_sessions,
            "total_messages": self.total_messages,
            "sessions_this_week": self.sessions_this_week,
            "streak_days": self.streak_days,
            "last_session_date": self.last_session_date.isoformat() if self.last_session_date else None,
            "last_activity": self.last_activity.isoformat() if self.last_activity else None,
            "mood_average": self.mood_average,
            "days_tracked": self.days_tracked,
        }


@dataclass
class User:
    """
    Core user entity.

    Attributes:
        id: Unique user identifier
        name: Display name
        email: Unique, lowercase email
        password_hash: Salted hash (never serialized)
        subscription_tier: Plan determining the weekly session quota
        stats: Usage statistics
        security: Login lock state
        preferences: User preferences
        is_active: False once the account is deactivated
        deleted_at: Deactivation timestamp
    """

    id: UUID = field(default_factory=uuid4)
    name: str = ""
    email: str = ""
    password_hash: str = field(default="", repr=False)
    age: Optional[int] = None
    gender: str = "prefer-not-to-say"
    timezone: str = "America/Bogota"
    subscription_tier: SubscriptionTier = SubscriptionTier.FREE
    stats: UserStats = field(default_factory=UserStats)
    security: SecurityState = field(default_factory=SecurityState)
    preferences: UserPreferences = field(default_factory=UserPreferences)
    is_active: bool = True
    is_email_verified: bool = False
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)
    deleted_at: Optional[datetime] = None

    @property
    def weekly_session_quota(self) -> Optional[int]:
        return self.subscription_tier.weekly_session_quota

    def can_start_session(self, now: Optional[datetime] = None) -> bool:
        """Check the weekly quota for the user's tier."""
        return self.subscription_tier.allows_new_session(
            self.stats.effective_sessions_this_week(now)
        )

    def to_dict(self) -> dict:
        """
        Serialize user to dictionary.

        Note: The password hash is never included.
        """
        return {
            "id": str(self.id),
            "name": self.name,
            "email": self.email,
            "age": self.age,
            "gender": self.gender,
            "timezone": self.timezone,
            "subscription_tier": self.subscription_tier.value,
            "weekly_session_quota": self.weekly_session_quota,
            "stats": self.stats.to_dict(),
            "security": self.security.to_dict(),
            "preferences": self.preferences.to_dict(),
            "is_active": self.is_active,
            "is_email_verified": self.is_email_verified,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }
