"""
API Schemas

Request and response models for the HTTP API. Field names are
snake_case in Python and camelCase on the wire.
"""

import re
from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from mindsync.domain.models.conversation import ChatMessage, ConversationSession
from mindsync.domain.models.user import MoodEntry, User
from mindsync.services.auth.security import TokenPair
from mindsync.services.chat.chat_dispatcher import DispatchOutcome, DispatchResult
from mindsync.services.safety.crisis_resources import ResourceBundle

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
NAME_PATTERN = r"^[A-Za-zÁÉÍÓÚáéíóúÑñÜü\s]+$"

Gender = Literal["male", "female", "non-binary", "prefer-not-to-say"]
TherapyStyle = Literal["cognitive", "behavioral", "humanistic", "integrated"]
CommunicationStyle = Literal["supportive", "direct", "humorous", "mindful"]
Language = Literal["es", "en", "pt"]
Frequency = Literal["immediate", "daily", "weekly", "monthly"]


class CamelModel(BaseModel):
    """Base model exchanging camelCase JSON."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class StrictCamelModel(CamelModel):
    """Rejects unknown fields."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")


# =============================================================================
# AUTH
# =============================================================================

class NotificationSettingsInput(StrictCamelModel):
    push_enabled: Optional[bool] = None
    email_enabled: Optional[bool] = None
    frequency: Optional[Frequency] = None


class PreferencesInput(StrictCamelModel):
    therapy_style: Optional[TherapyStyle] = None
    communication_style: Optional[CommunicationStyle] = None
    language: Optional[Language] = None
    crisis_support: Optional[bool] = None
    notification_settings: Optional[NotificationSettingsInput] = None


class RegisterRequest(CamelModel):
    """Registration payload."""

    name: str = Field(..., min_length=2, max_length=100, pattern=NAME_PATTERN)
    email: str = Field(..., max_length=255)
    password: str = Field(..., max_length=128)
    age: Optional[int] = Field(default=None, ge=13, le=120)
    gender: Optional[Gender] = None
    timezone: Optional[str] = Field(default=None, max_length=64)
    preferences: Optional[PreferencesInput] = None

    @field_validator("email")
    @classmethod
    def check_email(cls, value: str) -> str:
        value = value.strip().lower()
        if not EMAIL_PATTERN.match(value):
            raise ValueError("Invalid email address")
        return value


class LoginRequest(CamelModel):
    email: str = Field(..., max_length=255)
    password: str = Field(..., max_length=128)


class RefreshRequest(CamelModel):
    refresh_token: str


class ProfileUpdateRequest(StrictCamelModel):
    """Partial profile update; only these fields may be changed."""

    name: Optional[str] = Field(default=None, min_length=2, max_length=100, pattern=NAME_PATTERN)
    age: Optional[int] = Field(default=None, ge=13, le=120)
    gender: Optional[Gender] = None
    timezone: Optional[str] = Field(default=None, max_length=64)
    preferences: Optional[PreferencesInput] = None


class ChangePasswordRequest(CamelModel):
    current_password: str = Field(..., max_length=128)
    new_password: str = Field(..., max_length=128)


class NotificationSettingsResponse(CamelModel):
    push_enabled: bool
    email_enabled: bool
    frequency: str


class PreferencesResponse(CamelModel):
    therapy_style: str
    communication_style: str
    language: str
    crisis_support: bool
    notification_settings: NotificationSettingsResponse


class UserStatsResponse(CamelModel):
    total_sessions: int
    total_messages: int
    sessions_this_week: int
    streak_days: int
    last_session_date: Optional[datetime] = None
    last_activity: Optional[datetime] = None
    mood_average: float
    days_tracked: int


class UserResponse(CamelModel):
    """Public user representation (never includes the password hash)."""

    id: str
    name: str
    email: str
    age: Optional[int] = None
    gender: str
    timezone: str
    subscription_tier: str
    weekly_session_quota: Optional[int] = None
    stats: UserStatsResponse
    preferences: PreferencesResponse
    is_email_verified: bool
    last_login: Optional[datetime] = None
    created_at: datetime

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        stats = user.stats
        preferences = user.preferences
        notifications = preferences.notification_settings
        return cls(
            id=str(user.id),
            name=user.name,
            email=user.email,
            age=user.age,
            gender=user.gender,
            timezone=user.timezone,
            subscription_tier=user.subscription_tier.value,
            weekly_session_quota=user.weekly_session_quota,
            stats=UserStatsResponse(
                total_sessions=stats.total_sessions,
                total_messages=stats.total_messages,
                sessions_this_week=stats.effective_sessions_this_week(),
                streak_days=stats.streak_days,
                last_session_date=stats.last_session_date,
                last_activity=stats.last_activity,
                mood_average=stats.mood_average,
                days_tracked=stats.days_tracked,
            ),
            preferences=PreferencesResponse(
                therapy_style=preferences.therapy_style,
                communication_style=preferences.communication_style,
                language=preferences.language,
                crisis_support=preferences.crisis_support,
                notification_settings=NotificationSettingsResponse(
                    push_enabled=notifications.push_enabled,
                    email_enabled=notifications.email_enabled,
                    frequency=notifications.frequency,
                ),
            ),
            is_email_verified=user.is_email_verified,
            last_login=user.security.last_login,
            created_at=user.created_at,
        )


class TokenPairResponse(CamelModel):
    access_token: str
    refresh_token: str
    token_type: str
    expires_in: int

    @classmethod
    def from_pair(cls, pair: TokenPair) -> "TokenPairResponse":
        return cls(**pair.to_dict())


class AuthResponse(CamelModel):
    message: str
    user: UserResponse
    tokens: TokenPairResponse


class UserEnvelope(CamelModel):
    user: UserResponse


class MessageOnlyResponse(CamelModel):
    message: str


# =============================================================================
# CHAT
# =============================================================================

class ChatContextInput(CamelModel):
    current_mood: Optional[int] = Field(default=None, ge=1, le=10)
    situation: Optional[str] = Field(default=None, max_length=500)
    is_crisis: bool = False


class PriorMessage(CamelModel):
    role: Literal["user", "assistant"]
    content: str = Field(..., max_length=10000)


class QuickChatRequest(CamelModel):
    message: str = ""
    messages: list[PriorMessage] = Field(default_factory=list, max_length=50)
    context: Optional[ChatContextInput] = None


class SessionStartRequest(CamelModel):
    context: Optional[ChatContextInput] = None


class SendMessageRequest(CamelModel):
    conversation_id: str = Field(..., min_length=1, max_length=200)
    message: str = ""
    context: Optional[ChatContextInput] = None


class EndSessionRequest(CamelModel):
    conversation_id: str = Field(..., min_length=1, max_length=200)


class CrisisResourceResponse(CamelModel):
    name: str
    contact: str
    description: str
    type: str
    available_24_7: bool = Field(alias="available247")


class ResourceBundleResponse(CamelModel):
    language: str
    severity: str
    headline: str
    resources: list[CrisisResourceResponse]
    urgency: str
    priority: str

    @classmethod
    def from_bundle(cls, bundle: ResourceBundle) -> "ResourceBundleResponse":
        return cls(
            language=bundle.language,
            severity=bundle.severity.label,
            headline=bundle.headline,
            resources=[CrisisResourceResponse(**r.to_dict()) for r in bundle.resources],
            urgency=bundle.urgency.value,
            priority=bundle.priority.value,
        )


class MessageResponse(CamelModel):
    id: str
    role: str
    content: str
    timestamp: datetime
    suggestions: list[str] = Field(default_factory=list)
    type: Optional[str] = None

    @classmethod
    def from_message(cls, message: ChatMessage) -> "MessageResponse":
        return cls(
            id=str(message.id),
            role=message.role.value,
            content=message.content,
            timestamp=message.timestamp,
            suggestions=list(message.suggestions),
            type=message.type.value if message.type else None,
        )


def _reply_type(result: DispatchResult) -> str:
    if result.is_crisis:
        return "crisis"
    return "fallback" if result.outcome == DispatchOutcome.FALLBACK else "normal"


class QuickChatResponse(CamelModel):
    response: str
    type: Literal["normal", "fallback", "crisis"]
    suggestions: list[str]
    timestamp: datetime
    is_emergency: bool = False
    resources: Optional[ResourceBundleResponse] = None

    @classmethod
    def from_result(cls, result: DispatchResult) -> "QuickChatResponse":
        return cls(
            response=result.reply.content,
            type=_reply_type(result),
            suggestions=result.suggestions,
            timestamp=result.reply.timestamp,
            is_emergency=result.is_crisis,
            resources=ResourceBundleResponse.from_bundle(result.resources) if result.resources else None,
        )


class SendMessageResponse(CamelModel):
    conversation_id: str
    message: MessageResponse
    type: Literal["normal", "fallback", "crisis"]
    suggestions: list[str]
    is_emergency: bool = False
    resources: Optional[ResourceBundleResponse] = None

    @classmethod
    def from_result(cls, result: DispatchResult) -> "SendMessageResponse":
        return cls(
            conversation_id=result.conversation_id,
            message=MessageResponse.from_message(result.reply),
            type=_reply_type(result),
            suggestions=result.suggestions,
            is_emergency=result.is_crisis,
            resources=ResourceBundleResponse.from_bundle(result.resources) if result.resources else None,
        )


class SessionStartResponse(CamelModel):
    session_id: str
    conversation_id: str
    welcome_message: MessageResponse
    sessions_this_week: int
    weekly_quota: Optional[int] = None


class SessionEndResponse(CamelModel):
    conversation_id: str
    session_id: str
    message_count: int
    duration_seconds: int


class ConversationResponse(CamelModel):
    conversation_id: str
    session_id: str
    messages: list[MessageResponse]
    message_count: int
    current_mood: Optional[int] = None
    situation: Optional[str] = None
    started_at: datetime
    last_activity: datetime

    @classmethod
    def from_conversation(cls, conversation: ConversationSession) -> "ConversationResponse":
        return cls(
            conversation_id=conversation.conversation_id,
            session_id=conversation.session_id,
            messages=[MessageResponse.from_message(m) for m in conversation.messages],
            message_count=conversation.message_count,
            current_mood=conversation.context.current_mood,
            situation=conversation.context.situation,
            started_at=conversation.context.session_start,
            last_activity=conversation.context.last_activity,
        )


# =============================================================================
# PROGRESS
# =============================================================================

class MoodRequest(CamelModel):
    """
    Mood submission.

    ``mood`` is range-checked by the progress service so every out-of-range
    value gets the same error; ``note`` and ``context`` are synonyms.
    """

    mood: int
    note: Optional[str] = None
    context: Optional[str] = None


class MoodEntryResponse(CamelModel):
    id: str
    mood: int
    note: Optional[str] = None
    timestamp: datetime

    @classmethod
    def from_entry(cls, entry: MoodEntry) -> "MoodEntryResponse":
        return cls(id=str(entry.id), mood=entry.mood, note=entry.context, timestamp=entry.timestamp)


class MoodRecordResponse(CamelModel):
    message: str
    entry: MoodEntryResponse
    mood_average: float
    entry_count: int
    days_tracked: int


class MoodHistorySummary(CamelModel):
    total_entries: int
    average_mood: float
    days_tracked: int
    trend: Literal["improving", "declining", "stable"]
    days: int


class MoodHistoryResponse(CamelModel):
    history: list[MoodEntryResponse]
    summary: MoodHistorySummary


class ProgressSummary(CamelModel):
    total_sessions: int
    total_messages: int
    sessions_this_week: int
    streak_days: int
    last_activity: Optional[datetime] = None
    mood_average: float
    days_tracked: int
    created_at: datetime


class ProgressResponse(CamelModel):
    progress: ProgressSummary


class ProgressOverview(CamelModel):
    total_sessions: int
    total_messages: int
    sessions_this_week: int
    weekly_quota: Optional[int] = None
    days_tracked: int
    mood_average: float
    member_since: datetime
    last_activity: Optional[datetime] = None
    streak_days: int
    engagement: Literal["high", "medium", "low"]
    mood_trend: Literal["positive", "negative", "neutral"]
    weekly_progress: int
    goals: list[str]


class OverviewResponse(CamelModel):
    overview: ProgressOverview


# =============================================================================
# HEALTH
# =============================================================================

class HealthResponse(BaseModel):
    """Liveness payload."""

    status: str
    timestamp: datetime
    uptime_seconds: int
    version: str
    environment: str


class ReadinessResponse(BaseModel):
    """Readiness check response with component health."""

    ready: bool
    components: dict[str, Any]
