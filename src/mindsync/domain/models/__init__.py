"""Domain models package."""

from mindsync.domain.models.user import (
    MoodEntry,
    NotificationSettings,
    SecurityState,
    User,
    UserPreferences,
    UserStats,
)
from mindsync.domain.models.conversation import (
    ChatMessage,
    ConversationContext,
    ConversationSession,
)

__all__ = [
    # User models
    "User",
    "UserStats",
    "SecurityState",
    "UserPreferences",
    "NotificationSettings",
    "MoodEntry",
    # Conversation models
    "ConversationSession",
    "ConversationContext",
    "ChatMessage",
]
