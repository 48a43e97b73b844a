"""
MindSync Domain Layer

Core business entities and value objects.
These models represent the domain logic independent of infrastructure.
"""

from mindsync.domain.models.user import User, UserStats, SecurityState, UserPreferences, MoodEntry
from mindsync.domain.models.conversation import ConversationSession, ChatMessage
from mindsync.domain.enums import (
    CrisisSeverity,
    MessageRole,
    MessageType,
    SubscriptionTier,
    UrgencyLevel,
)

__all__ = [
    # User
    "User",
    "UserStats",
    "SecurityState",
    "UserPreferences",
    "MoodEntry",
    # Conversation
    "ConversationSession",
    "ChatMessage",
    # Enums
    "CrisisSeverity",
    "MessageRole",
    "MessageType",
    "SubscriptionTier",
    "UrgencyLevel",
]
