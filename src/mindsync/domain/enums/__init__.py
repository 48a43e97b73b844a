"""Domain enums package."""

from mindsync.domain.enums.crisis_severity import CrisisSeverity, PriorityLevel, UrgencyLevel
from mindsync.domain.enums.message import MessageRole, MessageType
from mindsync.domain.enums.subscription_tier import SubscriptionTier

__all__ = [
    "CrisisSeverity",
    "PriorityLevel",
    "UrgencyLevel",
    "MessageRole",
    "MessageType",
    "SubscriptionTier",
]
