"""Subscription tiers and their weekly chat-session quotas."""

from enum import StrEnum
from typing import Optional


class SubscriptionTier(StrEnum):
    """
    Subscription plan.

    Each tier carries a weekly session quota; ``None`` means unlimited.
    """

    FREE = "free"
    BASIC = "basic"
    PREMIUM = "premium"

    @property
    def weekly_session_quota(self) -> Optional[int]:
        quotas = {
            SubscriptionTier.FREE: 5,
            SubscriptionTier.BASIC: 20,
            SubscriptionTier.PREMIUM: None,
        }
        return quotas[self]

    def allows_new_session(self, sessions_this_week: int) -> bool:
        """Check whether another session may start this week."""
        quota = self.weekly_session_quota
        return quota is None or sessions_this_week < quota
