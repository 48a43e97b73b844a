"""Monitoring infrastructure package."""

from mindsync.infrastructure.monitoring.sentry_integration import (
    init_sentry,
    set_user_context,
    capture_safety_event,
    capture_exception_with_context,
)

__all__ = [
    "init_sentry",
    "set_user_context",
    "capture_safety_event",
    "capture_exception_with_context",
]
