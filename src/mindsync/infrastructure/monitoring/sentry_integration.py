"""
Sentry Error Tracking Integration

Unhandled errors and crisis diversions are reported to Sentry when a
DSN is configured; without one every helper here is a no-op.

SECURITY: Events are scrubbed before they leave the process. Request
bodies are dropped wholesale (they carry chat text, mood notes and
passwords), credential headers are masked and ``extra`` context is
filtered by key.
"""

import re
from typing import Any, Optional

import sentry_sdk
from sentry_sdk.integrations.asyncio import AsyncioIntegration
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.logging import LoggingIntegration
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

from mindsync import __version__
from mindsync.config.logging_config import get_logger
from mindsync.config.settings import Settings

logger = get_logger(__name__)

MASK = "[Filtered]"

# Keys never sent, at any nesting depth
BLOCKED_KEYS = frozenset({
    "password",
    "current_password",
    "new_password",
    "token",
    "access_token",
    "refresh_token",
    "authorization",
    "cookie",
    "api_key",
    "secret",
    "message",
    "messages",
    "content",
    "note",
    "context",
    "situation",
})

_BEARER = re.compile(r"bearer\s+[\w\-.~+/]+=*", re.IGNORECASE)


def _filter(value: Any, key: str = "") -> Any:
    if key.lower().replace("-", "_") in BLOCKED_KEYS:
        return MASK
    if isinstance(value, dict):
        return {k: _filter(v, str(k)) for k, v in value.items()}
    if isinstance(value, list):
        return [_filter(item) for item in value]
    if isinstance(value, str):
        return _BEARER.sub(MASK, value)
    return value


def before_send(event: dict, hint: dict) -> Optional[dict]:
    request = event.get("request")
    if isinstance(request, dict):
        if "data" in request:
            request["data"] = MASK
        request.pop("cookies", None)
        if isinstance(request.get("headers"), dict):
            request["headers"] = _filter(request["headers"])

    if isinstance(event.get("extra"), dict):
        event["extra"] = _filter(event["extra"])
    return event


def before_breadcrumb(breadcrumb: dict, hint: dict) -> Optional[dict]:
    """SQL breadcrumbs keep the statement but lose bound parameters."""
    if breadcrumb.get("category") == "query":
        breadcrumb.pop("data", None)
    return breadcrumb


def init_sentry(settings: Settings) -> bool:
    """
    Initialize Sentry from settings.

    Returns:
        True if Sentry was initialized, False when no DSN is configured
    """
    dsn = settings.sentry.dsn.get_secret_value()
    if not dsn:
        logger.info("Sentry DSN not configured, error tracking disabled")
        return False

    release = f"mindsync@{__version__}"
    sentry_sdk.init(
        dsn=dsn,
        environment=settings.env,
        release=release,
        sample_rate=settings.sentry.sample_rate,
        traces_sample_rate=settings.sentry.traces_sample_rate,
        before_send=before_send,
        before_breadcrumb=before_breadcrumb,
        integrations=[
            FastApiIntegration(transaction_style="endpoint"),
            SqlalchemyIntegration(),
            AsyncioIntegration(),
            # structlog output is not forwarded
            LoggingIntegration(level=None, event_level=None),
        ],
        send_default_pii=False,
        max_breadcrumbs=50,
    )
    logger.info("Sentry initialized", environment=settings.env, release=release)
    return True


def set_user_context(user_id: str) -> None:
    """Tag subsequent events with the opaque user id (never email or name)."""
    sentry_sdk.set_user({"id": user_id})


def capture_safety_event(
    message: str,
    level: str = "warning",
    extra: Optional[dict] = None,
) -> None:
    """
    Report a crisis diversion for operator review.

    ``extra`` may name the matched phrase and severity; the user's
    message itself is never attached.
    """
    with sentry_sdk.new_scope() as scope:
        scope.set_tag("category", "safety")
        for key, value in _filter(extra or {}).items():
            scope.set_extra(key, value)
        scope.capture_message(message, level="error" if level == "error" else "warning")


def capture_exception_with_context(
    exception: Exception,
    correlation_id: Optional[str] = None,
) -> Optional[str]:
    """Report an unhandled exception tagged with the request's correlation id."""
    with sentry_sdk.new_scope() as scope:
        if correlation_id:
            scope.set_tag("correlation_id", correlation_id)
        return scope.capture_exception(exception)
