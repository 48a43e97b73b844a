"""
MindSync Logging Configuration

structlog setup shared by the API, services and background tasks.

Every event passes two scrubbers before rendering:
- credentials (passwords, tokens, keys, DSNs) are replaced outright
- chat text fields are reduced to their length, so user disclosures
  never land in log storage

Development renders coloured console lines; every other environment
emits one JSON object per line.
"""

import logging
import sys
from typing import Any

import structlog

from mindsync import __version__
from mindsync.config.settings import Settings

SERVICE_NAME = "mindsync-backend"

CREDENTIAL_KEYS: frozenset[str] = frozenset({
    "password",
    "token",
    "secret",
    "api_key",
    "apikey",
    "authorization",
    "credential",
    "dsn",
})

# Event keys that may carry what a user wrote
CHAT_TEXT_KEYS: frozenset[str] = frozenset({
    "message",
    "user_message",
    "content",
    "text",
    "note",
    "situation",
})

REDACTED = "[REDACTED]"

_NOISY_LOGGERS = (
    "uvicorn.access",
    "httpx",
    "httpcore",
    "openai",
    "google",
    "sqlalchemy.engine",
    "passlib",
)


def _is_credential(key: str) -> bool:
    lowered = key.lower()
    return any(marker in lowered for marker in CREDENTIAL_KEYS)


def _scrub(key: str, value: Any) -> Any:
    if _is_credential(key):
        return REDACTED
    if key in CHAT_TEXT_KEYS and isinstance(value, str):
        return f"<{len(value)} chars>"
    if isinstance(value, dict):
        return {k: _scrub(k, v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_scrub(key, item) for item in value]
    return value


def scrub_event(
    logger: logging.Logger,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Drop credentials and chat text from a log event (``event`` itself is kept)."""
    return {
        key: value if key == "event" else _scrub(key, value)
        for key, value in event_dict.items()
    }


def _stamp_service(
    logger: logging.Logger,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    event_dict.setdefault("service", SERVICE_NAME)
    event_dict.setdefault("version", __version__)
    return event_dict


def build_processors(json_output: bool) -> list[Any]:
    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        scrub_event,
        _stamp_service,
    ]
    if json_output:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))
    return processors


def configure_logging(settings: Settings) -> None:
    """
    Configure structlog and the stdlib root logger.

    Called from the application factory; calling it again simply
    replaces the configuration.
    """
    level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    structlog.configure(
        processors=build_processors(json_output=settings.env != "development"),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level, force=True)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def bind_correlation_id(correlation_id: str) -> None:
    """Attach the request's correlation id to every event logged while handling it."""
    structlog.contextvars.bind_contextvars(correlation_id=correlation_id)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()
