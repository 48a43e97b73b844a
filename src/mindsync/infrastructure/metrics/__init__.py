"""Metrics infrastructure package."""

from mindsync.infrastructure.metrics.prometheus_metrics import (
    # Chat metrics
    CHAT_MESSAGES_TOTAL,
    CHAT_SESSIONS_STARTED,
    SESSION_QUOTA_REJECTIONS,
    ACTIVE_CONVERSATIONS,
    STATS_PERSISTENCE_FAILURES,
    # Crisis metrics
    CRISIS_DETECTIONS_TOTAL,
    RESOURCES_PROVIDED,
    # LLM metrics
    LLM_REQUESTS_TOTAL,
    LLM_LATENCY,
    LLM_TOKENS_USED,
    # Account metrics
    LOGIN_ATTEMPTS_TOTAL,
    MOOD_ENTRIES_TOTAL,
    # API metrics
    HTTP_REQUESTS_TOTAL,
    HTTP_REQUEST_DURATION,
    # Helpers
    track_llm_request,
    track_chat_message,
    track_crisis,
    track_http_request,
    update_system_info,
    # Router
    metrics_router,
)

__all__ = [
    "CHAT_MESSAGES_TOTAL",
    "CHAT_SESSIONS_STARTED",
    "SESSION_QUOTA_REJECTIONS",
    "ACTIVE_CONVERSATIONS",
    "STATS_PERSISTENCE_FAILURES",
    "CRISIS_DETECTIONS_TOTAL",
    "RESOURCES_PROVIDED",
    "LLM_REQUESTS_TOTAL",
    "LLM_LATENCY",
    "LLM_TOKENS_USED",
    "LOGIN_ATTEMPTS_TOTAL",
    "MOOD_ENTRIES_TOTAL",
    "HTTP_REQUESTS_TOTAL",
    "HTTP_REQUEST_DURATION",
    "track_llm_request",
    "track_chat_message",
    "track_crisis",
    "track_http_request",
    "update_system_info",
    "metrics_router",
]
