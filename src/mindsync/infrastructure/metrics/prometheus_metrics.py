"""
Prometheus Metrics

Metrics for MindSync observability.
Exposes metrics at /metrics endpoint for Prometheus scraping.

ARCHITECTURE: Metrics are decoupled from business logic.
Only increment/observe; never block on metrics operations.
"""

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    REGISTRY,
    Counter,
    Gauge,
    Histogram,
    Info,
    generate_latest,
)
from fastapi import APIRouter, Response

from mindsync import __version__

# =============================================================================
# CHAT METRICS
# =============================================================================

CHAT_MESSAGES_TOTAL = Counter(
    "mindsync_chat_messages_total",
    "Chat messages handled by outcome",
    ["route", "outcome"],  # completed, fallback, crisis
)

CHAT_SESSIONS_STARTED = Counter(
    "mindsync_chat_sessions_started_total",
    "Chat sessions started by subscription tier",
    ["tier"],
)

SESSION_QUOTA_REJECTIONS = Counter(
    "mindsync_session_quota_rejections_total",
    "Session starts rejected by the weekly quota",
    ["tier"],
)

ACTIVE_CONVERSATIONS = Gauge(
    "mindsync_active_conversations",
    "Conversations currently held in the conversation store",
)

STATS_PERSISTENCE_FAILURES = Counter(
    "mindsync_stats_persistence_failures_total",
    "Usage statistic writes that failed after a reply was produced",
)

# =============================================================================
# CRISIS METRICS
# =============================================================================

CRISIS_DETECTIONS_TOTAL = Counter(
    "mindsync_crisis_detections_total",
    "Messages diverted to the crisis path by severity",
    ["severity"],  # low, medium, high
)

RESOURCES_PROVIDED = Counter(
    "mindsync_crisis_resources_provided_total",
    "Crisis resource bundles served by language",
    ["language"],
)

# =============================================================================
# LLM METRICS
# =============================================================================

LLM_REQUESTS_TOTAL = Counter(
    "mindsync_llm_requests_total",
    "Total LLM requests by provider",
    ["provider", "status"],  # success, error, timeout, empty, unconfigured
)

LLM_LATENCY = Histogram(
    "mindsync_llm_latency_seconds",
    "LLM response latency",
    ["provider"],
    buckets=[0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0, 20.0],
)

LLM_TOKENS_USED = Counter(
    "mindsync_llm_tokens_total",
    "Total tokens used by LLM",
    ["provider", "type"],  # input, output
)

# =============================================================================
# ACCOUNT METRICS
# =============================================================================

LOGIN_ATTEMPTS_TOTAL = Counter(
    "mindsync_login_attempts_total",
    "Login attempts by result",
    ["result"],  # success, failure, locked, unknown_user
)

MOOD_ENTRIES_TOTAL = Counter(
    "mindsync_mood_entries_total",
    "Mood entries recorded",
)

# =============================================================================
# API METRICS
# =============================================================================

HTTP_REQUESTS_TOTAL = Counter(
    "mindsync_http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status_code"],
)

HTTP_REQUEST_DURATION = Histogram(
    "mindsync_http_request_duration_seconds",
    "HTTP request duration",
    ["method", "endpoint"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 20.0],
)

# =============================================================================
# SYSTEM INFO
# =============================================================================

SYSTEM_INFO = Info(
    "mindsync_system",
    "MindSync system information",
)


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def track_llm_request(
    provider: str,
    status: str,
    duration_seconds: float,
    usage: dict | None = None,
) -> None:
    """Record one upstream completion attempt."""
    LLM_REQUESTS_TOTAL.labels(provider=provider, status=status).inc()
    LLM_LATENCY.labels(provider=provider).observe(duration_seconds)
    if usage:
        LLM_TOKENS_USED.labels(provider=provider, type="input").inc(usage.get("prompt_tokens", 0))
        LLM_TOKENS_USED.labels(provider=provider, type="output").inc(usage.get("completion_tokens", 0))


def track_chat_message(route: str, outcome: str) -> None:
    """Record a handled chat message."""
    CHAT_MESSAGES_TOTAL.labels(route=route, outcome=outcome).inc()


def track_crisis(severity: str, language: str) -> None:
    """Record a crisis diversion and the bundle served for it."""
    CRISIS_DETECTIONS_TOTAL.labels(severity=severity).inc()
    RESOURCES_PROVIDED.labels(language=language).inc()


def track_http_request(method: str, endpoint: str, status_code: int, duration_seconds: float) -> None:
    HTTP_REQUESTS_TOTAL.labels(method=method, endpoint=endpoint, status_code=str(status_code)).inc()
    HTTP_REQUEST_DURATION.labels(method=method, endpoint=endpoint).observe(duration_seconds)


# =============================================================================
# METRICS ENDPOINT
# =============================================================================

metrics_router = APIRouter(tags=["metrics"])


@metrics_router.get("/metrics")
async def metrics() -> Response:
    """
    Prometheus metrics endpoint.

    Returns metrics in Prometheus text format for scraping.
    """
    return Response(
        content=generate_latest(REGISTRY),
        media_type=CONTENT_TYPE_LATEST,
    )


def update_system_info(environment: str, version: str = __version__) -> None:
    """Update system info metric with current environment."""
    SYSTEM_INFO.info({
        "version": version,
        "environment": environment,
    })
