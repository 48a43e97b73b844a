"""
Health Check Endpoints

Provides system health and readiness endpoints for:
- Load balancer health checks
- Kubernetes probes
- Monitoring systems
"""

from fastapi import APIRouter, Depends, Response

from mindsync import __version__
from mindsync.api.dependencies import get_container
from mindsync.api.schemas import HealthResponse, ReadinessResponse
from mindsync.domain.time_utils import utcnow
from mindsync.services.container import ServiceContainer

router = APIRouter()


@router.get(
    "",
    response_model=HealthResponse,
    summary="Health check",
    description="Basic health check endpoint for load balancers",
)
async def health_check(container: ServiceContainer = Depends(get_container)) -> HealthResponse:
    """
    Basic health check.

    Returns 200 if application is running.
    """
    return HealthResponse(
        status="healthy",
        timestamp=utcnow(),
        uptime_seconds=container.uptime_seconds,
        version=__version__,
        environment=container.settings.env,
    )


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    summary="Readiness check",
    description="Detailed readiness check including all components",
)
async def readiness_check(
    response: Response,
    container: ServiceContainer = Depends(get_container),
) -> ReadinessResponse:
    """
    Detailed readiness check.

    The database must answer; a missing LLM key is reported but does
    not fail readiness since chat falls back to scripted replies.

    Returns 503 when the database is unreachable.
    """
    database = await container.db.health_check()
    components = {
        "database": database,
        "llm_provider": container.completion.provider_name,
        "llm_configured": container.completion.is_configured(),
        "active_conversations": len(container.dispatcher.store),
    }
    if not database:
        response.status_code = 503
    return ReadinessResponse(ready=database, components=components)
