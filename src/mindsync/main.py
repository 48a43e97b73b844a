"""
MindSync FastAPI Application Entry Point

Main application initialization with:
- Lifespan management (startup/shutdown)
- Error handling middleware and exception handlers
- Router registration
- Background sweep of idle conversations

This is the production entry point for the MindSync backend.
"""

import asyncio
from contextlib import asynccontextmanager, suppress
from datetime import timedelta
from typing import AsyncGenerator, Optional

from fastapi import FastAPI

from mindsync import __version__
from mindsync.api.middleware.error_handler import (
    ErrorHandlerMiddleware,
    register_exception_handlers,
)
from mindsync.api.router import api_router
from mindsync.config import Settings, get_settings
from mindsync.config.logging_config import configure_logging, get_logger
from mindsync.infrastructure.llm.provider import LLMProvider
from mindsync.infrastructure.metrics import metrics_router, update_system_info
from mindsync.infrastructure.monitoring import init_sentry
from mindsync.services.container import ServiceContainer

logger = get_logger(__name__)


async def sweep_conversations(container: ServiceContainer) -> None:
    """Periodically drop conversations idle for longer than the configured limit."""
    chat = container.settings.chat
    max_idle = timedelta(minutes=chat.conversation_max_idle_minutes)

    while True:
        await asyncio.sleep(chat.conversation_sweep_interval_seconds)
        try:
            removed = await container.dispatcher.sweep_idle(max_idle)
        except Exception as e:
            logger.error("Conversation sweep failed", error_type=type(e).__name__, error=str(e))
            continue
        if removed:
            logger.info("Idle conversations swept", removed=removed)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    Handles startup and shutdown of all services.
    """
    container: ServiceContainer = app.state.container
    settings = container.settings

    logger.info(
        "Starting MindSync application",
        env=settings.env,
        version=__version__,
    )

    sweeper: Optional[asyncio.Task] = None
    try:
        init_sentry(settings)
        update_system_info(settings.env)

        await container.db.initialize()
        logger.info("Database connection initialized")

        sweeper = asyncio.create_task(sweep_conversations(container))

        yield

    finally:
        logger.info("Shutting down MindSync application")

        if sweeper is not None:
            sweeper.cancel()
            with suppress(asyncio.CancelledError):
                await sweeper

        await container.db.close()

        logger.info("MindSync application shutdown complete")


def create_application(
    settings: Optional[Settings] = None,
    llm_provider: Optional[LLMProvider] = None,
) -> FastAPI:
    """
    Create and configure FastAPI application.

    Args:
        settings: Settings override (tests)
        llm_provider: LLM provider override (tests)

    Returns:
        Configured FastAPI application
    """
    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(
        title="MindSync API",
        description="Emotional wellbeing chat assistant - Backend API",
        version=__version__,
        docs_url="/docs" if not settings.is_production() else None,
        redoc_url="/redoc" if not settings.is_production() else None,
        lifespan=lifespan,
    )
    app.state.container = ServiceContainer.build(settings, llm_provider=llm_provider)

    # Add error handling middleware
    app.add_middleware(ErrorHandlerMiddleware, expose_detail=settings.exposes_error_detail())
    register_exception_handlers(app)

    # Register API routers
    app.include_router(api_router)
    app.include_router(metrics_router)

    # Root endpoint
    @app.get("/", include_in_schema=False)
    async def root() -> dict:
        """Root endpoint - basic info."""
        return {
            "name": "MindSync API",
            "version": __version__,
            "status": "operational",
        }

    return app


# Create application instance
app = create_application()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "mindsync.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.env == "development",
        log_level=settings.log_level.lower(),
    )
