"""
API Router

Aggregates all API endpoints.
"""

from fastapi import APIRouter

from mindsync.api.routes.auth import router as auth_router
from mindsync.api.routes.chat import router as chat_router
from mindsync.api.routes.health import router as health_router
from mindsync.api.routes.progress import router as progress_router

api_router = APIRouter()

# Include endpoint routers
api_router.include_router(
    auth_router,
    prefix="/api/auth",
    tags=["Auth"],
)

api_router.include_router(
    chat_router,
    prefix="/api/chat",
    tags=["Chat"],
)

api_router.include_router(
    progress_router,
    prefix="/api/progress",
    tags=["Progress"],
)

api_router.include_router(
    health_router,
    prefix="/health",
    tags=["Health"],
)
