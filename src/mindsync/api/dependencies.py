"""
Request Dependencies

FastAPI dependencies resolving the service container and the
authenticated user for a request.
"""

from typing import Optional

import structlog
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from mindsync.domain.exceptions import AuthError
from mindsync.domain.models.user import User
from mindsync.infrastructure.monitoring import set_user_context
from mindsync.services.container import ServiceContainer

# Missing credentials are reported as AuthError (401), not FastAPI's default
bearer_scheme = HTTPBearer(auto_error=False)


def get_container(request: Request) -> ServiceContainer:
    """Service container attached to the application at creation."""
    return request.app.state.container


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    container: ServiceContainer = Depends(get_container),
) -> User:
    """
    Resolve the bearer access token to an active user.

    Raises:
        AuthError: Missing, invalid or expired token, or deactivated account
        NotFoundError: Token subject no longer exists
    """
    if credentials is None or not credentials.credentials:
        raise AuthError("Access token required")

    user = await container.auth.authenticate_access_token(credentials.credentials)
    structlog.contextvars.bind_contextvars(user_id=str(user.id))
    set_user_context(str(user.id))
    return user
