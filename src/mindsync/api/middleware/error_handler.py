"""
Error Handler Middleware

Provides consistent error handling and response formatting.
Logs errors with correlation IDs for debugging.

Domain errors and request validation errors are rendered by exception
handlers; the middleware catches everything else and returns a
sanitized 500.
"""

import time
import traceback
from typing import Any
from uuid import uuid4

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from mindsync.config.logging_config import bind_correlation_id, clear_context, get_logger
from mindsync.domain.exceptions import MindSyncError
from mindsync.infrastructure.metrics import track_http_request
from mindsync.infrastructure.monitoring import capture_exception_with_context

logger = get_logger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"


def _correlation_id(request: Request) -> str:
    return getattr(request.state, "correlation_id", None) or str(uuid4())


def _endpoint_label(request: Request) -> str:
    """Route template (``/api/chat/conversation/{conversation_id}``) to keep label cardinality low."""
    route = request.scope.get("route")
    return getattr(route, "path", None) or "unmatched"


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Global error handling middleware.

    Provides:
    - Correlation ID tracking for all requests
    - Request metrics by route template
    - Sanitized 500 responses for unclassified errors
    """

    def __init__(self, app: Any, expose_detail: bool = False) -> None:
        super().__init__(app)
        self._expose_detail = expose_detail

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        """Process request with error handling."""

        correlation_id = request.headers.get(CORRELATION_HEADER) or str(uuid4())
        request.state.correlation_id = correlation_id
        bind_correlation_id(correlation_id)
        start = time.perf_counter()
        status_code = 500

        try:
            response = await call_next(request)
            status_code = response.status_code
            response.headers[CORRELATION_HEADER] = correlation_id
            return response

        except Exception as e:
            logger.error(
                "Unhandled exception",
                path=request.url.path,
                method=request.method,
                error_type=type(e).__name__,
                error_message=str(e),
                traceback=traceback.format_exc(),
            )
            capture_exception_with_context(e, correlation_id=correlation_id)

            content = {
                "error": "internal_error",
                "message": "An unexpected error occurred. Please try again.",
                "correlation_id": correlation_id,
            }
            if self._expose_detail:
                content["detail"] = f"{type(e).__name__}: {e}"

            return JSONResponse(
                status_code=500,
                content=content,
                headers={CORRELATION_HEADER: correlation_id},
            )

        finally:
            track_http_request(
                request.method,
                _endpoint_label(request),
                status_code,
                time.perf_counter() - start,
            )
            clear_context()


async def mindsync_error_handler(request: Request, exc: MindSyncError) -> JSONResponse:
    """Render a domain error with its status and JSON body."""
    correlation_id = _correlation_id(request)
    log = logger.warning if exc.status_code >= 500 else logger.info
    log(
        "Request rejected",
        path=request.url.path,
        status_code=exc.status_code,
        error=exc.error,
        reason=exc.message,
    )
    body = exc.to_dict()
    body["correlation_id"] = correlation_id
    return JSONResponse(status_code=exc.status_code, content=body)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render request-body validation failures as 400 with field details."""
    details = []
    for error in exc.errors():
        location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        details.append({
            "field": ".".join(location) or "body",
            "message": error.get("msg", "Invalid value"),
        })

    logger.info(
        "Request validation failed",
        path=request.url.path,
        fields=[d["field"] for d in details],
    )
    return JSONResponse(
        status_code=400,
        content={
            "error": "validation_error",
            "message": "Invalid request data",
            "details": details,
            "correlation_id": _correlation_id(request),
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(MindSyncError, mindsync_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
