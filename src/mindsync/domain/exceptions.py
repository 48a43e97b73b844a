"""
Domain Exceptions

Error taxonomy shared by services and the API layer. Each error carries
the HTTP status it maps to, so the API layer can render it without
knowing which service raised it.

Upstream (model provider) failures and stats persistence failures are
part of the taxonomy but are absorbed by the chat dispatcher and never
reach a client.
"""

from typing import Any, Optional


class MindSyncError(Exception):
    """Base exception for all client-facing MindSync errors."""

    status_code: int = 500
    error: str = "internal_error"

    def __init__(
        self,
        message: str,
        *,
        details: Optional[list[dict[str, Any]]] = None,
        extra: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or []
        self.extra = extra or {}

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the JSON error body."""
        body: dict[str, Any] = {"error": self.error, "message": self.message}
        if self.details:
            body["details"] = self.details
        body.update(self.extra)
        return body


class ValidationError(MindSyncError):
    """Malformed or out-of-range input. Raised before any mutation."""

    status_code = 400
    error = "validation_error"

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationError":
        return cls(message, details=[{"field": field, "message": message}])


class DuplicateEmailError(ValidationError):
    """Registration with an email that is already taken."""

    error = "duplicate_email"

    def __init__(self) -> None:
        super().__init__(
            "Email is already registered",
            details=[{"field": "email", "message": "Email is already registered"}],
        )


class AuthError(MindSyncError):
    """Missing, invalid or expired credential."""

    status_code = 401
    error = "authentication_error"


class ForbiddenError(MindSyncError):
    """Authenticated caller does not own the referenced resource."""

    status_code = 403
    error = "forbidden"


class NotFoundError(MindSyncError):
    """Referenced user or conversation does not exist."""

    status_code = 404
    error = "not_found"


class AccountLockedError(MindSyncError):
    """Too many failed login attempts."""

    status_code = 423
    error = "account_locked"


class QuotaExceededError(MindSyncError):
    """Weekly session quota reached for the user's tier."""

    status_code = 429
    error = "quota_exceeded"


class UpstreamDependencyError(Exception):
    """
    Completion service failure.

    Never rendered to a client: the completion client converts it
    into a fallback reply.
    """

    def __init__(
        self,
        message: str,
        provider: str,
        is_timeout: bool = False,
        original_error: Optional[Exception] = None,
    ) -> None:
        super().__init__(message)
        self.provider = provider
        self.is_timeout = is_timeout
        self.original_error = original_error


class PersistenceWarning(Exception):
    """
    Usage-stats write failed after a reply was produced.

    Logged and swallowed; the reply still reaches the caller.
    """
