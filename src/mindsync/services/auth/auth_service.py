"""
Authentication Service

Account lifecycle: registration, login with lockout, token refresh,
profile and password changes, deactivation.

Failed logins are counted on the account. Reaching the configured
maximum locks the account; while locked every login attempt is
answered with AccountLockedError, even with the right password.

SECURITY: Login failures never reveal whether the email exists.
"""

from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError

from mindsync.config import Settings, get_settings
from mindsync.config.logging_config import get_logger
from mindsync.domain.exceptions import (
    AccountLockedError,
    AuthError,
    DuplicateEmailError,
    NotFoundError,
    ValidationError,
)
from mindsync.domain.models.user import User, UserPreferences
from mindsync.domain.time_utils import utcnow
from mindsync.infrastructure.database.connection import DatabaseManager
from mindsync.infrastructure.database.models.user_model import UserModel
from mindsync.infrastructure.database.repositories.user_repository import (
    UserRepository,
    to_domain,
)
from mindsync.infrastructure.metrics import LOGIN_ATTEMPTS_TOTAL
from mindsync.services.auth.security import (
    TokenPair,
    TokenService,
    hash_password,
    verify_password,
)

logger = get_logger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def format_name(name: str) -> str:
    """Collapse whitespace and capitalize each word ("ana  maría" -> "Ana María")."""
    return " ".join(word.capitalize() for word in (name or "").split())


@dataclass
class RegistrationData:
    """Validated registration input."""

    name: str
    email: str
    password: str = field(repr=False)
    age: Optional[int] = None
    gender: Optional[str] = None
    timezone: Optional[str] = None
    preferences: Optional[dict[str, Any]] = None


@dataclass
class ProfileUpdate:
    """
    Partial profile update.

    Only fields that are not None are applied. ``preferences`` is merged
    into the stored preferences rather than replacing them.
    """

    name: Optional[str] = None
    age: Optional[int] = None
    gender: Optional[str] = None
    timezone: Optional[str] = None
    preferences: Optional[dict[str, Any]] = None

    def is_empty(self) -> bool:
        return all(
            value is None
            for value in (self.name, self.age, self.gender, self.timezone, self.preferences)
        )


@dataclass
class AuthResult:
    """Authenticated user plus a fresh token pair."""

    user: User
    tokens: TokenPair


def merge_preferences(current: UserPreferences, changes: Optional[dict[str, Any]]) -> dict[str, Any]:
    """Overlay partial preference changes on the stored preferences."""
    merged = current.to_dict()
    for key, value in (changes or {}).items():
        if value is None:
            continue
        if key == "notification_settings" and isinstance(value, dict):
            merged["notification_settings"].update(
                {k: v for k, v in value.items() if v is not None}
            )
        else:
            merged[key] = value
    return merged


class AuthService:
    """
    Account and credential operations.

    Usage:
        auth = AuthService(db, TokenService(settings.jwt))
        result = await auth.login("ana@x.com", "secret1")
        user = await auth.authenticate_access_token(result.tokens.access_token)
    """

    def __init__(
        self,
        db: DatabaseManager,
        tokens: TokenService,
        settings: Optional[Settings] = None,
    ) -> None:
        settings = settings or get_settings()
        self._db = db
        self._tokens = tokens
        self._max_attempts = settings.security.max_login_attempts
        self._lock_duration = timedelta(minutes=settings.security.lock_duration_minutes)
        self._password_min_length = settings.security.password_min_length

    @property
    def tokens(self) -> TokenService:
        return self._tokens

    async def register(self, data: RegistrationData) -> AuthResult:
        """
        Create an account and issue tokens.

        Raises:
            ValidationError: Password too short or name empty
            DuplicateEmailError: Email already registered (case-insensitive)
        """
        email = normalize_email(data.email)
        name = format_name(data.name)
        if not name:
            raise ValidationError.for_field("name", "Name is required")
        self._check_password(data.password, field_name="password")

        preferences = merge_preferences(UserPreferences(), data.preferences)

        try:
            async with self._db.session() as session:
                repo = UserRepository(session)
                if await repo.email_exists(email):
                    raise DuplicateEmailError()

                model = UserModel(
                    name=name,
                    email=email,
                    password_hash=hash_password(data.password),
                    age=data.age,
                    gender=data.gender or "prefer-not-to-say",
                    timezone=data.timezone or "America/Bogota",
                    preferences=preferences,
                )
                model = await repo.create(model)
                user = to_domain(model)
        except IntegrityError as e:
            # Concurrent registration won the unique index
            raise DuplicateEmailError() from e

        logger.info("User registered", user_id=str(user.id))
        return AuthResult(user=user, tokens=self._tokens.issue_pair(user.id))

    async def login(self, email: str, password: str) -> AuthResult:
        """
        Verify credentials and issue tokens.

        The failure count and lock are committed before the error is
        raised.

        Raises:
            AuthError: Unknown email, deactivated account or wrong password
            AccountLockedError: Account locked after too many failures
        """
        now = utcnow()
        email = normalize_email(email)
        failure: Optional[Exception] = None

        async with self._db.session() as session:
            repo = UserRepository(session)
            model = await repo.get_by_email(email)
            if model is None or not model.is_active:
                LOGIN_ATTEMPTS_TOTAL.labels(result="unknown_user").inc()
                raise AuthError(INVALID_CREDENTIALS)

            user = to_domain(model)
            security = user.security

            if security.is_locked(now):
                LOGIN_ATTEMPTS_TOTAL.labels(result="locked").inc()
                logger.warning("Login attempt on locked account", user_id=str(user.id))
                raise AccountLockedError(
                    "Account temporarily locked due to too many failed login attempts",
                    extra={"lock_until": security.lock_until.isoformat()},
                )

            if verify_password(password, user.password_hash):
                security.register_success(now)
            else:
                security.register_failure(self._max_attempts, self._lock_duration, now)
                failure = AuthError(INVALID_CREDENTIALS)

            await repo.save_security_state(user.id, security)

        if failure is not None:
            LOGIN_ATTEMPTS_TOTAL.labels(result="failure").inc()
            logger.info(
                "Login failed",
                user_id=str(user.id),
                attempts=security.login_attempts,
                locked=security.is_locked(now),
            )
            raise failure

        LOGIN_ATTEMPTS_TOTAL.labels(result="success").inc()
        logger.info("User logged in", user_id=str(user.id))
        return AuthResult(user=user, tokens=self._tokens.issue_pair(user.id))

    async def refresh(self, refresh_token: str) -> TokenPair:
        """
        Exchange a refresh token for a new pair.

        Raises:
            AuthError: Invalid or expired token, or inactive account
        """
        user_id = self._tokens.decode_refresh(refresh_token)
        async with self._db.session() as session:
            model = await UserRepository(session).get_active(user_id)
        if model is None:
            raise AuthError("Invalid refresh token")
        return self._tokens.issue_pair(user_id)

    async def get_user(self, user_id: UUID) -> User:
        """
        Load an active user.

        Raises:
            NotFoundError: No active user with this id
        """
        async with self._db.session() as session:
            model = await UserRepository(session).get_active(user_id)
            if model is None:
                raise NotFoundError("User not found")
            return to_domain(model)

    async def authenticate_access_token(self, token: Optional[str]) -> User:
        """
        Resolve the user behind a bearer access token.

        Raises:
            AuthError: Invalid token or deactivated account
            NotFoundError: Token subject no longer exists
        """
        user_id = self._tokens.decode_access(token)
        async with self._db.session() as session:
            model = await UserRepository(session).get_by_id(user_id)
            if model is None:
                raise NotFoundError("User not found")
            if not model.is_active or model.is_deleted:
                raise AuthError("Account is deactivated")
            return to_domain(model)

    async def update_profile(self, user: User, changes: ProfileUpdate) -> User:
        """
        Apply a partial profile update.

        Raises:
            ValidationError: Empty name after normalization
            NotFoundError: Account gone
        """
        fields: dict[str, Any] = {}
        if changes.name is not None:
            name = format_name(changes.name)
            if not name:
                raise ValidationError.for_field("name", "Name is required")
            fields["name"] = name
        if changes.age is not None:
            fields["age"] = changes.age
        if changes.gender is not None:
            fields["gender"] = changes.gender
        if changes.timezone is not None:
            fields["timezone"] = changes.timezone

        async with self._db.session() as session:
            repo = UserRepository(session)
            if changes.preferences is not None:
                model = await repo.get_active(user.id)
                if model is None:
                    raise NotFoundError("User not found")
                current = UserPreferences.from_dict(model.preferences)
                fields["preferences"] = merge_preferences(current, changes.preferences)

            if not await repo.update_profile(user.id, fields):
                raise NotFoundError("User not found")
            model = await repo.get_by_id(user.id)
            updated = to_domain(model)

        logger.info("Profile updated", user_id=str(user.id), fields=sorted(fields))
        return updated

    async def change_password(self, user: User, current_password: str, new_password: str) -> None:
        """
        Replace the password after checking the current one.

        Raises:
            AuthError: Current password is wrong
            ValidationError: New password too short
        """
        self._check_password(new_password, field_name="newPassword")

        async with self._db.session() as session:
            repo = UserRepository(session)
            model = await repo.get_active(user.id)
            if model is None:
                raise NotFoundError("User not found")
            if not verify_password(current_password, model.password_hash):
                raise AuthError("Current password is incorrect")
            await repo.update_password_hash(user.id, hash_password(new_password))

        logger.info("Password changed", user_id=str(user.id))

    async def deactivate(self, user: User) -> None:
        """Soft delete the account; its tokens stop working immediately."""
        async with self._db.session() as session:
            deleted = await UserRepository(session).soft_delete(user.id)
        if not deleted:
            raise NotFoundError("User not found")
        logger.info("Account deactivated", user_id=str(user.id))

    def _check_password(self, password: Optional[str], field_name: str) -> None:
        if not password or len(password) < self._password_min_length:
            raise ValidationError.for_field(
                field_name,
                f"Password must be at least {self._password_min_length} characters",
            )
