"""
Unit Tests for Authentication

Tests registration, login lockout, token handling and account
management against a temporary SQLite database.
"""

from datetime import timedelta
from uuid import uuid4

import pytest

from mindsync.domain.exceptions import (
    AccountLockedError,
    AuthError,
    DuplicateEmailError,
    ValidationError,
)
from mindsync.domain.time_utils import utcnow
from mindsync.infrastructure.database.repositories.user_repository import UserRepository
from mindsync.services.auth.auth_service import (
    AuthService,
    ProfileUpdate,
    RegistrationData,
    format_name,
)
from mindsync.services.auth.security import TokenService, hash_password, verify_password


@pytest.fixture
def tokens(test_settings) -> TokenService:
    return TokenService(test_settings.jwt)


@pytest.fixture
def auth(db, tokens, test_settings) -> AuthService:
    return AuthService(db, tokens, test_settings)


class TestPasswordHashing:
    """Tests for password hashing helpers."""

    def test_hash_verifies(self) -> None:
        hashed = hash_password("secret1")

        assert hashed != "secret1"
        assert verify_password("secret1", hashed)
        assert not verify_password("secret2", hashed)

    def test_garbage_hash_does_not_verify(self) -> None:
        assert not verify_password("secret1", "not-a-hash")


class TestTokenService:
    """Tests for TokenService."""

    def test_access_token_round_trip(self, tokens: TokenService) -> None:
        user_id = uuid4()
        pair = tokens.issue_pair(user_id)

        assert tokens.decode_access(pair.access_token) == user_id
        assert tokens.decode_refresh(pair.refresh_token) == user_id
        assert pair.expires_in == 15 * 60

    def test_refresh_token_not_accepted_as_access(self, tokens: TokenService) -> None:
        pair = tokens.issue_pair(uuid4())

        with pytest.raises(AuthError):
            tokens.decode_access(pair.refresh_token)
        with pytest.raises(AuthError):
            tokens.decode_refresh(pair.access_token)

    def test_garbage_token(self, tokens: TokenService) -> None:
        with pytest.raises(AuthError):
            tokens.decode_access("not.a.token")


class TestRegistration:
    """Tests for AuthService.register."""

    async def test_register(self, auth: AuthService) -> None:
        result = await auth.register(
            RegistrationData(name="ana  maría", email=" Ana@X.com ", password="secret1")
        )

        assert result.user.email == "ana@x.com"
        assert result.user.name == "Ana María"
        assert result.user.preferences.language == "es"
        assert result.tokens.access_token
        assert "password" not in result.user.to_dict()
        assert "password_hash" not in result.user.to_dict()

    async def test_duplicate_email_case_insensitive(self, auth: AuthService) -> None:
        await auth.register(RegistrationData(name="Ana", email="ana@x.com", password="secret1"))

        with pytest.raises(DuplicateEmailError):
            await auth.register(RegistrationData(name="Otra Ana", email="ANA@X.COM", password="secret2"))

    async def test_short_password(self, auth: AuthService) -> None:
        with pytest.raises(ValidationError):
            await auth.register(RegistrationData(name="Ana", email="ana@x.com", password="12345"))

    def test_format_name(self) -> None:
        assert format_name("  josé   luis ") == "José Luis"


class TestLogin:
    """Tests for AuthService.login and lockout."""

    async def test_login(self, auth: AuthService, create_user) -> None:
        await create_user(email="ana@x.com", password="secret1")

        result = await auth.login("ANA@x.com", "secret1")

        assert result.user.security.last_login is not None
        assert result.user.security.login_attempts == 0

    async def test_unknown_email(self, auth: AuthService) -> None:
        with pytest.raises(AuthError):
            await auth.login("nadie@x.com", "secret1")

    async def test_lockout_after_max_attempts(self, auth: AuthService, db, create_user) -> None:
        user = await create_user(email="ana@x.com", password="secret1")

        for _ in range(5):
            with pytest.raises(AuthError):
                await auth.login("ana@x.com", "wrong-password")

        async with db.session() as session:
            model = await UserRepository(session).get_by_id(user.id)
        assert model.login_attempts == 5
        assert model.lock_until is not None

        # Locked even with the right password
        with pytest.raises(AccountLockedError) as exc_info:
            await auth.login("ana@x.com", "secret1")
        assert exc_info.value.status_code == 423

    async def test_expired_lock_allows_login(self, auth: AuthService, create_user) -> None:
        await create_user(
            email="ana@x.com",
            password="secret1",
            login_attempts=5,
            lock_until=utcnow() - timedelta(minutes=1),
        )

        result = await auth.login("ana@x.com", "secret1")

        assert result.user.security.login_attempts == 0
        assert result.user.security.lock_until is None

    async def test_expired_lock_restarts_count(self, auth: AuthService, db, create_user) -> None:
        user = await create_user(
            email="ana@x.com",
            password="secret1",
            login_attempts=5,
            lock_until=utcnow() - timedelta(minutes=1),
        )

        with pytest.raises(AuthError):
            await auth.login("ana@x.com", "wrong-password")

        async with db.session() as session:
            model = await UserRepository(session).get_by_id(user.id)
        assert model.login_attempts == 1
        assert model.lock_until is None


class TestAccountManagement:
    """Tests for token refresh, profile, password and deactivation."""

    async def test_refresh(self, auth: AuthService, create_user) -> None:
        user = await create_user()
        pair = auth.tokens.issue_pair(user.id)

        new_pair = await auth.refresh(pair.refresh_token)

        assert auth.tokens.decode_access(new_pair.access_token) == user.id

    async def test_update_profile_merges_preferences(self, auth: AuthService, create_user) -> None:
        user = await create_user()

        updated = await auth.update_profile(
            user,
            ProfileUpdate(
                name="ana lucía",
                age=30,
                preferences={"language": "en", "notification_settings": {"frequency": "weekly"}},
            ),
        )

        assert updated.name == "Ana Lucía"
        assert updated.age == 30
        assert updated.preferences.language == "en"
        assert updated.preferences.notification_settings.frequency == "weekly"
        assert updated.preferences.notification_settings.push_enabled is True
        assert updated.preferences.therapy_style == "cognitive"

    async def test_change_password(self, auth: AuthService, create_user) -> None:
        user = await create_user(password="secret1")

        with pytest.raises(AuthError):
            await auth.change_password(user, "wrong", "newsecret")

        await auth.change_password(user, "secret1", "newsecret")
        result = await auth.login(user.email, "newsecret")

        assert result.user.id == user.id

    async def test_deactivated_account(self, auth: AuthService, create_user) -> None:
        user = await create_user(password="secret1")
        pair = auth.tokens.issue_pair(user.id)

        await auth.deactivate(user)

        with pytest.raises(AuthError):
            await auth.authenticate_access_token(pair.access_token)
        with pytest.raises(AuthError):
            await auth.login(user.email, "secret1")
        with pytest.raises(AuthError):
            await auth.refresh(pair.refresh_token)
