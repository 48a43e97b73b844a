"""
Credential Security

Password hashing (passlib) and JWT access/refresh tokens (python-jose).

Access and refresh tokens are signed with different secrets and carry a
``type`` claim; each decoder accepts only its own type.

SECURITY: Plaintext passwords and raw tokens must never be logged.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import UUID, uuid4

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from mindsync.config.settings import JWTSettings
from mindsync.domain.exceptions import AuthError

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


def hash_password(password: str) -> str:
    """Salted hash of a plaintext password."""
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """Check a plaintext password against a stored hash."""
    if not password or not password_hash:
        return False
    try:
        return pwd_context.verify(password, password_hash)
    except ValueError:
        # Unrecognized or corrupted hash
        return False


@dataclass(frozen=True)
class TokenPair:
    """Access and refresh tokens issued together."""

    access_token: str
    refresh_token: str
    expires_in: int
    token_type: str = "Bearer"

    def to_dict(self) -> dict:
        return {
            "access_token": self.access_token,
            "refresh_token": self.refresh_token,
            "token_type": self.token_type,
            "expires_in": self.expires_in,
        }


class TokenService:
    """
    Issues and verifies JWT token pairs.

    Usage:
        tokens = TokenService(settings.jwt)
        pair = tokens.issue_pair(user.id)
        user_id = tokens.decode_access(pair.access_token)
    """

    def __init__(self, settings: JWTSettings) -> None:
        self._access_secret = settings.secret_key.get_secret_value()
        self._refresh_secret = settings.refresh_secret_key.get_secret_value()
        self._algorithm = settings.algorithm
        self._access_ttl = timedelta(minutes=settings.access_token_expire_minutes)
        self._refresh_ttl = timedelta(days=settings.refresh_token_expire_days)

    def issue_pair(self, user_id: UUID) -> TokenPair:
        """Issue a fresh access/refresh pair for ``user_id``."""
        return TokenPair(
            access_token=self._encode(user_id, ACCESS_TOKEN_TYPE, self._access_secret, self._access_ttl),
            refresh_token=self._encode(user_id, REFRESH_TOKEN_TYPE, self._refresh_secret, self._refresh_ttl),
            expires_in=int(self._access_ttl.total_seconds()),
        )

    def decode_access(self, token: str) -> UUID:
        """
        Verify an access token.

        Raises:
            AuthError: Invalid, expired or wrong-type token
        """
        return self._decode(token, ACCESS_TOKEN_TYPE, self._access_secret)

    def decode_refresh(self, token: str) -> UUID:
        """
        Verify a refresh token.

        Raises:
            AuthError: Invalid, expired or wrong-type token
        """
        return self._decode(token, REFRESH_TOKEN_TYPE, self._refresh_secret)

    def _encode(self, user_id: UUID, token_type: str, secret: str, ttl: timedelta) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "sub": str(user_id),
            "type": token_type,
            "iat": now,
            "exp": now + ttl,
            "jti": uuid4().hex,
        }
        return jwt.encode(payload, secret, algorithm=self._algorithm)

    def _decode(self, token: Optional[str], expected_type: str, secret: str) -> UUID:
        if not token:
            raise AuthError("Token is required")
        try:
            payload = jwt.decode(token, secret, algorithms=[self._algorithm])
        except ExpiredSignatureError as e:
            raise AuthError("Token has expired") from e
        except JWTError as e:
            raise AuthError("Invalid token") from e

        if payload.get("type") != expected_type:
            raise AuthError("Invalid token type")

        try:
            return UUID(str(payload.get("sub")))
        except ValueError as e:
            raise AuthError("Invalid token subject") from e


