"""Authentication services: credentials, tokens and account lifecycle."""

from mindsync.services.auth.auth_service import (
    AuthResult,
    AuthService,
    ProfileUpdate,
    RegistrationData,
)
from mindsync.services.auth.security import (
    TokenPair,
    TokenService,
    hash_password,
    verify_password,
)

__all__ = [
    "AuthResult",
    "AuthService",
    "ProfileUpdate",
    "RegistrationData",
    "TokenPair",
    "TokenService",
    "hash_password",
    "verify_password",
]
