"""
Auth Endpoints

Registration, login, token refresh and account management.
"""

from fastapi import APIRouter, Depends, status

from mindsync.api.dependencies import get_container, get_current_user
from mindsync.api.schemas import (
    AuthResponse,
    ChangePasswordRequest,
    LoginRequest,
    MessageOnlyResponse,
    ProfileUpdateRequest,
    RefreshRequest,
    RegisterRequest,
    TokenPairResponse,
    UserEnvelope,
    UserResponse,
)
from mindsync.config.logging_config import get_logger
from mindsync.domain.models.user import User
from mindsync.services.auth.auth_service import ProfileUpdate, RegistrationData
from mindsync.services.container import ServiceContainer

logger = get_logger(__name__)
router = APIRouter()


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an account",
)
async def register(
    request: RegisterRequest,
    container: ServiceContainer = Depends(get_container),
) -> AuthResponse:
    """Create an account and return the user with a token pair."""
    result = await container.auth.register(
        RegistrationData(
            name=request.name,
            email=request.email,
            password=request.password,
            age=request.age,
            gender=request.gender,
            timezone=request.timezone,
            preferences=request.preferences.model_dump(exclude_none=True) if request.preferences else None,
        )
    )
    return AuthResponse(
        message="User registered successfully",
        user=UserResponse.from_user(result.user),
        tokens=TokenPairResponse.from_pair(result.tokens),
    )


@router.post("/login", response_model=AuthResponse, summary="Log in")
async def login(
    request: LoginRequest,
    container: ServiceContainer = Depends(get_container),
) -> AuthResponse:
    """
    Verify credentials.

    Repeated failures lock the account; a locked account answers 423.
    """
    result = await container.auth.login(request.email, request.password)
    return AuthResponse(
        message="Login successful",
        user=UserResponse.from_user(result.user),
        tokens=TokenPairResponse.from_pair(result.tokens),
    )


@router.post("/refresh", response_model=TokenPairResponse, summary="Refresh tokens")
async def refresh(
    request: RefreshRequest,
    container: ServiceContainer = Depends(get_container),
) -> TokenPairResponse:
    pair = await container.auth.refresh(request.refresh_token)
    return TokenPairResponse.from_pair(pair)


@router.get("/me", response_model=UserEnvelope, summary="Current user")
async def me(user: User = Depends(get_current_user)) -> UserEnvelope:
    return UserEnvelope(user=UserResponse.from_user(user))


@router.api_route(
    "/profile",
    methods=["PATCH", "PUT"],
    response_model=UserEnvelope,
    summary="Update profile",
)
async def update_profile(
    request: ProfileUpdateRequest,
    user: User = Depends(get_current_user),
    container: ServiceContainer = Depends(get_container),
) -> UserEnvelope:
    """Apply a partial update; unknown fields are rejected with 400."""
    updated = await container.auth.update_profile(
        user,
        ProfileUpdate(
            name=request.name,
            age=request.age,
            gender=request.gender,
            timezone=request.timezone,
            preferences=request.preferences.model_dump(exclude_none=True) if request.preferences else None,
        ),
    )
    return UserEnvelope(user=UserResponse.from_user(updated))


@router.post(
    "/change-password",
    response_model=MessageOnlyResponse,
    summary="Change password",
)
async def change_password(
    request: ChangePasswordRequest,
    user: User = Depends(get_current_user),
    container: ServiceContainer = Depends(get_container),
) -> MessageOnlyResponse:
    await container.auth.change_password(user, request.current_password, request.new_password)
    return MessageOnlyResponse(message="Password updated successfully")


@router.delete("/account", response_model=MessageOnlyResponse, summary="Deactivate account")
async def deactivate_account(
    user: User = Depends(get_current_user),
    container: ServiceContainer = Depends(get_container),
) -> MessageOnlyResponse:
    await container.auth.deactivate(user)
    return MessageOnlyResponse(message="Account deactivated")
