"""Signup, password login and current-user endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, status

from app.auth.dependencies import CurrentUser
from app.auth.security import create_challenge_token
from app.config import get_settings
from app.dependencies import get_auth_service
from app.models.user import AppRole
from app.schemas.auth import (
    CurrentUserResponse,
    LoginRequest,
    LoginResponse,
    SignupRequest,
)
from app.services.auth_service import (
    AccountLockedError,
    AuthService,
    EmailAlreadyRegisteredError,
    InvalidCredentialsError,
)
from app.utils.rate_limit import limiter

router = APIRouter()
settings = get_settings()

Auth = Annotated[AuthService, Depends(get_auth_service)]


@router.post("/signup", response_model=CurrentUserResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.login_rate_limit)
async def signup(request: Request, body: SignupRequest, auth: Auth) -> CurrentUserResponse:
    """Create a customer account."""
    try:
        user = await auth.signup(body)
    except EmailAlreadyRegisteredError as err:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email already registered",
        ) from err
    return CurrentUserResponse(
        id=user.id,
        email=user.email,
        role=AppRole.customer.value,
        full_name=body.full_name,
    )


@router.post("/login", response_model=LoginResponse, response_model_by_alias=True)
@limiter.limit(settings.login_rate_limit)
async def login(request: Request, body: LoginRequest, auth: Auth) -> LoginResponse:
    """Check the password and email a verification code.

    No session token is issued here; it comes from ``/verify-2fa-code``.
    """
    try:
        challenge = await auth.login(
            body.email,
            body.password,
            ip_address=request.client.host if request.client else None,
            user_agent=request.headers.get("User-Agent"),
        )
    except InvalidCredentialsError as err:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        ) from err
    except AccountLockedError as err:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is locked. Please contact support.",
        ) from err

    return LoginResponse(
        user_id=challenge.user_id,
        challenge_token=create_challenge_token(challenge.user_id),
    )


@router.get("/me", response_model=CurrentUserResponse)
async def get_current_user_info(current_user: CurrentUser) -> CurrentUserResponse:
    """Return the caller with the role resolved from storage."""
    return CurrentUserResponse(
        id=current_user.id,
        email=current_user.email,
        role=current_user.role,
        full_name=current_user.full_name,
        two_factor_enabled=current_user.two_factor_enabled,
        account_locked=current_user.account_locked,
        last_login_at=current_user.last_login_at,
    )
