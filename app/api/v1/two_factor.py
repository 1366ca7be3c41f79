"""Email step-up endpoints: issue and verify one-time codes.

Both endpoints require the challenge token returned by ``/auth/login``, so a
code can only be requested or redeemed after the password check passed.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, status

from app.auth.security import challenge_subject, create_access_token
from app.config import get_settings
from app.dependencies import DBSession, get_two_factor_service
from app.models.user import User
from app.repositories.user_repository import UserRepository
from app.schemas.auth import (
    Send2FARequest,
    Send2FAResponse,
    Verify2FARequest,
    Verify2FAResponse,
)
from app.services.two_factor_service import (
    INVALID_CODE_MESSAGE,
    TooManyAttemptsError,
    TwoFactorService,
)
from app.utils.rate_limit import limiter

router = APIRouter()
settings = get_settings()

TwoFactor = Annotated[TwoFactorService, Depends(get_two_factor_service)]


async def _pending_login_user(db: DBSession, user_id: str, challenge_token: str) -> User:
    """Resolve the user of a pending login, refusing stale challenges and locked accounts."""
    if challenge_subject(challenge_token) != user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Login session expired. Please sign in again.",
        )

    users = UserRepository(db)
    user = await users.get_by_id(user_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Unknown user or email",
        )
    profile = await users.get_profile(user.id)
    if profile is not None and profile.account_locked:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is locked. Please contact support.",
        )
    return user


@router.post("/send-2fa-code", response_model=Send2FAResponse)
@limiter.limit(settings.otp_send_rate_limit)
async def send_2fa_code(
    request: Request,
    body: Send2FARequest,
    db: DBSession,
    two_factor: TwoFactor,
) -> Send2FAResponse:
    """Issue a fresh code (invalidating older ones) and email it. Also used for resend."""
    user = await _pending_login_user(db, body.user_id, body.challenge_token)
    if user.email != body.email.lower():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Unknown user or email",
        )

    await two_factor.issue_code(user.id, user.email)
    return Send2FAResponse()


@router.post(
    "/verify-2fa-code",
    response_model=Verify2FAResponse,
    response_model_exclude_none=True,
)
async def verify_2fa_code(
    body: Verify2FARequest, db: DBSession, two_factor: TwoFactor
) -> Verify2FAResponse:
    """Consume a code. A wrong, used or expired code is a 200 with ``valid: false``."""
    user = await _pending_login_user(db, body.user_id, body.challenge_token)
    try:
        valid = await two_factor.verify_code(user.id, body.code)
    except TooManyAttemptsError as err:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many verification attempts. Please request a new code later.",
        ) from err

    if not valid:
        return Verify2FAResponse(valid=False, error=INVALID_CODE_MESSAGE)

    return Verify2FAResponse(
        valid=True,
        message="Verification successful",
        access_token=create_access_token(user.id),
        token_type="bearer",
        expires_in=settings.jwt_access_token_expire_minutes * 60,
    )
