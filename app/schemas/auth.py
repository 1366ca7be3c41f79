"""Pydantic schemas for signup, login and two-factor verification."""

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field

from app.schemas.common import CamelModel


class SignupRequest(BaseModel):
    """Request schema for creating a customer account."""

    email: EmailStr
    password: str = Field(min_length=8, max_length=128)
    full_name: str | None = Field(default=None, max_length=255)
    phone: str | None = Field(default=None, max_length=20)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)


class LoginResponse(CamelModel):
    """Password accepted; the caller must now submit the emailed code."""

    otp_required: bool = True
    user_id: str
    challenge_token: str
    message: str = "A 6-digit code has been sent to your email."


class Send2FARequest(CamelModel):
    email: EmailStr
    user_id: str = Field(min_length=1)
    challenge_token: str = Field(min_length=1)


class Send2FAResponse(CamelModel):
    success: bool = True
    message: str = "Verification code sent"


class Verify2FARequest(CamelModel):
    """The challenge token from login binds the code to a passed password check."""

    user_id: str = Field(min_length=1)
    code: str = Field(min_length=1, max_length=6)
    challenge_token: str = Field(min_length=1)


class Verify2FAResponse(CamelModel):
    valid: bool
    message: str | None = None
    error: str | None = None
    access_token: str | None = None
    token_type: str | None = None
    expires_in: int | None = None


class CurrentUserResponse(BaseModel):
    """Authenticated caller with the role resolved from storage."""

    id: str
    email: str | None
    role: str
    full_name: str | None = None
    two_factor_enabled: bool = False
    account_locked: bool = False
    last_login_at: datetime | None = None
