"""JWT token and password hashing utilities."""

from datetime import UTC, datetime, timedelta
from typing import Any

import bcrypt
from jose import JWTError, jwt

from app.config import get_settings

ACCESS_TOKEN_TYPE = "access"
CHALLENGE_TOKEN_TYPE = "otp_pending"


def hash_password(password: str) -> str:
    """Hash a plain-text password with bcrypt."""
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain-text password against a bcrypt hash."""
    try:
        return bcrypt.checkpw(plain_password.encode(), hashed_password.encode())
    except ValueError:
        # malformed stored hash
        return False


def _encode_token(user_id: str, token_type: str, minutes: int) -> str:
    settings = get_settings()
    now = datetime.now(UTC)
    payload = {
        "sub": user_id,
        "type": token_type,
        "iat": now,
        "exp": now + timedelta(minutes=minutes),
    }
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def create_access_token(user_id: str, expires_minutes: int | None = None) -> str:
    """Create a session token after a completed step-up login.

    Only the subject is carried; roles are looked up on every request.
    """
    minutes = expires_minutes or get_settings().jwt_access_token_expire_minutes
    return _encode_token(user_id, ACCESS_TOKEN_TYPE, minutes)


def create_challenge_token(user_id: str) -> str:
    """Create the short-lived token proving the password step passed.

    It is accepted only by the code send and verify endpoints.
    """
    return _encode_token(
        user_id, CHALLENGE_TOKEN_TYPE, get_settings().otp_challenge_expire_minutes
    )


def decode_token(token: str) -> dict[str, Any]:
    """Decode and validate a JWT token. Raises JWTError on failure."""
    settings = get_settings()
    return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])


def challenge_subject(token: str) -> str | None:
    """Return the user id of a valid challenge token, else None."""
    try:
        payload = decode_token(token)
    except JWTError:
        return None
    if payload.get("type") != CHALLENGE_TOKEN_TYPE:
        return None
    return payload.get("sub") or None
