"""Authentication and authorization dependencies.

The bearer token only identifies the caller. Role and lock state are read from
the database on every request, so a role change or lock takes effect
immediately.
"""

import secrets
from dataclasses import dataclass
from datetime import datetime
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from jose import JWTError

from app.auth.security import ACCESS_TOKEN_TYPE, decode_token
from app.dependencies import AppSettings, DBSession
from app.models.user import AppRole
from app.repositories.role_repository import RoleRepository
from app.repositories.user_repository import UserRepository
from app.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class AuthenticatedUser:
    id: str
    email: str
    role: str
    full_name: str | None = None
    two_factor_enabled: bool = False
    account_locked: bool = False
    last_login_at: datetime | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == AppRole.admin


def _unauthorized(detail: str = "Unauthorized") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _bearer_token(request: Request) -> str:
    header = request.headers.get("Authorization")
    if not header:
        raise _unauthorized("No authorization header")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise _unauthorized()
    return token.strip()


async def get_current_user(request: Request, db: DBSession) -> AuthenticatedUser:
    """Resolve the caller from the bearer token and current database state."""
    token = _bearer_token(request)
    try:
        payload = decode_token(token)
    except JWTError as err:
        raise _unauthorized() from err

    user_id = payload.get("sub")
    if payload.get("type") != ACCESS_TOKEN_TYPE or not user_id:
        raise _unauthorized()

    users = UserRepository(db)
    user = await users.get_by_id(user_id)
    if user is None:
        raise _unauthorized()

    profile = await users.get_profile(user.id)
    if profile is not None and profile.account_locked:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account is locked")

    role = await RoleRepository(db).get_role(user.id) or AppRole.customer.value
    return AuthenticatedUser(
        id=user.id,
        email=user.email,
        role=role,
        full_name=profile.full_name if profile else None,
        two_factor_enabled=profile.two_factor_enabled if profile else False,
        account_locked=profile.account_locked if profile else False,
        last_login_at=profile.last_login_at if profile else None,
    )


CurrentUser = Annotated[AuthenticatedUser, Depends(get_current_user)]


def require_role(*roles: str, detail: str = "Insufficient permissions"):
    """Dependency factory rejecting callers whose stored role is not in ``roles``."""

    async def _check(current_user: CurrentUser) -> AuthenticatedUser:
        if current_user.role not in roles:
            logger.warning(
                "User %s (role=%s) denied; requires one of %s",
                current_user.id,
                current_user.role,
                roles,
            )
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)
        return current_user

    return _check


AdminUser = Annotated[
    AuthenticatedUser,
    Depends(require_role(AppRole.admin.value, detail="Admin access required")),
]
ReviewerUser = Annotated[
    AuthenticatedUser,
    Depends(require_role(AppRole.admin.value, AppRole.security_personnel.value)),
]


async def verify_internal_token(request: Request, settings: AppSettings) -> None:
    """Guard for internal hooks; a blank configured token disables the check."""
    expected = settings.internal_api_token
    if not expected:
        return
    supplied = request.headers.get("X-Internal-Token", "")
    if not secrets.compare_digest(supplied, expected):
        raise _unauthorized()
