"""Account signup and password login with email step-up."""

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.security import hash_password, verify_password
from app.config import Settings
from app.models.user import AppRole, Profile, User
from app.repositories.login_attempt_repository import LoginAttemptRepository
from app.repositories.role_repository import RoleRepository
from app.repositories.user_repository import UserRepository
from app.schemas.auth import SignupRequest
from app.services.two_factor_service import TwoFactorService
from app.utils.logging import get_logger

logger = get_logger(__name__)


class EmailAlreadyRegisteredError(Exception):
    pass


class InvalidCredentialsError(Exception):
    pass


class AccountLockedError(Exception):
    pass


@dataclass(frozen=True)
class LoginChallenge:
    """Password accepted; a code was emailed to ``email``."""

    user_id: str
    email: str


class AuthService:
    def __init__(
        self,
        session: AsyncSession,
        two_factor: TwoFactorService,
        settings: Settings,
    ) -> None:
        self._session = session
        self.users = UserRepository(session)
        self.roles = RoleRepository(session)
        self.attempts = LoginAttemptRepository(session)
        self.two_factor = two_factor
        self.settings = settings

    async def signup(self, data: SignupRequest) -> User:
        """Create the identity, its profile and the default ``customer`` role."""
        email = data.email.lower()
        if await self.users.get_by_email(email):
            raise EmailAlreadyRegisteredError(email)

        user = await self.users.create(
            User(email=email, hashed_password=hash_password(data.password)),
            Profile(email=email, full_name=data.full_name, phone=data.phone),
        )
        await self.roles.assign(user.id, AppRole.customer.value)
        logger.info("User %s signed up", user.id)
        return user

    async def _reject(self, reason: str, email: str, user_id: str | None, **client) -> None:
        # Failure bookkeeping must survive the rollback triggered by the error response.
        await self.attempts.record(
            email=email, success=False, user_id=user_id, failure_reason=reason, **client
        )
        await self._session.commit()
        logger.warning("Login rejected for %s: %s", email, reason)

    async def login(
        self,
        email: str,
        password: str,
        *,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> LoginChallenge:
        email = email.lower()
        client = {"ip_address": ip_address, "user_agent": user_agent}

        user = await self.users.get_by_email(email)
        if user is None:
            await self._reject("unknown_email", email, None, **client)
            raise InvalidCredentialsError(email)

        profile = await self.users.get_profile(user.id)
        if profile is not None and profile.account_locked:
            await self._reject("account_locked", email, user.id, **client)
            raise AccountLockedError(user.id)

        if not verify_password(password, user.hashed_password):
            if profile is not None:
                await self.users.record_failed_login(
                    profile, self.settings.max_failed_login_attempts
                )
                if profile.account_locked:
                    logger.warning(
                        "Account %s locked after %d failed logins",
                        user.id,
                        profile.failed_login_attempts,
                    )
            await self._reject("invalid_password", email, user.id, **client)
            raise InvalidCredentialsError(email)

        if profile is not None:
            await self.users.reset_failed_logins(profile)
        await self.attempts.record(email=email, success=True, user_id=user.id, **client)

        await self.two_factor.issue_code(user.id, email)
        return LoginChallenge(user_id=user.id, email=email)
