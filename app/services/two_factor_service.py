"""Email one-time codes for step-up login."""

import secrets
from datetime import UTC, datetime, timedelta

from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings
from app.repositories.two_factor_repository import TwoFactorCodeRepository
from app.repositories.user_repository import UserRepository
from app.services.email_relay import EmailMessage, EmailRelay
from app.services.email_templates import verification_code_email
from app.utils.logging import get_logger

logger = get_logger(__name__)

CODE_DIGITS = 6
INVALID_CODE_MESSAGE = "Invalid or expired verification code"


class TooManyAttemptsError(Exception):
    """Verification attempts for the user exceeded the throttle window."""


def generate_code() -> str:
    """Uniform random code in 000000-999999, zero padded."""
    return f"{secrets.randbelow(10**CODE_DIGITS):0{CODE_DIGITS}d}"


def _attempts_key(user_id: str) -> str:
    return f"2fa:verify-attempts:{user_id}"


class TwoFactorService:
    """Issues and verifies codes; at most one usable code per user at a time."""

    def __init__(
        self,
        session: AsyncSession,
        relay: EmailRelay,
        redis: Redis,
        settings: Settings,
    ) -> None:
        self.codes = TwoFactorCodeRepository(session)
        self.users = UserRepository(session)
        self.relay = relay
        self.redis = redis
        self.settings = settings

    async def issue_code(self, user_id: str, email: str) -> datetime:
        """Invalidate older codes, store a new one and email it.

        Relay failures propagate; the request session then rolls back so no
        undeliverable code is left behind. Returns the expiry time.
        """
        code = generate_code()
        invalidated = await self.codes.invalidate_unused(user_id)
        expires_at = datetime.now(UTC) + timedelta(minutes=self.settings.otp_ttl_minutes)
        await self.codes.create(user_id=user_id, email=email, code=code, expires_at=expires_at)
        logger.info("Issued 2FA code for user %s (%d older code(s) invalidated)", user_id, invalidated)

        await self.relay.send(
            EmailMessage(
                sender=self.settings.otp_email_from,
                to=[email],
                subject="Your Zanifu Verification Code",
                html=verification_code_email(code, self.settings.otp_ttl_minutes),
            )
        )
        return expires_at

    async def _register_attempt(self, user_id: str) -> None:
        key = _attempts_key(user_id)
        attempts = await self.redis.incr(key)
        if attempts == 1:
            await self.redis.expire(key, self.settings.otp_verify_window_seconds)
        if attempts > self.settings.otp_max_verify_attempts:
            logger.warning("2FA verification throttled for user %s", user_id)
            raise TooManyAttemptsError(user_id)

    async def verify_code(self, user_id: str, code: str) -> bool:
        """Consume a matching code. Never reveals whether it was wrong, used or expired."""
        await self._register_attempt(user_id)

        now = datetime.now(UTC)
        record = await self.codes.find_valid(user_id, code, now)
        if record is None or not await self.codes.consume(record):
            logger.info("2FA verification failed for user %s", user_id)
            return False

        await self.users.mark_two_factor_login(user_id, now)
        await self.redis.delete(_attempts_key(user_id))
        logger.info("2FA verification successful for user %s", user_id)
        return True
