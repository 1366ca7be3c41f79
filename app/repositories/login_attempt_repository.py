"""Repository for the login attempt security log."""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import LoginAttempt


class LoginAttemptRepository:
    """Data access layer for login attempts."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def record(
        self,
        *,
        email: str,
        success: bool,
        user_id: str | None = None,
        failure_reason: str | None = None,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> LoginAttempt:
        attempt = LoginAttempt(
            email=email,
            success=success,
            user_id=user_id,
            failure_reason=failure_reason,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        self.session.add(attempt)
        await self.session.flush()
        return attempt

    async def get_recent(self, page: int = 1, size: int = 100) -> tuple[list[LoginAttempt], int]:
        total = (
            await self.session.execute(select(func.count()).select_from(LoginAttempt))
        ).scalar() or 0

        result = await self.session.execute(
            select(LoginAttempt)
            .order_by(LoginAttempt.created_at.desc())
            .offset((page - 1) * size)
            .limit(size)
        )
        return list(result.scalars().all()), total
