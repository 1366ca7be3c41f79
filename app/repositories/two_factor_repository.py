"""Repository for one-time verification codes."""

from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.two_factor import TwoFactorCode


class TwoFactorCodeRepository:
    """Data access layer for two-factor codes."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def invalidate_unused(self, user_id: str) -> int:
        """Mark every unused code of the user as used. Returns the affected row count."""
        result = await self.session.execute(
            update(TwoFactorCode)
            .where(TwoFactorCode.user_id == user_id)
            .where(TwoFactorCode.used.is_(False))
            .values(used=True)
        )
        return result.rowcount

    async def create(
        self, *, user_id: str, email: str, code: str, expires_at: datetime
    ) -> TwoFactorCode:
        record = TwoFactorCode(user_id=user_id, email=email, code=code, expires_at=expires_at)
        self.session.add(record)
        await self.session.flush()
        return record

    async def find_valid(self, user_id: str, code: str, now: datetime) -> TwoFactorCode | None:
        """Newest unused, unexpired code for the user matching ``code``."""
        result = await self.session.execute(
            select(TwoFactorCode)
            .where(TwoFactorCode.user_id == user_id)
            .where(TwoFactorCode.code == code)
            .where(TwoFactorCode.used.is_(False))
            .where(TwoFactorCode.expires_at > now)
            .order_by(TwoFactorCode.created_at.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def consume(self, record: TwoFactorCode) -> bool:
        """Flip ``used`` only if still unused. False means a concurrent request won."""
        result = await self.session.execute(
            update(TwoFactorCode)
            .where(TwoFactorCode.id == record.id)
            .where(TwoFactorCode.used.is_(False))
            .values(used=True)
        )
        return result.rowcount == 1
