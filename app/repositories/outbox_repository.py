"""Repository for pending fraud alert notifications."""

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.fraud import NotificationOutbox


class OutboxRepository:
    """Data access layer for the notification outbox."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_pending(
        self,
        ids: list[str] | None = None,
        max_attempts: int | None = None,
        limit: int = 100,
    ) -> list[NotificationOutbox]:
        query = select(NotificationOutbox).where(NotificationOutbox.delivered_at.is_(None))
        if ids is not None:
            query = query.where(NotificationOutbox.id.in_(ids))
        if max_attempts is not None:
            query = query.where(NotificationOutbox.attempts < max_attempts)
        query = query.order_by(NotificationOutbox.created_at.asc()).limit(limit)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def mark_delivered(self, entry: NotificationOutbox, when: datetime) -> None:
        entry.attempts += 1
        entry.delivered_at = when
        entry.last_error = None
        await self.session.flush()

    async def mark_failed(self, entry: NotificationOutbox, error: str) -> None:
        entry.attempts += 1
        entry.last_error = error[:2000]
        await self.session.flush()
