"""Repository for the append-only transaction audit trail."""

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.fraud import TransactionAudit


class AuditRepository:
    """Data access layer for audit records. Rows are only ever inserted."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def record(
        self,
        *,
        action_type: str,
        entity_type: str,
        entity_id: str | None,
        user_id: str | None = None,
        order_id: str | None = None,
        old_value: dict[str, Any] | None = None,
        new_value: dict[str, Any] | None = None,
        performed_by: str | None = None,
    ) -> TransactionAudit:
        record = TransactionAudit(
            action_type=action_type,
            entity_type=entity_type,
            entity_id=entity_id,
            user_id=user_id,
            order_id=order_id,
            old_value=old_value,
            new_value=new_value,
            performed_by=performed_by,
        )
        self.session.add(record)
        await self.session.flush()
        return record
