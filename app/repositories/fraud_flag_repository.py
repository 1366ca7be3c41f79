"""Repository for fraud flags and their notification outbox."""

from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.filters.fraud_flag import FraudFlagFilter
from app.models.fraud import ApprovalStatus, FraudFlag, NotificationOutbox, Severity


def alert_payload(flag: FraudFlag) -> dict:
    """Flag event in the shape accepted by the fraud alert dispatcher."""
    return {
        "flagId": flag.id,
        "flagType": flag.flag_type,
        "severity": flag.severity,
        "description": flag.description,
        "userId": flag.user_id,
        "orderId": flag.order_id,
        "metadata": flag.flag_metadata,
    }


class FraudFlagRepository:
    """Data access layer for fraud flags. Flags are never deleted."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_by_id(self, flag_id: str) -> FraudFlag | None:
        result = await self.session.execute(select(FraudFlag).where(FraudFlag.id == flag_id))
        return result.scalar_one_or_none()

    async def get_all(
        self,
        filters: FraudFlagFilter,
        page: int = 1,
        size: int = 50,
    ) -> tuple[list[FraudFlag], int]:
        query = filters.filter(select(FraudFlag))
        count_query = filters.filter(select(func.count()).select_from(FraudFlag))

        total = (await self.session.execute(count_query)).scalar() or 0

        if filters.order_by:
            query = filters.sort(query)
        else:
            query = query.order_by(FraudFlag.created_at.desc())
        query = query.offset((page - 1) * size).limit(size)

        result = await self.session.execute(query)
        return list(result.scalars().all()), total

    async def create(self, flag: FraudFlag) -> tuple[FraudFlag, NotificationOutbox | None]:
        """Insert a flag; high severity flags also get an outbox row in the same flush."""
        if flag.severity == Severity.high:
            flag.requires_approval = True
        self.session.add(flag)
        await self.session.flush()

        outbox = None
        if flag.severity == Severity.high:
            outbox = NotificationOutbox(flag_id=flag.id, payload=alert_payload(flag))
            self.session.add(outbox)
            await self.session.flush()
        return flag, outbox

    async def resolve(
        self,
        flag: FraudFlag,
        *,
        resolved_by: str,
        resolution_type: str,
        resolution_notes: str | None,
        approved: bool,
        when: datetime,
    ) -> FraudFlag:
        flag.resolved = True
        flag.resolved_by = resolved_by
        flag.resolved_at = when
        flag.resolution_type = resolution_type
        flag.resolution_notes = resolution_notes
        if approved:
            flag.approved_by = resolved_by
            flag.approved_at = when
            flag.approval_status = ApprovalStatus.approved.value
        await self.session.flush()
        await self.session.refresh(flag)
        return flag
