"""Repository for the order ledger."""

from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.filters.order import OrderFilter
from app.models.fraud import AuditAction
from app.models.order import Order, OrderItem
from app.repositories.audit_repository import AuditRepository


def order_snapshot(order: Order) -> dict[str, Any]:
    """JSON-safe copy of an order row for the audit trail."""
    return {
        "id": order.id,
        "user_id": order.user_id,
        "total_amount": str(order.total_amount),
        "status": order.status,
        "payment_method": order.payment_method,
        "created_at": order.created_at.isoformat() if order.created_at else None,
        "updated_at": order.updated_at.isoformat() if order.updated_at else None,
    }


class OrderRepository:
    """Data access layer for orders and order items.

    Every insert and update writes a ``transaction_audit`` row in the same
    session, so audit records commit (or roll back) with the order itself.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.audit = AuditRepository(session)

    async def get_by_id(self, order_id: str) -> Order | None:
        result = await self.session.execute(select(Order).where(Order.id == order_id))
        return result.scalar_one_or_none()

    async def get_with_items(self, order_id: str) -> Order | None:
        result = await self.session.execute(
            select(Order).options(selectinload(Order.items)).where(Order.id == order_id)
        )
        return result.scalar_one_or_none()

    async def get_all(
        self,
        filters: OrderFilter,
        user_id: str | None = None,
        page: int = 1,
        size: int = 50,
    ) -> tuple[list[Order], int]:
        query = filters.filter(select(Order))
        count_query = filters.filter(select(func.count()).select_from(Order))
        if user_id:
            query = query.where(Order.user_id == user_id)
            count_query = count_query.where(Order.user_id == user_id)

        total = (await self.session.execute(count_query)).scalar() or 0

        query = filters.sort(query) if filters.order_by else query.order_by(Order.created_at.desc())
        query = query.offset((page - 1) * size).limit(size)

        result = await self.session.execute(query)
        return list(result.scalars().all()), total

    async def count_since(self, user_id: str, since: datetime, exclude_order_id: str) -> int:
        """Number of the user's orders created after ``since``, excluding one order."""
        result = await self.session.execute(
            select(func.count())
            .select_from(Order)
            .where(Order.user_id == user_id)
            .where(Order.created_at > since)
            .where(Order.id != exclude_order_id)
        )
        return int(result.scalar() or 0)

    async def sum_since(self, user_id: str, since: datetime, exclude_order_id: str) -> Decimal:
        """Total amount of the user's orders created after ``since``, excluding one order."""
        result = await self.session.execute(
            select(func.coalesce(func.sum(Order.total_amount), 0))
            .where(Order.user_id == user_id)
            .where(Order.created_at > since)
            .where(Order.id != exclude_order_id)
        )
        return Decimal(result.scalar() or 0)

    async def create(
        self,
        *,
        user_id: str,
        total_amount: Decimal,
        status: str,
        payment_method: str,
        items: list[OrderItem],
    ) -> Order:
        order = Order(
            user_id=user_id,
            total_amount=total_amount,
            status=status,
            payment_method=payment_method,
        )
        self.session.add(order)
        await self.session.flush()

        for item in items:
            item.order_id = order.id
            self.session.add(item)
        await self.session.flush()

        await self.audit.record(
            action_type=AuditAction.create,
            entity_type="order",
            entity_id=order.id,
            user_id=order.user_id,
            order_id=order.id,
            new_value=order_snapshot(order),
            performed_by=user_id,
        )
        return order

    async def update_status(self, order: Order, status: str, performed_by: str | None) -> Order:
        old_value = order_snapshot(order)
        order.status = status
        await self.session.flush()
        await self.session.refresh(order)

        await self.audit.record(
            action_type=AuditAction.update,
            entity_type="order",
            entity_id=order.id,
            user_id=order.user_id,
            order_id=order.id,
            old_value=old_value,
            new_value=order_snapshot(order),
            performed_by=performed_by,
        )
        return order
