"""Evaluates a freshly inserted order against the fraud rules."""

from dataclasses import dataclass, field
from datetime import UTC, datetime

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.fraud import FraudFlag, NotificationOutbox
from app.models.order import Order
from app.repositories.fraud_flag_repository import FraudFlagRepository
from app.repositories.order_repository import OrderRepository
from app.services import fraud_rules
from app.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class FraudEvaluation:
    flags: list[FraudFlag] = field(default_factory=list)
    outbox: list[NotificationOutbox] = field(default_factory=list)


class FraudEngine:
    """Reads the user's order history and persists one flag per matched rule.

    Runs in the caller's session after the order has been flushed, so the
    flags commit atomically with the order. Two orders committed at the same
    moment can each miss the other in their counts; flags are advisory and
    this is not locked against.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.orders = OrderRepository(session)
        self.flags = FraudFlagRepository(session)

    async def load_history(self, order: Order, now: datetime) -> fraud_rules.OrderHistory:
        orders_last_hour = await self.orders.count_since(
            order.user_id, now - fraud_rules.VELOCITY_WINDOW, exclude_order_id=order.id
        )
        total_last_24h = await self.orders.sum_since(
            order.user_id, now - fraud_rules.DAILY_WINDOW, exclude_order_id=order.id
        )
        return fraud_rules.OrderHistory(
            orders_last_hour=orders_last_hour, total_last_24h=total_last_24h
        )

    async def evaluate_order(self, order: Order, now: datetime | None = None) -> FraudEvaluation:
        now = now or datetime.now(UTC)
        history = await self.load_history(order, now)
        drafts = fraud_rules.evaluate(order.total_amount, history)

        evaluation = FraudEvaluation()
        for draft in drafts:
            flag, outbox = await self.flags.create(
                FraudFlag(
                    user_id=order.user_id,
                    order_id=order.id,
                    flag_type=draft.flag_type.value,
                    severity=draft.severity.value,
                    description=draft.description,
                    flag_metadata=draft.metadata,
                    requires_approval=draft.requires_approval,
                )
            )
            evaluation.flags.append(flag)
            if outbox is not None:
                evaluation.outbox.append(outbox)

        if drafts:
            logger.info(
                "Order %s raised %d fraud flag(s): %s",
                order.id,
                len(drafts),
                ", ".join(d.flag_type for d in drafts),
            )
        return evaluation
