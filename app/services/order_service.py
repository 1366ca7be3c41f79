"""Service layer for checkout orchestration."""

from dataclasses import dataclass, field
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.fraud import FraudFlag
from app.models.order import Order, OrderItem, OrderStatus, PaymentMethod
from app.repositories.order_repository import OrderRepository
from app.repositories.product_repository import ProductRepository
from app.schemas.order import OrderCreate
from app.services.fraud_engine import FraudEngine
from app.utils.logging import get_logger

logger = get_logger(__name__)


class OrderValidationError(Exception):
    """The checkout request references products that cannot be sold."""


@dataclass
class PlacedOrder:
    order: Order
    items: list[OrderItem]
    flags: list[FraudFlag] = field(default_factory=list)
    outbox_ids: list[str] = field(default_factory=list)


class OrderService:
    """Persists an order with its items, audit row and fraud flags in one transaction."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session
        self.orders = OrderRepository(session)
        self.products = ProductRepository(session)
        self.fraud_engine = FraudEngine(session)

    async def place_order(self, user_id: str, data: OrderCreate) -> PlacedOrder:
        product_ids = list(dict.fromkeys(item.product_id for item in data.items))
        products = await self.products.get_active_by_ids(product_ids)
        missing = [pid for pid in product_ids if pid not in products]
        if missing:
            raise OrderValidationError(f"Unknown or inactive product(s): {', '.join(missing)}")

        items = [
            OrderItem(
                product_id=item.product_id,
                quantity=item.quantity,
                price_at_purchase=products[item.product_id].price,
            )
            for item in data.items
        ]
        total = sum((i.price_at_purchase * i.quantity for i in items), Decimal("0"))

        status = (
            OrderStatus.pending if data.payment_method == PaymentMethod.mpesa else OrderStatus.completed
        )
        order = await self.orders.create(
            user_id=user_id,
            total_amount=total,
            status=status.value,
            payment_method=data.payment_method.value,
            items=items,
        )

        evaluation = await self.fraud_engine.evaluate_order(order)

        # Order, audit row, flags and outbox entries become visible together.
        await self._session.commit()
        logger.info("Order %s placed by user %s (total=%s)", order.id, user_id, total)

        return PlacedOrder(
            order=order,
            items=items,
            flags=evaluation.flags,
            outbox_ids=[entry.id for entry in evaluation.outbox],
        )
