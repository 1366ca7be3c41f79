"""Seed script for the storefront database.

Seeds staff accounts (admin, security officer), a demo customer and a few demo
orders run through the fraud rules so the review queue is not empty.
Run: python -m scripts.seed_data
"""

import asyncio
import logging
from datetime import UTC, datetime

from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.security import hash_password
from app.config import get_settings
from app.dependencies import create_engine, create_session_factory
from app.models.order import OrderItem, OrderStatus, PaymentMethod
from app.models.user import AppRole, Profile, User
from app.repositories.order_repository import OrderRepository
from app.repositories.product_repository import ProductRepository
from app.repositories.role_repository import RoleRepository
from app.repositories.user_repository import UserRepository
from app.services.fraud_engine import FraudEngine

logger = logging.getLogger(__name__)

# ── Accounts ──────────────────────────────────────────────────────────────────

SEED_USERS = [
    {
        "email": "admin@zanifu.dev",
        "full_name": "Store Administrator",
        "role": AppRole.admin,
        "password": "admin-pass-123",
    },
    {
        "email": "security@zanifu.dev",
        "full_name": "Security Officer",
        "role": AppRole.security_personnel,
        "password": "security-pass-123",
    },
    {
        "email": "customer@zanifu.dev",
        "full_name": "Demo Customer",
        "role": AppRole.customer,
        "password": "customer-pass-123",
    },
]

# Product quantities per demo order; the last two push the customer over the limits.
DEMO_ORDERS = [
    [("Security Audit Template", 1)],
    [("Network Security Course", 1), ("Compliance Toolkit", 1)],
    [("Network Security Course", 3)],
    [("Incident Response Playbook", 2)],
]


async def seed_users(session: AsyncSession) -> dict[str, str]:
    """Create seed accounts if missing. Returns email -> user id."""
    users = UserRepository(session)
    roles = RoleRepository(session)
    ids: dict[str, str] = {}

    for data in SEED_USERS:
        existing = await users.get_by_email(data["email"])
        if existing:
            logger.info("User '%s' already exists, skipping", data["email"])
            ids[data["email"]] = existing.id
            continue

        user = await users.create(
            User(email=data["email"], hashed_password=hash_password(data["password"])),
            Profile(email=data["email"], full_name=data["full_name"]),
        )
        await roles.assign(user.id, data["role"].value)
        ids[data["email"]] = user.id
        logger.info("Created %s user: %s", data["role"].value, data["email"])

    await session.commit()
    return ids


async def seed_orders(session: AsyncSession, user_id: str) -> None:
    """Place the demo orders for one customer and evaluate each against the fraud rules."""
    orders = OrderRepository(session)
    engine = FraudEngine(session)
    catalog = {p.name: p for p in await ProductRepository(session).get_active()}
    if not catalog:
        logger.warning("No products found; run the migrations first")
        return

    flag_count = 0
    for lines in DEMO_ORDERS:
        items = [
            OrderItem(
                product_id=catalog[name].id,
                quantity=quantity,
                price_at_purchase=catalog[name].price,
            )
            for name, quantity in lines
            if name in catalog
        ]
        total = sum(i.price_at_purchase * i.quantity for i in items)
        order = await orders.create(
            user_id=user_id,
            total_amount=total,
            status=OrderStatus.completed.value,
            payment_method=PaymentMethod.demo.value,
            items=items,
        )
        evaluation = await engine.evaluate_order(order, now=datetime.now(UTC))
        flag_count += len(evaluation.flags)

    await session.commit()
    logger.info("Created %d orders raising %d fraud flag(s)", len(DEMO_ORDERS), flag_count)


async def main() -> None:
    """Run all seed steps."""
    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")

    settings = get_settings()
    engine = create_engine(settings)
    session_factory = create_session_factory(engine)

    async with session_factory() as session:
        logger.info("Seeding users...")
        ids = await seed_users(session)

        logger.info("Seeding demo orders...")
        await seed_orders(session, ids["customer@zanifu.dev"])

    await engine.dispose()
    logger.info("Seeding complete!")


if __name__ == "__main__":
    asyncio.run(main())
