"""Repository for the product catalog."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.order import Product


class ProductRepository:
    """Data access layer for products."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_active(self) -> list[Product]:
        result = await self.session.execute(
            select(Product).where(Product.is_active.is_(True)).order_by(Product.name.asc())
        )
        return list(result.scalars().all())

    async def get_active_by_ids(self, product_ids: list[str]) -> dict[str, Product]:
        if not product_ids:
            return {}
        result = await self.session.execute(
            select(Product).where(Product.id.in_(product_ids)).where(Product.is_active.is_(True))
        )
        return {p.id: p for p in result.scalars().all()}
