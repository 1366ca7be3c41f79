"""Product catalog endpoints."""

from fastapi import APIRouter

from app.dependencies import ProductRepo
from app.schemas.order import ProductResponse

router = APIRouter()


@router.get("", response_model=list[ProductResponse])
async def list_products(repo: ProductRepo) -> list[ProductResponse]:
    """Active products, alphabetically."""
    products = await repo.get_active()
    return [ProductResponse.model_validate(p) for p in products]
