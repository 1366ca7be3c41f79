"""API v1 router: aggregates all sub-routers."""

from fastapi import APIRouter

from app.api.v1 import admin, auth, fraud, orders, payments, products, two_factor

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["Auth"])
api_router.include_router(two_factor.router, tags=["Two-Factor"])
api_router.include_router(admin.router, tags=["Admin"])
api_router.include_router(products.router, prefix="/products", tags=["Products"])
api_router.include_router(orders.router, prefix="/orders", tags=["Orders"])
api_router.include_router(fraud.router, tags=["Fraud"])
api_router.include_router(payments.router, tags=["Payments"])
