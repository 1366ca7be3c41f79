"""Pydantic schemas for products and orders."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from app.models.order import OrderStatus, PaymentMethod
from app.schemas.common import PaginatedResponse


class ProductResponse(BaseModel):
    id: str
    name: str
    description: str | None
    price: Decimal
    image_url: str | None
    category: str | None

    model_config = {"from_attributes": True}


class OrderItemCreate(BaseModel):
    product_id: str
    quantity: int = Field(default=1, ge=1, le=100)


class OrderCreate(BaseModel):
    """Checkout request. Prices are taken from the catalog, never from the client."""

    items: list[OrderItemCreate] = Field(min_length=1)
    payment_method: PaymentMethod = PaymentMethod.demo


class OrderStatusUpdate(BaseModel):
    status: OrderStatus


class OrderItemResponse(BaseModel):
    id: str
    product_id: str
    quantity: int
    price_at_purchase: Decimal

    model_config = {"from_attributes": True}


class OrderResponse(BaseModel):
    id: str
    user_id: str
    total_amount: Decimal
    status: str
    payment_method: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class TriggeredFlag(BaseModel):
    """Fraud flag raised while placing the order."""

    id: str
    flag_type: str
    severity: str
    requires_approval: bool

    model_config = {"from_attributes": True}


class OrderDetailResponse(OrderResponse):
    items: list[OrderItemResponse] = Field(default_factory=list)


class OrderCreateResponse(OrderDetailResponse):
    """Checkout result with the flags raised by the fraud rules."""

    fraud_flags: list[TriggeredFlag] = Field(default_factory=list)


class OrderListResponse(PaginatedResponse):
    items: list[OrderResponse]
