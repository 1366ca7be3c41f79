"""Pydantic schemas for M-Pesa STK push initiation."""

from decimal import Decimal
from typing import Any

from pydantic import Field

from app.schemas.common import CamelModel


class STKPushRequest(CamelModel):
    phone_number: str = Field(min_length=1)
    amount: Decimal = Field(gt=0)
    order_id: str = Field(min_length=1)
    account_reference: str | None = None


class STKPushResponse(CamelModel):
    success: bool = True
    message: str = "STK Push sent successfully. Check your phone to enter PIN."
    checkout_request_id: str | None = None
    merchant_request_id: str | None = None


class STKPushFailure(CamelModel):
    success: bool = False
    error: str
    details: dict[str, Any] = Field(default_factory=dict)


CALLBACK_ACK: dict[str, Any] = {"ResultCode": 0, "ResultDesc": "Accepted"}
