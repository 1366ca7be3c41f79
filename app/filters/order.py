"""Declarative filters for Order queries."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from fastapi_filter.contrib.sqlalchemy import Filter

from app.models.order import Order


class OrderFilter(Filter):
    """FilterSet for order list queries.

    Supported query params::

        ?status=pending
        ?payment_method=mpesa
        ?created_at__gte=2025-01-01T00:00:00
        ?order_by=-created_at
    """

    status: Optional[str] = None
    payment_method: Optional[str] = None
    created_at__gte: Optional[datetime] = None
    created_at__lte: Optional[datetime] = None
    order_by: Optional[list[str]] = None

    class Constants(Filter.Constants):
        model = Order
