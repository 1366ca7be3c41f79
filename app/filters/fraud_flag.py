"""Declarative filters for FraudFlag queries."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from fastapi_filter.contrib.sqlalchemy import Filter

from app.models.fraud import FraudFlag


class FraudFlagFilter(Filter):
    """FilterSet for the fraud review queue.

    Supported query params::

        ?severity=high
        ?flag_type=velocity
        ?resolved=false
        ?requires_approval=true
        ?user_id=<uuid>
        ?created_at__gte=2025-01-01T00:00:00
        ?order_by=-created_at
    """

    severity: Optional[str] = None
    flag_type: Optional[str] = None
    resolved: Optional[bool] = None
    requires_approval: Optional[bool] = None
    user_id: Optional[str] = None
    order_id: Optional[str] = None
    created_at__gte: Optional[datetime] = None
    created_at__lte: Optional[datetime] = None
    order_by: Optional[list[str]] = None

    class Constants(Filter.Constants):
        model = FraudFlag
