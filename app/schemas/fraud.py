"""Pydantic schemas for fraud flags and fraud alerts."""

from datetime import datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, Field

from app.schemas.common import CamelModel, PaginatedResponse


class FraudAlertRequest(CamelModel):
    """Flag event forwarded to the notification dispatcher."""

    flag_id: str = Field(min_length=1)
    flag_type: str = Field(min_length=1)
    severity: str = Field(min_length=1)
    description: str
    user_id: str | None = None
    order_id: str | None = None
    metadata: dict[str, Any] | None = None


class FraudAlertResponse(CamelModel):
    success: bool = True
    message: str | None = None
    recipients: int = 0


class FraudFlagResponse(BaseModel):
    id: str
    user_id: str | None
    order_id: str | None
    flag_type: str
    severity: str
    description: str
    metadata: dict[str, Any] = Field(
        default_factory=dict, validation_alias=AliasChoices("flag_metadata", "metadata")
    )
    resolved: bool
    resolved_at: datetime | None
    resolved_by: str | None
    resolution_notes: str | None
    resolution_type: str | None
    requires_approval: bool
    approved_by: str | None
    approved_at: datetime | None
    approval_status: str | None
    created_at: datetime

    model_config = {"from_attributes": True}


class FraudFlagResolve(BaseModel):
    resolution_type: str = Field(min_length=1, max_length=50)
    resolution_notes: str | None = Field(default=None, max_length=2000)


class FraudFlagListResponse(PaginatedResponse):
    items: list[FraudFlagResponse]
