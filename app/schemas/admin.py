"""Pydantic schemas for the admin action gateway."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from app.models.user import AppRole
from app.schemas.common import CamelModel, PaginatedResponse

AdminActionName = Literal["change_role", "unlock_account", "lock_account"]


class AdminActionRequest(CamelModel):
    action: AdminActionName
    target_user_id: str = Field(min_length=1)
    new_role: AppRole | None = None


class AdminActionResponse(CamelModel):
    success: bool = True
    action: str
    target_user_id: str


class LoginAttemptResponse(BaseModel):
    id: str
    user_id: str | None
    email: str
    ip_address: str | None
    user_agent: str | None
    success: bool
    failure_reason: str | None
    created_at: datetime

    model_config = {"from_attributes": True}


class LoginAttemptListResponse(PaginatedResponse):
    items: list[LoginAttemptResponse]
