"""Fraud alert hook and fraud flag review endpoints."""

from datetime import UTC, datetime
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi_filter import FilterDepends

from app.auth.dependencies import ReviewerUser, verify_internal_token
from app.dependencies import FraudFlagRepo, get_fraud_alert_dispatcher
from app.filters.fraud_flag import FraudFlagFilter
from app.schemas.fraud import (
    FraudAlertRequest,
    FraudAlertResponse,
    FraudFlagListResponse,
    FraudFlagResolve,
    FraudFlagResponse,
)
from app.services.fraud_alert_dispatcher import FraudAlertDispatcher
from app.utils.audit import audit_log

router = APIRouter()

Dispatcher = Annotated[FraudAlertDispatcher, Depends(get_fraud_alert_dispatcher)]


@router.post(
    "/send-fraud-alert",
    response_model=FraudAlertResponse,
    dependencies=[Depends(verify_internal_token)],
)
async def send_fraud_alert(body: FraudAlertRequest, dispatcher: Dispatcher) -> FraudAlertResponse:
    """Email a fraud flag to admins and security personnel (high severity only)."""
    result = await dispatcher.dispatch(body)
    return FraudAlertResponse(message=result.message, recipients=result.recipients)


@router.get("/fraud-flags", response_model=FraudFlagListResponse)
async def list_fraud_flags(
    repo: FraudFlagRepo,
    _: ReviewerUser,
    filters: FraudFlagFilter = FilterDepends(FraudFlagFilter),
    page: int = Query(1, ge=1),
    size: int = Query(50, ge=1, le=100),
) -> FraudFlagListResponse:
    """Review queue, newest first unless ``order_by`` is given."""
    flags, total = await repo.get_all(filters, page=page, size=size)
    return FraudFlagListResponse.paginate(
        items=[FraudFlagResponse.model_validate(f) for f in flags],
        total=total,
        page=page,
        size=size,
    )


@router.post("/fraud-flags/{flag_id}/resolve", response_model=FraudFlagResponse)
async def resolve_fraud_flag(
    request: Request,
    flag_id: str,
    body: FraudFlagResolve,
    repo: FraudFlagRepo,
    reviewer: ReviewerUser,
) -> FraudFlagResponse:
    """Resolve a flag. Flags requiring approval can only be resolved by an admin."""
    flag = await repo.get_by_id(flag_id)
    if not flag:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Fraud flag not found")
    if flag.resolved:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Fraud flag already resolved")
    if flag.requires_approval and not reviewer.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only admins can resolve flags that require approval",
        )

    flag = await repo.resolve(
        flag,
        resolved_by=reviewer.id,
        resolution_type=body.resolution_type,
        resolution_notes=body.resolution_notes,
        approved=flag.requires_approval,
        when=datetime.now(UTC),
    )
    audit_log(request, reviewer, "resolve_fraud_flag", flag=flag.id, resolution=body.resolution_type)
    return FraudFlagResponse.model_validate(flag)
