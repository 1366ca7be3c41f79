"""Checkout and order ledger endpoints."""

from fastapi import APIRouter, BackgroundTasks, HTTPException, Query, Request, status
from fastapi_filter import FilterDepends

from app.auth.dependencies import AdminUser, AuthenticatedUser, CurrentUser
from app.dependencies import DBSession, OrderRepo, Outbox
from app.filters.order import OrderFilter
from app.models.user import AppRole
from app.schemas.order import (
    OrderCreate,
    OrderCreateResponse,
    OrderDetailResponse,
    OrderItemResponse,
    OrderListResponse,
    OrderResponse,
    OrderStatusUpdate,
    TriggeredFlag,
)
from app.services.notification_outbox import deliver_in_background
from app.services.order_service import OrderService, OrderValidationError
from app.utils.audit import audit_log

router = APIRouter()

ORDER_REVIEWER_ROLES = (AppRole.admin.value, AppRole.security_personnel.value)


def _sees_all_orders(user: AuthenticatedUser) -> bool:
    return user.role in ORDER_REVIEWER_ROLES


@router.post("", response_model=OrderCreateResponse, status_code=status.HTTP_201_CREATED)
async def create_order(
    data: OrderCreate,
    db: DBSession,
    current_user: CurrentUser,
    outbox: Outbox,
    background_tasks: BackgroundTasks,
) -> OrderCreateResponse:
    """Place an order, then run the fraud rules in the same transaction.

    High severity flags are emailed after the response is sent; a failed
    delivery stays in the outbox and never affects the order.
    """
    try:
        placed = await OrderService(db).place_order(current_user.id, data)
    except OrderValidationError as err:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(err)) from err

    if placed.outbox_ids:
        background_tasks.add_task(deliver_in_background, outbox, placed.outbox_ids)

    return OrderCreateResponse(
        **OrderResponse.model_validate(placed.order).model_dump(),
        items=[OrderItemResponse.model_validate(i) for i in placed.items],
        fraud_flags=[TriggeredFlag.model_validate(f) for f in placed.flags],
    )


@router.get("", response_model=OrderListResponse)
async def list_orders(
    repo: OrderRepo,
    current_user: CurrentUser,
    filters: OrderFilter = FilterDepends(OrderFilter),
    page: int = Query(1, ge=1),
    size: int = Query(50, ge=1, le=100),
) -> OrderListResponse:
    """The caller's orders; admins and security personnel see every order."""
    user_id = None if _sees_all_orders(current_user) else current_user.id
    orders, total = await repo.get_all(filters, user_id=user_id, page=page, size=size)
    return OrderListResponse.paginate(
        items=[OrderResponse.model_validate(o) for o in orders],
        total=total,
        page=page,
        size=size,
    )


@router.get("/{order_id}", response_model=OrderDetailResponse)
async def get_order(
    order_id: str,
    repo: OrderRepo,
    current_user: CurrentUser,
) -> OrderDetailResponse:
    order = await repo.get_with_items(order_id)
    if not order or (order.user_id != current_user.id and not _sees_all_orders(current_user)):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Order not found")
    return OrderDetailResponse.model_validate(order)


@router.put("/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    request: Request,
    order_id: str,
    body: OrderStatusUpdate,
    repo: OrderRepo,
    admin: AdminUser,
) -> OrderResponse:
    """Change an order's status; the before/after snapshot goes to the audit table."""
    order = await repo.get_by_id(order_id)
    if not order:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Order not found")

    previous = order.status
    order = await repo.update_status(order, body.status.value, performed_by=admin.id)
    audit_log(request, admin, "update_order_status", order=order.id, old=previous, new=order.status)
    return OrderResponse.model_validate(order)
