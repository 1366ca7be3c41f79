"""Admin action gateway and security log endpoints."""

from fastapi import APIRouter, HTTPException, Query, Request, status

from app.auth.dependencies import AdminUser, ReviewerUser
from app.dependencies import DBSession, LoginAttemptRepo
from app.schemas.admin import (
    AdminActionRequest,
    AdminActionResponse,
    LoginAttemptListResponse,
    LoginAttemptResponse,
)
from app.services.admin_action_service import AdminActionError, AdminActionService
from app.utils.audit import audit_log

router = APIRouter()


@router.post("/admin-actions", response_model=AdminActionResponse)
async def admin_actions(
    request: Request,
    body: AdminActionRequest,
    db: DBSession,
    admin: AdminUser,
) -> AdminActionResponse:
    """Change a user's role, or lock / unlock their account."""
    service = AdminActionService(db)
    try:
        await service.perform(body.action, admin.id, body.target_user_id, body.new_role)
    except AdminActionError as err:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(err)) from err

    audit_log(
        request,
        admin,
        body.action,
        target=body.target_user_id,
        new_role=body.new_role or "-",
    )
    return AdminActionResponse(action=body.action, target_user_id=body.target_user_id)


@router.get("/admin/login-attempts", response_model=LoginAttemptListResponse)
async def list_login_attempts(
    repo: LoginAttemptRepo,
    _: ReviewerUser,
    page: int = Query(1, ge=1),
    size: int = Query(100, ge=1, le=500),
) -> LoginAttemptListResponse:
    """Most recent login attempts first."""
    attempts, total = await repo.get_recent(page=page, size=size)
    return LoginAttemptListResponse.paginate(
        items=[LoginAttemptResponse.model_validate(a) for a in attempts],
        total=total,
        page=page,
        size=size,
    )
