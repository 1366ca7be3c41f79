"""Audit logging for privileged actions."""

from fastapi import Request

from app.auth.dependencies import AuthenticatedUser
from app.utils.logging import get_logger

logger = get_logger("audit")


def audit_log(
    request: Request,
    current_user: AuthenticatedUser,
    action: str,
    **details: object,
) -> None:
    """Write one audit line for a privileged action. Never raises."""
    try:
        client_ip = request.client.host if request.client else "unknown"
        request_id = getattr(request.state, "request_id", "n/a")
        extra = " ".join(f"{key}={value}" for key, value in details.items())
        logger.info(
            "AUDIT action=%s user=%s role=%s ip=%s request_id=%s path=%s %s",
            action,
            current_user.id,
            current_user.role,
            client_ip,
            request_id,
            request.url.path,
            extra,
        )
    except Exception:
        logger.warning("Failed to write audit log for action=%s", action, exc_info=True)
