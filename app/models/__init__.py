"""Database models package."""

from app.models.base import Base
from app.models.fraud import (
    ApprovalStatus,
    AuditAction,
    FlagType,
    FraudFlag,
    NotificationOutbox,
    Severity,
    TransactionAudit,
)
from app.models.order import Order, OrderItem, OrderStatus, PaymentMethod, Product
from app.models.two_factor import TwoFactorCode
from app.models.user import AppRole, LoginAttempt, Profile, User, UserRole

__all__ = [
    "Base",
    "User",
    "Profile",
    "UserRole",
    "LoginAttempt",
    "Product",
    "Order",
    "OrderItem",
    "FraudFlag",
    "TransactionAudit",
    "NotificationOutbox",
    "TwoFactorCode",
    "AppRole",
    "OrderStatus",
    "PaymentMethod",
    "FlagType",
    "Severity",
    "ApprovalStatus",
    "AuditAction",
]
