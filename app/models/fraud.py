"""Fraud flag, order audit and notification outbox models."""

import enum
from datetime import datetime
from typing import Any

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, Text, event
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, CreatedAtMixin, UUIDMixin


class FlagType(enum.StrEnum):
    velocity = "velocity"
    high_value = "high_value"
    daily_limit = "daily_limit"


class Severity(enum.StrEnum):
    low = "low"
    medium = "medium"
    high = "high"


class ApprovalStatus(enum.StrEnum):
    approved = "approved"


class AuditAction(enum.StrEnum):
    create = "create"
    update = "update"


class FraudFlag(UUIDMixin, CreatedAtMixin, Base):
    """Advisory record that a fraud rule matched an order."""

    __tablename__ = "fraud_flags"

    user_id: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    order_id: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False), ForeignKey("orders.id", ondelete="SET NULL"), nullable=True
    )
    flag_type: Mapped[str] = mapped_column(String(30), nullable=False)
    severity: Mapped[str] = mapped_column(String(10), nullable=False, default=Severity.medium.value)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    # "metadata" is reserved on declarative classes
    flag_metadata: Mapped[dict[str, Any]] = mapped_column(
        "metadata", JSONB, nullable=False, default=dict
    )

    resolved: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    resolved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    resolved_by: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    resolution_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    resolution_type: Mapped[str | None] = mapped_column(String(50), nullable=True)

    requires_approval: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    approved_by: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    approval_status: Mapped[str | None] = mapped_column(String(20), nullable=True)

    __table_args__ = (
        Index("idx_fraud_flags_user_id", "user_id"),
        Index("idx_fraud_flags_order_id", "order_id"),
        Index("idx_fraud_flags_resolved", "resolved"),
        Index("idx_fraud_flags_severity", "severity"),
    )


@event.listens_for(FraudFlag, "before_insert")
def set_approval_requirement(mapper, connection, target: FraudFlag) -> None:
    """High severity flags always require approval."""
    if target.severity == Severity.high:
        target.requires_approval = True


class TransactionAudit(UUIDMixin, CreatedAtMixin, Base):
    """Append-only before/after snapshot of an order mutation."""

    __tablename__ = "transaction_audit"

    user_id: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    order_id: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False), ForeignKey("orders.id", ondelete="SET NULL"), nullable=True
    )
    action_type: Mapped[str] = mapped_column(String(20), nullable=False)
    entity_type: Mapped[str] = mapped_column(String(50), nullable=False)
    entity_id: Mapped[str | None] = mapped_column(UUID(as_uuid=False), nullable=True)
    old_value: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)
    new_value: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)
    performed_by: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    __table_args__ = (
        Index("idx_transaction_audit_user_id", "user_id"),
        Index("idx_transaction_audit_order_id", "order_id"),
        Index("idx_transaction_audit_created_at", "created_at"),
    )


class NotificationOutbox(UUIDMixin, CreatedAtMixin, Base):
    """Pending fraud alert, written in the same transaction as its flag."""

    __tablename__ = "notification_outbox"

    flag_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), ForeignKey("fraud_flags.id", ondelete="CASCADE"), nullable=False
    )
    payload: Mapped[dict[str, Any]] = mapped_column(JSONB, nullable=False)
    attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_error: Mapped[str | None] = mapped_column(Text, nullable=True)
    delivered_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (Index("idx_notification_outbox_pending", "delivered_at"),)
