"""One-time verification code model."""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Index, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, CreatedAtMixin, UUIDMixin


class TwoFactorCode(UUIDMixin, CreatedAtMixin, Base):
    """Six-digit email code issued after a successful password check."""

    __tablename__ = "two_factor_codes"

    user_id: Mapped[str] = mapped_column(UUID(as_uuid=False), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    code: Mapped[str] = mapped_column(String(6), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    used: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    __table_args__ = (
        Index("idx_two_factor_codes_user_email", "user_id", "email"),
        Index("idx_two_factor_codes_expires", "expires_at"),
    )
