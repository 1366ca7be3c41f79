"""Repository for role assignments."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import AppRole, Profile, UserRole

ALERT_RECIPIENT_ROLES = (AppRole.admin.value, AppRole.security_personnel.value)


class RoleRepository:
    """Data access layer for user roles."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_role(self, user_id: str) -> str | None:
        """Return the user's primary role, or None when no role row exists."""
        result = await self.session.execute(
            select(UserRole.role)
            .where(UserRole.user_id == user_id)
            .order_by(UserRole.created_at.asc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def assign(self, user_id: str, role: str) -> UserRole:
        user_role = UserRole(user_id=user_id, role=role)
        self.session.add(user_role)
        await self.session.flush()
        return user_role

    async def upsert(self, user_id: str, role: str) -> UserRole:
        """Update the user's existing role row, or insert one if none exists."""
        result = await self.session.execute(
            select(UserRole)
            .where(UserRole.user_id == user_id)
            .order_by(UserRole.created_at.asc())
            .limit(1)
        )
        existing = result.scalar_one_or_none()
        if existing is None:
            return await self.assign(user_id, role)

        existing.role = role
        await self.session.flush()
        return existing

    async def get_alert_recipient_emails(self) -> list[str]:
        """Emails of every admin and security officer that has one on file."""
        result = await self.session.execute(
            select(Profile.email)
            .join(UserRole, UserRole.user_id == Profile.user_id)
            .where(UserRole.role.in_(ALERT_RECIPIENT_ROLES))
            .where(Profile.email.is_not(None))
            .distinct()
        )
        return [email for email in result.scalars().all() if email]
