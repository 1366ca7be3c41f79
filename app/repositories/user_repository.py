"""Repository for user identity and profile data access."""

from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import Profile, User


class UserRepository:
    """Data access layer for users and their profiles."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_by_email(self, email: str) -> User | None:
        result = await self.session.execute(select(User).where(User.email == email.lower()))
        return result.scalar_one_or_none()

    async def get_by_id(self, user_id: str) -> User | None:
        result = await self.session.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def create(self, user: User, profile: Profile) -> User:
        self.session.add(user)
        await self.session.flush()
        profile.user_id = user.id
        self.session.add(profile)
        await self.session.flush()
        return user

    async def get_profile(self, user_id: str) -> Profile | None:
        result = await self.session.execute(select(Profile).where(Profile.user_id == user_id))
        return result.scalar_one_or_none()

    async def set_account_locked(self, user_id: str, locked: bool) -> int:
        """Lock or unlock a profile. Unlocking also clears the failure counter."""
        values: dict[str, object] = {"account_locked": locked}
        if not locked:
            values["failed_login_attempts"] = 0
        result = await self.session.execute(
            update(Profile).where(Profile.user_id == user_id).values(**values)
        )
        return result.rowcount

    async def record_failed_login(self, profile: Profile, max_attempts: int) -> Profile:
        """Increment the failure counter and lock the profile at the threshold."""
        profile.failed_login_attempts += 1
        if profile.failed_login_attempts >= max_attempts:
            profile.account_locked = True
        await self.session.flush()
        return profile

    async def reset_failed_logins(self, profile: Profile) -> None:
        if profile.failed_login_attempts:
            profile.failed_login_attempts = 0
            await self.session.flush()

    async def mark_two_factor_login(self, user_id: str, when: datetime) -> None:
        await self.session.execute(
            update(Profile)
            .where(Profile.user_id == user_id)
            .values(two_factor_enabled=True, last_login_at=when)
        )
