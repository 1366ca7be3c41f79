"""Privileged account actions performed by administrators."""

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import AppRole
from app.repositories.role_repository import RoleRepository
from app.repositories.user_repository import UserRepository
from app.utils.logging import get_logger

logger = get_logger(__name__)


class AdminActionError(Exception):
    """The requested action is not allowed for this caller and target."""


class AdminActionService:
    """Role changes and account lock/unlock. Every action is idempotent."""

    def __init__(self, session: AsyncSession) -> None:
        self.users = UserRepository(session)
        self.roles = RoleRepository(session)

    async def change_role(self, caller_id: str, target_user_id: str, new_role: AppRole | None) -> None:
        if not new_role:
            raise AdminActionError("New role is required")
        if target_user_id == caller_id:
            raise AdminActionError("Cannot modify your own role")

        await self.roles.upsert(target_user_id, AppRole(new_role).value)
        logger.info("User %s changed role of %s to %s", caller_id, target_user_id, new_role)

    async def lock_account(self, caller_id: str, target_user_id: str) -> None:
        if target_user_id == caller_id:
            raise AdminActionError("Cannot lock your own account")

        updated = await self.users.set_account_locked(target_user_id, True)
        if not updated:
            logger.warning("lock_account: no profile for user %s", target_user_id)
        logger.info("User %s locked account %s", caller_id, target_user_id)

    async def unlock_account(self, caller_id: str, target_user_id: str) -> None:
        updated = await self.users.set_account_locked(target_user_id, False)
        if not updated:
            logger.warning("unlock_account: no profile for user %s", target_user_id)
        logger.info("User %s unlocked account %s", caller_id, target_user_id)

    async def perform(
        self,
        action: str,
        caller_id: str,
        target_user_id: str,
        new_role: AppRole | None = None,
    ) -> None:
        if action == "change_role":
            await self.change_role(caller_id, target_user_id, new_role)
        elif action == "lock_account":
            await self.lock_account(caller_id, target_user_id)
        elif action == "unlock_account":
            await self.unlock_account(caller_id, target_user_id)
        else:
            raise AdminActionError("Invalid action")
