"""Delivers fraud alerts persisted in the notification outbox.

Outbox rows are written in the order transaction; delivery always runs
afterwards in its own session, so a slow or unreachable email relay never
affects order creation.
"""

from datetime import UTC, datetime

from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.config import Settings
from app.repositories.outbox_repository import OutboxRepository
from app.schemas.fraud import FraudAlertRequest
from app.services.email_relay import EmailRelay, EmailRelayError
from app.services.fraud_alert_dispatcher import FraudAlertDispatcher
from app.utils.logging import get_logger

logger = get_logger(__name__)

MAX_DELIVERY_ATTEMPTS = 5


class OutboxRelay:
    """Pushes pending outbox entries through the fraud alert dispatcher."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        relay: EmailRelay,
        settings: Settings,
    ) -> None:
        self._session_factory = session_factory
        self._relay = relay
        self._settings = settings

    async def deliver(self, ids: list[str] | None = None, limit: int = 100) -> int:
        """Deliver pending entries (optionally only ``ids``). Returns how many succeeded."""
        delivered = 0
        async with self._session_factory() as session:
            repo = OutboxRepository(session)
            dispatcher = FraudAlertDispatcher(session, self._relay, self._settings)
            entries = await repo.get_pending(
                ids=ids, max_attempts=MAX_DELIVERY_ATTEMPTS, limit=limit
            )
            for entry in entries:
                try:
                    await dispatcher.dispatch(FraudAlertRequest.model_validate(entry.payload))
                except EmailRelayError as err:
                    logger.warning("Outbox entry %s not delivered: %s", entry.id, err)
                    await repo.mark_failed(entry, str(err))
                except ValidationError as err:
                    logger.error("Outbox entry %s has an invalid payload: %s", entry.id, err)
                    await repo.mark_failed(entry, f"Invalid payload: {err.error_count()} error(s)")
                else:
                    await repo.mark_delivered(entry, datetime.now(UTC))
                    delivered += 1
            await session.commit()
        return delivered


async def deliver_in_background(relay: OutboxRelay, ids: list[str]) -> None:
    """Background-task entry point; never raises."""
    try:
        await relay.deliver(ids)
    except Exception:
        logger.warning("Fraud alert delivery failed for outbox %s", ids, exc_info=True)
