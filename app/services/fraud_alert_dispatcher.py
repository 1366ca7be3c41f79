"""Sends high severity fraud alerts to admins and security personnel."""

from dataclasses import dataclass
from datetime import UTC, datetime

from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings
from app.models.fraud import Severity
from app.repositories.role_repository import RoleRepository
from app.schemas.fraud import FraudAlertRequest
from app.services.email_relay import EmailMessage, EmailRelay
from app.services.email_templates import flag_label, fraud_alert_email
from app.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class DispatchResult:
    sent: bool
    message: str
    recipients: int = 0


class FraudAlertDispatcher:
    """Best-effort notifier: missing recipients is not an error, relay failure is.

    Relay errors propagate to the caller unchanged; retry policy belongs to
    whoever invoked the dispatcher.
    """

    def __init__(self, session: AsyncSession, relay: EmailRelay, settings: Settings) -> None:
        self.roles = RoleRepository(session)
        self.relay = relay
        self.sender = settings.fraud_alert_email_from

    async def dispatch(self, alert: FraudAlertRequest) -> DispatchResult:
        logger.info(
            "Fraud alert received: flag=%s type=%s severity=%s",
            alert.flag_id,
            alert.flag_type,
            alert.severity,
        )
        if alert.severity != Severity.high:
            logger.info("Skipping email for flag %s: severity %s", alert.flag_id, alert.severity)
            return DispatchResult(
                sent=False, message="Email not sent - only high severity flags trigger emails"
            )

        recipients = await self.roles.get_alert_recipient_emails()
        if not recipients:
            logger.info("No admin emails found for flag %s", alert.flag_id)
            return DispatchResult(sent=False, message="No admin users to notify")

        label = flag_label(alert.flag_type)
        await self.relay.send(
            EmailMessage(
                sender=self.sender,
                to=recipients,
                subject=f"HIGH SEVERITY: {label} Detected",
                html=fraud_alert_email(
                    flag_id=alert.flag_id,
                    flag_type=alert.flag_type,
                    description=alert.description,
                    detected_at=datetime.now(UTC),
                    user_id=alert.user_id,
                    order_id=alert.order_id,
                    metadata=alert.metadata,
                ),
            )
        )
        logger.info("Fraud alert for flag %s sent to %d recipient(s)", alert.flag_id, len(recipients))
        return DispatchResult(sent=True, message="Fraud alert sent", recipients=len(recipients))
