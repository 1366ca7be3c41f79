"""Async client for the transactional email relay (Resend HTTP API)."""

from dataclasses import dataclass
from typing import Any

import httpx

from app.config import Settings
from app.utils.logging import get_logger

logger = get_logger(__name__)


class EmailRelayError(Exception):
    """The relay rejected the message or could not be reached."""


@dataclass(frozen=True)
class EmailMessage:
    sender: str
    to: list[str]
    subject: str
    html: str


class EmailRelay:
    """Thin wrapper around ``POST /emails``. Does not retry."""

    def __init__(
        self,
        api_key: str,
        api_url: str,
        *,
        timeout: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._api_key = api_key
        self._api_url = api_url
        self._timeout = timeout
        self._client = http_client
        self._owns_client = http_client is None

    @classmethod
    def from_settings(cls, settings: Settings) -> "EmailRelay":
        return cls(
            settings.resend_api_key,
            settings.resend_api_url,
            timeout=settings.email_timeout_seconds,
        )

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    async def send(self, message: EmailMessage) -> dict[str, Any]:
        """Submit one message. Returns the relay's JSON body (contains the message id)."""
        if not self._api_key:
            raise EmailRelayError("Email relay API key not configured")

        try:
            response = await self._get_client().post(
                self._api_url,
                headers={"Authorization": f"Bearer {self._api_key}"},
                json={
                    "from": message.sender,
                    "to": message.to,
                    "subject": message.subject,
                    "html": message.html,
                },
            )
        except httpx.HTTPError as err:
            raise EmailRelayError(f"Email relay unreachable: {err}") from err

        if response.status_code >= 400:
            logger.error(
                "Email relay rejected message (status=%s): %s",
                response.status_code,
                response.text,
            )
            raise EmailRelayError(f"Email relay returned {response.status_code}")

        try:
            body = response.json()
        except ValueError:
            body = None
        if not isinstance(body, dict):
            # accepted; the relay just sent no JSON receipt
            body = {}
        logger.info("Email sent to %d recipient(s), id=%s", len(message.to), body.get("id"))
        return body

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
