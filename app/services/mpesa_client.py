"""Async client for the Safaricom Daraja (M-Pesa) STK push API."""

import base64
from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

import httpx

from app.config import Settings
from app.utils.logging import get_logger

logger = get_logger(__name__)

TOKEN_PATH = "/oauth/v1/generate?grant_type=client_credentials"
STK_PUSH_PATH = "/mpesa/stkpush/v1/processrequest"


class MpesaError(Exception):
    """Daraja could not be reached or refused our credentials."""


class MpesaConfigurationError(MpesaError):
    pass


def format_phone_number(phone: str) -> str:
    """Normalize a Kenyan MSISDN to ``254XXXXXXXXX``."""
    formatted = "".join(ch for ch in phone if not ch.isspace() and ch not in "-+")
    if formatted.startswith("0"):
        formatted = "254" + formatted[1:]
    if not formatted.startswith("254"):
        formatted = "254" + formatted
    return formatted


def generate_timestamp(now: datetime | None = None) -> str:
    return (now or datetime.now()).strftime("%Y%m%d%H%M%S")


def generate_password(shortcode: str, passkey: str, timestamp: str) -> str:
    return base64.b64encode(f"{shortcode}{passkey}{timestamp}".encode()).decode()


def whole_amount(amount: Decimal) -> int:
    return int(Decimal(amount).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class PaymentCallback:
    """The interesting part of an ``stkCallback`` body."""

    merchant_request_id: str | None
    checkout_request_id: str | None
    result_code: Any
    result_desc: str | None
    amount: Any = None
    receipt_number: str | None = None
    phone_number: Any = None

    @property
    def succeeded(self) -> bool:
        return self.result_code == 0


def parse_callback(data: Any) -> PaymentCallback | None:
    """Extract the STK callback fields, or None when the body is not a callback."""
    if not isinstance(data, dict):
        return None
    body = data.get("Body")
    stk = body.get("stkCallback") if isinstance(body, dict) else None
    if not isinstance(stk, dict):
        return None

    metadata = stk.get("CallbackMetadata")
    items = (metadata.get("Item") or []) if isinstance(metadata, dict) else []
    values = {item.get("Name"): item.get("Value") for item in items if isinstance(item, dict)}

    return PaymentCallback(
        merchant_request_id=stk.get("MerchantRequestID"),
        checkout_request_id=stk.get("CheckoutRequestID"),
        result_code=stk.get("ResultCode"),
        result_desc=stk.get("ResultDesc"),
        amount=values.get("Amount"),
        receipt_number=values.get("MpesaReceiptNumber"),
        phone_number=values.get("PhoneNumber"),
    )


class MpesaClient:
    """Lipa Na M-Pesa Online client. Does not retry."""

    def __init__(
        self,
        *,
        base_url: str,
        consumer_key: str,
        consumer_secret: str,
        shortcode: str,
        passkey: str,
        callback_url: str,
        timeout: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.consumer_key = consumer_key
        self.consumer_secret = consumer_secret
        self.shortcode = shortcode
        self.passkey = passkey
        self.callback_url = callback_url
        self._timeout = timeout
        self._client = http_client
        self._owns_client = http_client is None

    @classmethod
    def from_settings(cls, settings: Settings) -> "MpesaClient":
        return cls(
            base_url=settings.mpesa_base_url,
            consumer_key=settings.mpesa_consumer_key,
            consumer_secret=settings.mpesa_consumer_secret,
            shortcode=settings.mpesa_shortcode,
            passkey=settings.mpesa_passkey,
            callback_url=settings.mpesa_callback_url,
            timeout=settings.mpesa_timeout_seconds,
        )

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    async def get_access_token(self) -> str:
        if not self.consumer_key or not self.consumer_secret:
            raise MpesaConfigurationError("M-Pesa credentials not configured")

        credentials = base64.b64encode(
            f"{self.consumer_key}:{self.consumer_secret}".encode()
        ).decode()
        try:
            response = await self._get_client().get(
                self.base_url + TOKEN_PATH,
                headers={"Authorization": f"Basic {credentials}"},
            )
        except httpx.HTTPError as err:
            raise MpesaError(f"M-Pesa unreachable: {err}") from err

        if response.is_error:
            logger.error("Failed to get M-Pesa access token: %s", response.text)
            raise MpesaError("Failed to get M-Pesa access token")
        try:
            return response.json()["access_token"]
        except (ValueError, KeyError, TypeError) as err:
            raise MpesaError("Failed to get M-Pesa access token") from err

    async def stk_push(
        self,
        *,
        phone_number: str,
        amount: Decimal,
        order_id: str,
        account_reference: str | None = None,
    ) -> dict[str, Any]:
        """Send the payment prompt. Returns Daraja's response body as-is."""
        if not self.shortcode or not self.passkey:
            logger.error("M-Pesa shortcode or passkey not configured")
            raise MpesaConfigurationError("M-Pesa configuration incomplete")

        token = await self.get_access_token()
        timestamp = generate_timestamp()
        phone = format_phone_number(phone_number)
        payload = {
            "BusinessShortCode": self.shortcode,
            "Password": generate_password(self.shortcode, self.passkey, timestamp),
            "Timestamp": timestamp,
            "TransactionType": "CustomerPayBillOnline",
            "Amount": whole_amount(amount),
            "PartyA": phone,
            "PartyB": self.shortcode,
            "PhoneNumber": phone,
            "CallBackURL": self.callback_url,
            "AccountReference": account_reference or f"Order-{order_id[:8]}",
            "TransactionDesc": f"Payment for order {order_id[:8]}",
        }
        logger.info("Initiating STK push for order %s to %s", order_id, phone)

        try:
            response = await self._get_client().post(
                self.base_url + STK_PUSH_PATH,
                headers={"Authorization": f"Bearer {token}"},
                json=payload,
            )
            body = response.json()
        except httpx.HTTPError as err:
            raise MpesaError(f"M-Pesa unreachable: {err}") from err
        except ValueError as err:
            raise MpesaError("M-Pesa returned a non-JSON response") from err

        if not isinstance(body, dict):
            raise MpesaError("M-Pesa returned an unexpected response")

        logger.info("STK push response for order %s: %s", order_id, body)
        return body

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
