"""MTN Mobile Money (MoMo) Collection API client.

Flow:
1. ``POST /collection/token/`` with Basic auth -> bearer access token
2. ``POST /collection/v1_0/requesttopay`` with a fresh ``X-Reference-Id``
3. ``GET /collection/v1_0/requesttopay/{reference_id}`` until SUCCESSFUL/FAILED
"""

import base64
import logging
import re
import time
import uuid
from typing import Any, Optional

import httpx

from propertyhub.core.config import Settings, get_settings

logger = logging.getLogger(__name__)

ZAMBIAN_MSISDN = re.compile(r"^(\+260|260|0)?[79]\d{8}$")

STATUS_SUCCESSFUL = "SUCCESSFUL"
STATUS_FAILED = "FAILED"
STATUS_PENDING = "PENDING"

# Refresh a little before the provider's expiry
TOKEN_SAFETY_SECONDS = 60


class MomoError(Exception):
    """Raised when the MoMo API rejects a request or is unreachable."""

    def __init__(self, message: str, status_code: Optional[int] = None, payload: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload


def validate_phone_number(phone: str) -> bool:
    return bool(phone) and bool(ZAMBIAN_MSISDN.match(phone.strip()))


def format_phone_number(phone: str) -> str:
    """Normalize to ``260XXXXXXXXX`` for the MSISDN party id."""
    cleaned = re.sub(r"\D", "", phone)
    if cleaned.startswith("260"):
        cleaned = cleaned[3:]
    elif cleaned.startswith("0"):
        cleaned = cleaned[1:]
    return f"260{cleaned}"


class MomoClient:
    """Async client for the MoMo Collection product."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or get_settings()
        self.base_url = self.settings.momo_base_url.rstrip("/")
        self.transport = transport
        self._token: Optional[str] = None
        self._token_expires_at: float = 0.0

    @property
    def enabled(self) -> bool:
        return self.settings.momo_enabled

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.settings.momo_timeout_seconds,
            transport=self.transport,
        )

    def _base_headers(self) -> dict[str, str]:
        return {
            "Ocp-Apim-Subscription-Key": self.settings.momo_subscription_key or "",
            "X-Target-Environment": self.settings.momo_target_environment,
        }

    async def get_access_token(self) -> str:
        if self._token and time.monotonic() < self._token_expires_at:
            return self._token

        credentials = f"{self.settings.momo_api_user}:{self.settings.momo_api_key}"
        basic = base64.b64encode(credentials.encode("utf-8")).decode("ascii")
        headers = {**self._base_headers(), "Authorization": f"Basic {basic}"}

        async with self._client() as client:
            try:
                response = await client.post("/collection/token/", headers=headers)
            except httpx.HTTPError as e:
                logger.error(f"[MOMO] Token request failed: {e}")
                raise MomoError("Mobile money service unreachable") from e

        if response.status_code != 200:
            logger.error(f"[MOMO] Token rejected: {response.status_code} {response.text}")
            raise MomoError("Failed to authenticate with mobile money service", response.status_code)

        data = response.json()
        self._token = data["access_token"]
        expires_in = int(data.get("expires_in", 3600))
        self._token_expires_at = time.monotonic() + max(0, expires_in - TOKEN_SAFETY_SECONDS)
        return self._token

    async def _authorized_headers(self) -> dict[str, str]:
        token = await self.get_access_token()
        return {**self._base_headers(), "Authorization": f"Bearer {token}"}

    async def request_to_pay(
        self,
        amount: str,
        phone_number: str,
        external_id: str,
        payer_message: str = "Rent Payment",
        payee_note: str = "Payment for property rental",
    ) -> str:
        """Start a collection. Returns the ``X-Reference-Id`` used to poll status."""
        reference_id = str(uuid.uuid4())
        headers = await self._authorized_headers()
        headers["X-Reference-Id"] = reference_id
        if self.settings.momo_callback_url:
            headers["X-Callback-Url"] = self.settings.momo_callback_url

        body = {
            "amount": amount,
            "currency": self.settings.momo_currency,
            "externalId": external_id,
            "payer": {"partyIdType": "MSISDN", "partyId": format_phone_number(phone_number)},
            "payerMessage": payer_message,
            "payeeNote": payee_note,
        }

        async with self._client() as client:
            try:
                response = await client.post("/collection/v1_0/requesttopay", json=body, headers=headers)
            except httpx.HTTPError as e:
                logger.error(f"[MOMO] requesttopay failed: {e}")
                raise MomoError("Mobile money service unreachable") from e

        if response.status_code != 202:
            logger.error(f"[MOMO] requesttopay rejected: {response.status_code} {response.text}")
            raise MomoError(
                "Mobile money payment request was rejected",
                response.status_code,
                _safe_json(response),
            )

        logger.info(f"[MOMO] Request to pay accepted: {reference_id}")
        return reference_id

    async def get_payment_status(self, reference_id: str) -> dict[str, Any]:
        headers = await self._authorized_headers()
        async with self._client() as client:
            try:
                response = await client.get(
                    f"/collection/v1_0/requesttopay/{reference_id}", headers=headers
                )
            except httpx.HTTPError as e:
                logger.error(f"[MOMO] Status check failed: {e}")
                raise MomoError("Mobile money service unreachable") from e

        if response.status_code == 404:
            raise MomoError("Payment reference not found", 404)
        if response.status_code != 200:
            raise MomoError("Failed to fetch payment status", response.status_code, _safe_json(response))
        return response.json()

    async def get_account_balance(self) -> dict[str, Any]:
        headers = await self._authorized_headers()
        async with self._client() as client:
            try:
                response = await client.get("/collection/v1_0/account/balance", headers=headers)
            except httpx.HTTPError as e:
                raise MomoError("Mobile money service unreachable") from e
        if response.status_code != 200:
            raise MomoError("Failed to fetch account balance", response.status_code)
        return response.json()


def _safe_json(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


_client: Optional[MomoClient] = None


def get_momo_client() -> MomoClient:
    """Process-wide client (keeps the access token cached)."""
    global _client
    if _client is None:
        _client = MomoClient()
    return _client
