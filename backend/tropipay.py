from __future__ import annotations

import json
import logging
import math
import time
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Dict, Optional

import httpx

from config import settings
from errors import ConfigurationError, TropiPayError

logger = logging.getLogger("meal-orders")

SERVER_URLS = {
    "Production": "https://www.tropipay.com",
    "Development": "https://tropipay-dev.herokuapp.com",
}
SHORT_URL_BASE = "https://tppay.me"
SERVICE_PAYMENT_REASON_ID = 4
DEFAULT_CURRENCY = "USD"


class TropiPayClient:
    def __init__(
        self,
        client_id: str,
        client_secret: str,
        server_mode: str = "Development",
        *,
        timeout: float = 15,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        if not client_id or not client_secret:
            logger.error("TropiPay credentials are missing from the environment")
            raise ConfigurationError("Missing TropiPay credentials")
        if server_mode not in SERVER_URLS:
            raise ConfigurationError(f"Unknown TropiPay server mode: {server_mode}")
        self.client_id = client_id
        self.client_secret = client_secret
        self.server_mode = server_mode
        self.base_url = SERVER_URLS[server_mode]
        self._timeout = timeout
        self._transport = transport
        self._access_token: Optional[str] = None
        self._token_expires_at = 0.0
        logger.info("TropiPay client initialised mode=%s", server_mode)

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url, timeout=self._timeout, transport=self._transport
        )

    async def _get_access_token(self) -> str:
        if self._access_token and time.monotonic() < self._token_expires_at:
            return self._access_token
        body = {
            "grant_type": "client_credentials",
            "client_id": self.client_id,
            "client_secret": self.client_secret,
        }
        async with self._client() as client:
            response = await client.post("/api/v2/access/token", json=body)
        data = _decode(response)
        if response.status_code != 200 or not data.get("access_token"):
            raise TropiPayError(
                _error_message(data, "TropiPay authentication failed"),
                status_code=response.status_code,
                payload=data,
            )
        self._access_token = data["access_token"]
        # one minute of slack
        self._token_expires_at = time.monotonic() + max(int(data.get("expires_in", 0)) - 60, 0)
        return self._access_token

    async def create_payment_link(self, payment_data: Dict[str, Any]) -> Dict[str, Any]:
        try:
            payload = build_payment_card_payload(payment_data)
            logger.info("TropiPay payment payload: %s", json.dumps(payload, default=str))
            token = await self._get_access_token()
            async with self._client() as client:
                response = await client.post(
                    "/api/v2/paymentcards",
                    json=payload,
                    headers={"Authorization": f"Bearer {token}"},
                )
            data = _decode(response)
            if response.status_code >= 400:
                raise TropiPayError(
                    _error_message(data, "TropiPay rejected the payment request"),
                    status_code=response.status_code,
                    payload=data,
                )
            logger.info("TropiPay response: %s", data)
            return data
        except Exception as exc:
            logger.error("Error creating TropiPay payment: %s", exc)
            raise


def build_payment_card_payload(payment_data: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "reference": payment_data.get("reference"),
        "concept": payment_data.get("concept"),
        "description": payment_data.get("description"),
        "currency": payment_data.get("currency") or DEFAULT_CURRENCY,
        "amount": _round_half_up(payment_data["amount"]),
        "lang": "es",
        "urlSuccess": payment_data.get("urlSuccess"),
        "urlFailed": payment_data.get("urlFailed"),
        "urlNotification": payment_data.get("urlNotification"),
        "client": payment_data.get("client"),
        "directPayment": True,
        "favorite": False,
        "singleUse": True,
        "reasonId": SERVICE_PAYMENT_REASON_ID,
        "expirationDays": 1,
        "serviceDate": datetime.now(timezone.utc).isoformat(),
    }


def _round_half_up(value: Any) -> int:
    # Halves round towards +inf, not to even.
    return math.floor(float(value) + 0.5)


def resolve_short_url(result: Dict[str, Any]) -> Optional[str]:
    short_url = result.get("shortUrl")
    if short_url:
        return short_url
    link_hash = result.get("hash")
    if link_hash:
        return f"{SHORT_URL_BASE}/{link_hash}"
    return None


def _decode(response: httpx.Response) -> Dict[str, Any]:
    try:
        data = response.json()
    except ValueError:
        return {"message": response.text}
    return data if isinstance(data, dict) else {"data": data}


def _error_message(data: Dict[str, Any], fallback: str) -> str:
    error = data.get("error")
    if isinstance(error, dict):
        error = error.get("message")
    return str(error or data.get("message") or fallback)


@lru_cache()
def get_tropipay_client() -> TropiPayClient:
    server_mode = "Production" if settings.is_production else "Development"
    return TropiPayClient(
        settings.tropipay_client_id or "",
        settings.tropipay_client_secret or "",
        server_mode,
        timeout=settings.http_timeout_seconds,
    )


def reset_tropipay_client() -> None:
    get_tropipay_client.cache_clear()
