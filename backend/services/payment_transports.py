"""
Transports that carry a payment request to whatever talks to TropiPay.

``EdgeFunctionTransport`` invokes the ``tropipay-payment`` Supabase Edge
Function with the caller's session token. ``AppServerTransport`` posts the
same request to this application's own ``/api/payments/*`` endpoints. Both
expose ``send(action, payload, token=None)`` and raise ``PaymentError``
subclasses, so the orchestrator can treat them uniformly.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from config import settings
from errors import PaymentRejectedError, TransportUnavailableError

logger = logging.getLogger("meal-orders")

PAYMENT_FUNCTION_NAME = "tropipay-payment"
AVATAR_FUNCTION_NAME = "generate-user-avatar"

EDGE_SEND_FAILED = "Failed to send a request to the Edge Function"
EDGE_NON_2XX = "Edge Function returned a non-2xx status code"


def _json_or_none(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return None


class EdgeFunctionTransport:
    name = "edge-function"

    def __init__(
        self,
        function_name: str = PAYMENT_FUNCTION_NAME,
        *,
        functions_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.function_name = function_name
        self.functions_url = (functions_url or settings.functions_url).rstrip("/")
        self.api_key = api_key or settings.public_key
        self.timeout = timeout or settings.http_timeout_seconds
        self._transport = transport

    @property
    def url(self) -> str:
        return f"{self.functions_url}/{self.function_name}"

    async def invoke(self, body: Dict[str, Any], token: str) -> Any:
        headers = {
            "Authorization": f"Bearer {token}",
            "apikey": self.api_key,
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(self.url, json=body, headers=headers)
        except httpx.TransportError as exc:
            logger.error("Edge Function %s unreachable: %s", self.function_name, exc)
            raise TransportUnavailableError(EDGE_SEND_FAILED) from exc

        data = _json_or_none(response)
        if response.status_code >= 300:
            error = data.get("error") if isinstance(data, dict) else None
            if isinstance(error, str) and error:
                raise PaymentRejectedError(error, status_code=response.status_code)
            raise TransportUnavailableError(f"{EDGE_NON_2XX}: {response.status_code}")
        return data

    async def send(self, action: str, payload: Dict[str, Any], token: Optional[str] = None) -> Any:
        if not token:
            raise TransportUnavailableError(f"{EDGE_SEND_FAILED}: missing session token")
        return await self.invoke({"action": action, **payload}, token)


class AppServerTransport:
    name = "app-server"

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = (base_url or settings.app_server_url).rstrip("/")
        self.timeout = timeout or settings.http_timeout_seconds
        self._transport = transport

    async def send(
        self,
        action: str,
        payload: Dict[str, Any],
        token: Optional[str] = None,
        *,
        default_error: str = "Payment request failed",
    ) -> Any:
        url = f"{self.base_url}/api/payments/{action}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(url, json=payload)
        except httpx.TransportError as exc:
            logger.error("Application server unreachable url=%s err=%s", url, exc)
            raise TransportUnavailableError(f"Application server unreachable: {exc}") from exc

        data = _json_or_none(response)
        if not response.is_success:
            error = data.get("error") if isinstance(data, dict) else None
            raise PaymentRejectedError(error or default_error, status_code=response.status_code)
        return data
