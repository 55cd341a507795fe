"""
Payment dispatch for checkout orders.

``PaymentOrchestrator.process_payment`` records a pending order, sends the
payment through the Edge Function (primary transport) or the application
server (secondary transport) and writes the outcome back onto the order.

Once the primary transport fails in a way that says the transport itself is
unreachable, the session's ``FallbackState`` is tripped and every later
request from that session goes straight to the application server. The
state is owned by the caller, so a session can share it across
orchestrators and tests can observe it.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from errors import PaymentError, UnsupportedPaymentMethodError, ValidationError
from repositories import orders_repository
from services.messages import message_text
from services.payment_transports import AppServerTransport, EdgeFunctionTransport
from tropipay import resolve_short_url

logger = logging.getLogger("meal-orders")

CARD = "card"
TROPIPAY = "tropipay"
SUPPORTED_METHODS = (CARD, TROPIPAY)

CARD_CURRENCY = "EUR"
FALLBACK_MARKERS = ("Edge Function", "Failed to send")

STATUS_PENDING = "pending"
STATUS_COMPLETED = "completed"
STATUS_FAILED = "failed"

CARD_FIELDS = ("cardNumber", "expiryDate", "cvv", "amount")
LINK_FIELDS = ("amount",)


@dataclass
class FallbackState:
    use_fallback: bool = False
    reason: Optional[str] = None

    def trip(self, reason: str) -> None:
        if self.use_fallback:
            return
        self.use_fallback = True
        self.reason = reason
        logger.warning("Switching to the application server for future payments: %s", reason)


@dataclass
class PaymentOutcome:
    success: bool
    method: str
    order_id: str
    reference: Optional[str] = None
    short_url: Optional[str] = None
    error_message: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)


def is_transport_failure(exc: BaseException) -> bool:
    message = str(exc)
    return any(marker in message for marker in FALLBACK_MARKERS)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class PaymentOrchestrator:
    def __init__(
        self,
        orders=orders_repository,
        primary: Optional[EdgeFunctionTransport] = None,
        secondary: Optional[AppServerTransport] = None,
        fallback_state: Optional[FallbackState] = None,
        session_token: Optional[str] = None,
        lang: Optional[str] = None,
    ) -> None:
        self.orders = orders
        self.primary = primary
        self.secondary = secondary or AppServerTransport()
        self.fallback_state = fallback_state if fallback_state is not None else FallbackState()
        self.session_token = session_token
        self.lang = lang
        self._order_id: Optional[str] = None

    @property
    def current_order_id(self) -> Optional[str]:
        return self._order_id

    async def process_payment(self, method: str, data: Dict[str, Any]) -> PaymentOutcome:
        if method == CARD:
            return await self.process_card_payment(data)
        if method == TROPIPAY:
            return await self.create_tropipay_link(data)
        raise UnsupportedPaymentMethodError(message_text("unsupported_method", self.lang))

    async def probe(self) -> bool:
        """Check once whether the Edge Function answers; trips the fallback if not."""
        if self.primary is None:
            self.fallback_state.trip("Edge Function transport not configured")
            return False
        if not self.session_token:
            self.fallback_state.trip("No user session available")
            return False
        try:
            await self.primary.send("check", {}, token=self.session_token)
        except PaymentError as exc:
            logger.warning("Edge Function %s not available: %s", self.primary.function_name, exc)
            self.fallback_state.trip(str(exc))
            return False
        return True

    async def process_card_payment(self, data: Dict[str, Any]) -> PaymentOutcome:
        order_id = await self._open_order(
            data,
            payment_method=CARD,
            amount=data.get("amount"),
            currency=CARD_CURRENCY,
            description=message_text("card_description", self.lang),
        )
        default_error = message_text("card_payment_failed", self.lang)
        try:
            self._require(data, CARD_FIELDS)
            payload = {name: data[name] for name in CARD_FIELDS}
            result = await self._dispatch("process-card", payload, default_error)
            if not result:
                raise PaymentError(message_text("no_response", self.lang))
            reference = result.get("transactionId")
            await self._update(
                order_id,
                status=STATUS_COMPLETED,
                reference=reference,
                completed_at=_now_iso(),
            )
        except Exception as exc:
            logger.error("Card payment failed order=%s err=%s", order_id, exc)
            await self._mark_failed(order_id, exc, default_error)
            raise
        self._order_id = None
        return PaymentOutcome(
            success=True,
            method=CARD,
            order_id=order_id,
            reference=reference,
            data=result,
        )

    async def create_tropipay_link(self, data: Dict[str, Any]) -> PaymentOutcome:
        order_id = await self._open_order(
            data,
            payment_method=TROPIPAY,
            amount=data.get("amount"),
            currency=data.get("currency"),
            description=data.get("description"),
        )
        default_error = message_text("link_payment_failed", self.lang)
        try:
            self._require(data, LINK_FIELDS)
            payload = {
                "reference": data.get("reference"),
                "concept": data.get("concept"),
                "amount": data["amount"],
                "currency": data.get("currency"),
                "description": data.get("description"),
                "urlSuccess": data.get("urlSuccess"),
                "urlFailed": data.get("urlFailed"),
                "urlNotification": data.get("urlNotification"),
                "client": data.get("client"),
                "favorite": False,
            }
            result = await self._dispatch("create-payment-link", payload, default_error)
            if not result:
                raise PaymentError(message_text("no_response", self.lang))
            logger.info("TropiPay link created order=%s", order_id)
            short_url = resolve_short_url(result)
            if not short_url:
                raise PaymentError(message_text("no_short_url", self.lang))
            reference = result.get("id") or result.get("_id")
            await self._update(
                order_id,
                status=STATUS_COMPLETED,
                reference=reference,
                short_url=short_url,
                completed_at=_now_iso(),
            )
        except Exception as exc:
            logger.error("TropiPay link failed order=%s err=%s", order_id, exc)
            await self._mark_failed(order_id, exc, default_error)
            raise
        self._order_id = None
        return PaymentOutcome(
            success=True,
            method=TROPIPAY,
            order_id=order_id,
            reference=reference,
            short_url=short_url,
            data={**result, "shortUrl": short_url},
        )

    def _require(self, data: Dict[str, Any], fields) -> None:
        missing = [name for name in fields if data.get(name) is None]
        if missing:
            raise ValidationError(
                message_text("missing_payment_fields", self.lang, fields=", ".join(missing))
            )

    def _use_primary(self) -> bool:
        if self.primary is None or self.fallback_state.use_fallback:
            return False
        if not self.session_token:
            self.fallback_state.trip("No user session available")
            return False
        return True

    async def _dispatch(self, action: str, payload: Dict[str, Any], default_error: str) -> Any:
        if self._use_primary():
            logger.info("Sending %s through the Edge Function", action)
            try:
                return await self.primary.send(action, payload, token=self.session_token)
            except PaymentError as exc:
                if not is_transport_failure(exc):
                    raise
                self.fallback_state.trip(str(exc))
                logger.warning("Retrying %s through the application server", action)
        else:
            logger.info("Sending %s through the application server", action)
        return await self.secondary.send(action, payload, default_error=default_error)

    async def _open_order(self, data: Dict[str, Any], **fields: Any) -> str:
        record = {**fields, "status": STATUS_PENDING, "error_message": ""}
        order_id = data.get("orderId") or self._order_id
        if order_id:
            await self._update(order_id, **record)
        else:
            row = await asyncio.to_thread(self.orders.insert_order, record)
            order_id = row["id"]
        self._order_id = order_id
        return order_id

    async def _update(self, order_id: str, **fields: Any) -> None:
        await asyncio.to_thread(self.orders.update_order, order_id, fields)

    async def _mark_failed(self, order_id: str, exc: BaseException, default_error: str) -> None:
        await self._update(
            order_id,
            status=STATUS_FAILED,
            error_message=str(exc) or default_error,
        )
