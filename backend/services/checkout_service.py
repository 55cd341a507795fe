import asyncio
import logging
from collections import OrderedDict
from typing import Any, Dict, Optional

from config import settings
from errors import PaymentError, ValidationError
from repositories import orders_repository
from services.meal_validation import prepare_meals_for_database
from services.messages import message_text
from services.payment_orchestrator import (
    CARD,
    TROPIPAY,
    FallbackState,
    PaymentOrchestrator,
    PaymentOutcome,
)
from services.payment_transports import EdgeFunctionTransport

logger = logging.getLogger("meal-orders")

SPAIN_COUNTRY_ID = 1


class CheckoutBusyError(PaymentError):
    pass


def build_order_payload(user_id: str, summary: Dict[str, Any], meals: list, method: str) -> Dict[str, Any]:
    package = summary.get("package") or {}
    address = summary.get("deliveryAddress") or {}
    return {
        "user_id": user_id,
        "package_id": package.get("id"),
        "package_data": package,
        "meals": meals,
        "delivery_address_id": address.get("id"),
        "delivery_address_data": {
            "recipient_name": address.get("recipientName") or "",
            "phone": address.get("phone") or "",
            "address": address.get("address") or "",
            "province": address.get("province") or "",
            "municipality": address.get("municipality") or "",
        },
        "personal_note": summary.get("personalNote") or "",
        "total": package.get("price") or 0,
        "payment_method": method,
        "status": "pending",
    }


def build_tropipay_client(user: Dict[str, Any], summary: Dict[str, Any]) -> Dict[str, Any]:
    metadata = user.get("user_metadata") or {}
    name_parts = (metadata.get("display_name") or "").split(" ")
    address = summary.get("deliveryAddress") or {}
    return {
        "name": name_parts[0] if name_parts else "",
        "lastName": " ".join(name_parts[1:]),
        "phone": metadata.get("phone") or "",
        "email": user.get("email") or "",
        "address": address.get("address") or "",
        "countryId": SPAIN_COUNTRY_ID,
        "termsAndConditions": "true",
    }


class CheckoutSession:
    """Server-side counterpart of the payment page: one per signed-in user."""

    def __init__(self, user: Dict[str, Any], orchestrator: PaymentOrchestrator, orders=orders_repository) -> None:
        self.user = user
        self.orchestrator = orchestrator
        self.orders = orders
        self.created_order_id: Optional[str] = None
        self.busy = False

    async def submit(
        self,
        method: Optional[str],
        summary: Optional[Dict[str, Any]],
        payment_details: Optional[Dict[str, Any]] = None,
    ) -> PaymentOutcome:
        if not method or not self.user:
            raise ValidationError(message_text("method_required", self.orchestrator.lang))
        if self.busy:
            raise CheckoutBusyError("A payment is already being processed")

        self.busy = True
        try:
            order_id = await self._ensure_order(method, summary)
            data = self._payment_data(method, order_id, summary or {}, payment_details or {})
            outcome = await self.orchestrator.process_payment(method, data)
        except Exception:
            logger.exception("Payment processing error user=%s", self.user.get("id"))
            raise
        finally:
            self.busy = False
        self.created_order_id = None
        return outcome

    async def _ensure_order(self, method: str, summary: Optional[Dict[str, Any]]) -> str:
        if self.created_order_id:
            return self.created_order_id
        if not summary or not summary.get("selectedMeals"):
            raise ValidationError(message_text("no_meals", self.orchestrator.lang))

        meals = prepare_meals_for_database(summary["selectedMeals"])
        payload = build_order_payload(self.user["id"], summary, meals, method)
        logger.info("Creating order user=%s meals=%s", self.user["id"], [meal["id"] for meal in meals])
        try:
            row = await asyncio.to_thread(self.orders.insert_order, payload)
        except RuntimeError as exc:
            logger.error("Order creation error user=%s err=%s", self.user["id"], exc)
            raise PaymentError(
                message_text("order_create_failed", self.orchestrator.lang, detail=str(exc))
            ) from exc
        if not row or not row.get("id"):
            raise PaymentError(message_text("order_not_created", self.orchestrator.lang))
        self.created_order_id = row["id"]
        return self.created_order_id

    def _payment_data(
        self,
        method: str,
        order_id: str,
        summary: Dict[str, Any],
        details: Dict[str, Any],
    ) -> Dict[str, Any]:
        package = summary.get("package") or {}
        amount_cents = round((package.get("price") or 0) * 100)
        if method == CARD:
            return {
                "orderId": order_id,
                "cardNumber": details.get("cardNumber", ""),
                "expiryDate": details.get("expiryDate", ""),
                "cvv": details.get("cvv", ""),
                "amount": details.get("amount") or amount_cents,
            }
        if method == TROPIPAY:
            meal_count = len(summary.get("selectedMeals") or [])
            return {
                "orderId": order_id,
                "reference": order_id,
                "concept": f"Pedido #{order_id[:8]}",
                "amount": amount_cents,
                "currency": "EUR",
                "description": f"{package.get('name', '')} - {meal_count} comidas",
                "urlSuccess": f"{settings.site_url}/thank-you?order={order_id}",
                "urlFailed": f"{settings.site_url}/payment?order={order_id}",
                "client": build_tropipay_client(self.user, summary),
            }
        return {"orderId": order_id, **details}


def _default_primary() -> Optional[EdgeFunctionTransport]:
    return EdgeFunctionTransport() if settings.edge_functions_enabled else None


class CheckoutSessionRegistry:
    """Per-user checkout sessions, least recently used evicted past ``max_sessions``."""

    def __init__(self, primary_factory=_default_primary, orders=orders_repository, max_sessions: int = 1000) -> None:
        self.primary_factory = primary_factory
        self.orders = orders
        self.max_sessions = max_sessions
        self._sessions: "OrderedDict[str, CheckoutSession]" = OrderedDict()

    async def get(self, user: Dict[str, Any], token: Optional[str]) -> CheckoutSession:
        user_id = user["id"]
        session = self._sessions.get(user_id)
        if session is None:
            orchestrator = PaymentOrchestrator(
                orders=self.orders,
                primary=self.primary_factory(),
                fallback_state=FallbackState(),
                session_token=token,
            )
            session = CheckoutSession(user, orchestrator, orders=self.orders)
            await orchestrator.probe()
            self._sessions[user_id] = session
            while len(self._sessions) > self.max_sessions:
                evicted, _ = self._sessions.popitem(last=False)
                logger.info("Evicted checkout session user=%s", evicted)
        self._sessions.move_to_end(user_id)
        session.user = user
        session.orchestrator.session_token = token
        return session

    def discard(self, user_id: str) -> None:
        self._sessions.pop(user_id, None)

    def __len__(self) -> int:
        return len(self._sessions)


checkout_sessions = CheckoutSessionRegistry()
