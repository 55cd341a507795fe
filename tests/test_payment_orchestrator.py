import asyncio

import pytest

from errors import (
    PaymentError,
    PaymentRejectedError,
    TransportUnavailableError,
    UnsupportedPaymentMethodError,
    ValidationError,
)
from services.payment_orchestrator import FallbackState, PaymentOrchestrator, is_transport_failure

CARD_DATA = {"cardNumber": "4111111111111111", "expiryDate": "12/30", "cvv": "123", "amount": 2500}
LINK_DATA = {
    "reference": "ref-1",
    "concept": "Pedido #ref-1",
    "amount": 4999,
    "currency": "EUR",
    "description": "Plan semanal - 5 comidas",
    "urlSuccess": "http://shop.test/thank-you",
    "urlFailed": "http://shop.test/payment",
}


def _orchestrator(orders, primary=None, secondary=None, state=None, token="user-token"):
    return PaymentOrchestrator(
        orders=orders,
        primary=primary,
        secondary=secondary,
        fallback_state=state if state is not None else FallbackState(),
        session_token=token,
    )


def test_card_payment_falls_back_once_after_send_failure(orders, make_transport):
    primary = make_transport(TransportUnavailableError("Failed to send request"))
    secondary = make_transport({"transactionId": "t1"})
    state = FallbackState()
    orchestrator = _orchestrator(orders, primary, secondary, state)

    outcome = asyncio.run(orchestrator.process_payment("card", dict(CARD_DATA)))

    assert outcome.success and outcome.reference == "t1"
    assert len(primary.calls) == 1
    assert primary.calls[0]["token"] == "user-token"
    assert len(secondary.calls) == 1
    assert secondary.calls[0]["action"] == "process-card"
    assert secondary.calls[0]["payload"] == CARD_DATA
    assert state.use_fallback is True

    order = orders.rows[outcome.order_id]
    assert order["status"] == "completed"
    assert order["reference"] == "t1"
    assert order["currency"] == "EUR"
    assert order["completed_at"]


def test_fallback_flag_skips_primary_for_later_calls(orders, make_transport):
    primary = make_transport(TransportUnavailableError("Edge Function returned a non-2xx status code: 503"))
    secondary = make_transport({"transactionId": "t1"}, {"transactionId": "t2"})
    orchestrator = _orchestrator(orders, primary, secondary)

    asyncio.run(orchestrator.process_payment("card", dict(CARD_DATA)))
    second = asyncio.run(orchestrator.process_payment("card", dict(CARD_DATA)))

    assert len(primary.calls) == 1
    assert len(secondary.calls) == 2
    assert second.reference == "t2"


def test_business_rejection_from_primary_is_not_retried(orders, make_transport):
    primary = make_transport(PaymentRejectedError("Tarjeta rechazada", status_code=402))
    secondary = make_transport()
    state = FallbackState()
    orchestrator = _orchestrator(orders, primary, secondary, state)

    with pytest.raises(PaymentRejectedError, match="Tarjeta rechazada"):
        asyncio.run(orchestrator.process_payment("card", dict(CARD_DATA)))

    assert secondary.calls == []
    assert state.use_fallback is False
    order = orders.rows[orchestrator.current_order_id]
    assert order["status"] == "failed"
    assert order["error_message"] == "Tarjeta rechazada"


def test_failed_fallback_marks_order_failed(orders, make_transport):
    primary = make_transport(TransportUnavailableError("Failed to send a request to the Edge Function"))
    secondary = make_transport(PaymentRejectedError("Error procesando el pago", status_code=500))
    orchestrator = _orchestrator(orders, primary, secondary)

    with pytest.raises(PaymentRejectedError):
        asyncio.run(orchestrator.process_payment("card", dict(CARD_DATA)))

    assert len(secondary.calls) == 1
    [order] = orders.rows.values()
    assert order["status"] == "failed"
    assert order["error_message"]


def test_missing_card_field_marks_order_failed_without_sending(orders, make_transport):
    primary = make_transport()
    secondary = make_transport()
    orchestrator = _orchestrator(orders, primary, secondary)
    data = {"amount": 2500, "expiryDate": "12/30", "cvv": "123"}

    with pytest.raises(ValidationError, match="cardNumber"):
        asyncio.run(orchestrator.process_payment("card", data))

    assert primary.calls == [] and secondary.calls == []
    [order] = orders.rows.values()
    assert order["status"] == "failed"
    assert order["error_message"] == "Faltan datos del pago: cardNumber"


def test_link_without_amount_marks_order_failed(orders, make_transport):
    orchestrator = _orchestrator(orders, make_transport(), make_transport())
    data = {key: value for key, value in LINK_DATA.items() if key != "amount"}

    with pytest.raises(ValidationError, match="amount"):
        asyncio.run(orchestrator.process_payment("tropipay", data))

    [order] = orders.rows.values()
    assert order["status"] == "failed"


def test_missing_session_token_uses_secondary_and_trips_flag(orders, make_transport):
    primary = make_transport()
    secondary = make_transport({"transactionId": "t9"})
    state = FallbackState()
    orchestrator = _orchestrator(orders, primary, secondary, state, token=None)

    outcome = asyncio.run(orchestrator.process_payment("card", dict(CARD_DATA)))

    assert outcome.reference == "t9"
    assert primary.calls == []
    assert state.use_fallback is True


def test_no_primary_transport_goes_straight_to_secondary(orders, make_transport):
    secondary = make_transport({"transactionId": "t3"})
    orchestrator = _orchestrator(orders, None, secondary)

    outcome = asyncio.run(orchestrator.process_payment("card", dict(CARD_DATA)))

    assert outcome.reference == "t3"
    assert secondary.calls[0]["default_error"] == "Error procesando el pago"


def test_empty_response_is_a_failure(orders, make_transport):
    orchestrator = _orchestrator(orders, make_transport(None))

    with pytest.raises(PaymentError, match="No se recibió respuesta del servidor"):
        asyncio.run(orchestrator.process_payment("card", dict(CARD_DATA)))

    [order] = orders.rows.values()
    assert order["status"] == "failed"


def test_link_short_url_derived_from_hash(orders, make_transport):
    primary = make_transport({"id": "pc-1", "hash": "abc123"})
    orchestrator = _orchestrator(orders, primary, make_transport())

    outcome = asyncio.run(orchestrator.process_payment("tropipay", dict(LINK_DATA, orderId="order-77")))

    assert outcome.short_url == "https://tppay.me/abc123"
    assert outcome.data["shortUrl"] == "https://tppay.me/abc123"
    assert primary.calls[0]["action"] == "create-payment-link"
    assert primary.calls[0]["payload"]["favorite"] is False
    order = orders.rows["order-77"]
    assert order["status"] == "completed"
    assert order["reference"] == "pc-1"
    assert order["short_url"] == "https://tppay.me/abc123"
    assert order["payment_method"] == "tropipay"


def test_link_prefers_provider_short_url(orders, make_transport):
    primary = make_transport({"_id": "pc-2", "shortUrl": "https://tppay.me/xyz", "hash": "ignored"})
    orchestrator = _orchestrator(orders, primary, make_transport())

    outcome = asyncio.run(orchestrator.process_payment("tropipay", dict(LINK_DATA)))

    assert outcome.short_url == "https://tppay.me/xyz"
    assert outcome.reference == "pc-2"


def test_link_without_short_url_or_hash_fails(orders, make_transport):
    primary = make_transport({"id": "pc-3"})
    orchestrator = _orchestrator(orders, primary, make_transport())

    with pytest.raises(PaymentError, match="No se pudo generar la URL de pago"):
        asyncio.run(orchestrator.process_payment("tropipay", dict(LINK_DATA)))

    [order] = orders.rows.values()
    assert order["status"] == "failed"
    assert order["error_message"] == "No se pudo generar la URL de pago"


def test_retry_after_failure_reuses_order(orders, make_transport):
    secondary = make_transport(PaymentRejectedError("Error creando link de pago"), {"id": "pc-4", "hash": "h4"})
    orchestrator = _orchestrator(orders, None, secondary)

    with pytest.raises(PaymentRejectedError):
        asyncio.run(orchestrator.process_payment("tropipay", dict(LINK_DATA)))
    first_order = orchestrator.current_order_id
    outcome = asyncio.run(orchestrator.process_payment("tropipay", dict(LINK_DATA)))

    assert outcome.order_id == first_order
    assert len(orders.rows) == 1
    assert orders.rows[first_order]["status"] == "completed"
    assert orchestrator.current_order_id is None


def test_unsupported_method_fails_without_persisting(orders, make_transport):
    orchestrator = _orchestrator(orders, make_transport(), make_transport())

    with pytest.raises(UnsupportedPaymentMethodError, match="Método de pago no soportado"):
        asyncio.run(orchestrator.process_payment("paypal", {}))

    assert orders.rows == {}


def test_probe_trips_flag_when_function_is_unreachable(orders, make_transport):
    primary = make_transport(TransportUnavailableError("Failed to send a request to the Edge Function"))
    state = FallbackState()
    orchestrator = _orchestrator(orders, primary, make_transport(), state)

    assert asyncio.run(orchestrator.probe()) is False
    assert primary.calls[0]["action"] == "check"
    assert state.use_fallback is True


def test_probe_keeps_primary_when_function_answers(orders, make_transport):
    state = FallbackState()
    orchestrator = _orchestrator(orders, make_transport({"status": "ok"}), make_transport(), state)

    assert asyncio.run(orchestrator.probe()) is True
    assert state.use_fallback is False


def test_fallback_state_is_never_reset():
    state = FallbackState()
    state.trip("first")
    state.trip("second")

    assert state.use_fallback is True
    assert state.reason == "first"


def test_transport_failure_markers():
    assert is_transport_failure(Exception("Failed to send request"))
    assert is_transport_failure(Exception("Edge Function returned a non-2xx status code"))
    assert not is_transport_failure(Exception("Tarjeta rechazada"))
