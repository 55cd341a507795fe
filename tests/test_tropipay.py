import asyncio
import dataclasses
import json

import httpx
import pytest

import tropipay
from errors import ConfigurationError, TropiPayError
from tropipay import TropiPayClient, build_payment_card_payload, resolve_short_url

PAYMENT_DATA = {
    "reference": "order-1",
    "concept": "Pedido #order-1",
    "description": "Plan semanal - 5 comidas",
    "amount": 4999.5,
    "urlSuccess": "http://shop.test/thank-you",
    "urlFailed": "http://shop.test/payment",
    "client": {"name": "Ana", "email": "ana@example.com"},
}


def _client(handler, mode="Development"):
    return TropiPayClient("client-id", "client-secret", mode, transport=httpx.MockTransport(handler))


def test_payload_has_fixed_shape():
    payload = build_payment_card_payload(PAYMENT_DATA)

    assert payload["currency"] == "USD"
    assert payload["amount"] == 5000
    assert payload["reasonId"] == 4
    assert payload["expirationDays"] == 1
    assert payload["singleUse"] is True
    assert payload["directPayment"] is True
    assert payload["favorite"] is False
    assert payload["lang"] == "es"
    assert payload["serviceDate"]


def test_payload_keeps_explicit_currency_and_rounds_half_up():
    payload = build_payment_card_payload({**PAYMENT_DATA, "currency": "EUR", "amount": 2.5})

    assert payload["currency"] == "EUR"
    assert payload["amount"] == 3


def test_create_payment_link_authenticates_then_posts():
    requests = []

    def handler(request):
        requests.append(request)
        if request.url.path == "/api/v2/access/token":
            return httpx.Response(200, json={"access_token": "tp-token", "expires_in": 3600})
        return httpx.Response(200, json={"id": "pc-1", "shortUrl": "https://tppay.me/x1"})

    client = _client(handler)
    first = asyncio.run(client.create_payment_link(PAYMENT_DATA))
    asyncio.run(client.create_payment_link(PAYMENT_DATA))

    assert first == {"id": "pc-1", "shortUrl": "https://tppay.me/x1"}
    paths = [request.url.path for request in requests]
    assert paths == ["/api/v2/access/token", "/api/v2/paymentcards", "/api/v2/paymentcards"]
    assert requests[1].headers["Authorization"] == "Bearer tp-token"
    assert requests[0].url.host == "tropipay-dev.herokuapp.com"
    assert json.loads(requests[1].content)["reference"] == "order-1"


def test_provider_error_is_raised_unchanged():
    def handler(request):
        if request.url.path == "/api/v2/access/token":
            return httpx.Response(200, json={"access_token": "tp-token", "expires_in": 3600})
        return httpx.Response(400, json={"error": {"message": "Invalid amount"}})

    with pytest.raises(TropiPayError, match="Invalid amount") as excinfo:
        asyncio.run(_client(handler).create_payment_link(PAYMENT_DATA))

    assert excinfo.value.status_code == 400


def test_production_mode_uses_production_host():
    assert _client(lambda request: httpx.Response(200), "Production").base_url == "https://www.tropipay.com"


def test_missing_credentials_are_fatal(monkeypatch):
    monkeypatch.setattr(
        tropipay,
        "settings",
        dataclasses.replace(tropipay.settings, tropipay_client_id=None, tropipay_client_secret="s"),
    )
    tropipay.reset_tropipay_client()
    try:
        with pytest.raises(ConfigurationError):
            tropipay.get_tropipay_client()
    finally:
        tropipay.reset_tropipay_client()


def test_client_is_a_singleton(monkeypatch):
    monkeypatch.setattr(
        tropipay,
        "settings",
        dataclasses.replace(tropipay.settings, tropipay_client_id="id", tropipay_client_secret="secret"),
    )
    tropipay.reset_tropipay_client()
    try:
        assert tropipay.get_tropipay_client() is tropipay.get_tropipay_client()
    finally:
        tropipay.reset_tropipay_client()


@pytest.mark.parametrize(
    "result, expected",
    [
        ({"shortUrl": "https://tppay.me/s"}, "https://tppay.me/s"),
        ({"hash": "abc123"}, "https://tppay.me/abc123"),
        ({"id": "x"}, None),
    ],
)
def test_resolve_short_url(result, expected):
    assert resolve_short_url(result) == expected
