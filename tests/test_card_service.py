from datetime import date

import pytest

from errors import ValidationError
from services.card_service import luhn_valid, mask_card, parse_expiry, process_card

TODAY = date(2026, 10, 17)


def test_valid_card_is_approved():
    result = process_card("4111 1111 1111 1111", "12/30", "123", 2500, today=TODAY)

    assert result["status"] == "approved"
    assert result["transactionId"].startswith("txn_")
    assert result["last4"] == "1111"
    assert result["amount"] == 2500


@pytest.mark.parametrize(
    "card_number, expiry, cvv, amount, message",
    [
        ("4111111111111112", "12/30", "123", 10, "Número de tarjeta inválido"),
        ("4111111111111111", "13/30", "123", 10, "Fecha de expiración inválida"),
        ("4111111111111111", "09/26", "123", 10, "La tarjeta ha expirado"),
        ("4111111111111111", "12/30", "12", 10, "CVV inválido"),
        ("4111111111111111", "12/30", "123", 0, "El importe debe ser mayor que 0"),
    ],
)
def test_invalid_cards_are_rejected(card_number, expiry, cvv, amount, message):
    with pytest.raises(ValidationError, match=message):
        process_card(card_number, expiry, cvv, amount, today=TODAY)


def test_expiry_in_current_month_is_still_valid():
    assert process_card("5555555555554444", "10/26", "1234", 1, today=TODAY)["last4"] == "4444"


def test_helpers():
    assert luhn_valid("378282246310005")
    assert not luhn_valid("1234")
    assert parse_expiry("07/2031") == (2031, 7)
    assert parse_expiry("7/31") is None
    assert mask_card("4111111111111111") == "****1111"
