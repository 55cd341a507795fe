import logging
import re
from datetime import date
from typing import Any, Dict, Optional
from uuid import uuid4

from errors import ValidationError
from services.messages import message_text

logger = logging.getLogger("meal-orders")

EXPIRY_PATTERN = re.compile(r"^(\d{2})\s*/\s*(\d{2}|\d{4})$")


def _digits(value: str) -> str:
    return "".join(ch for ch in str(value or "") if ch.isdigit())


def luhn_valid(card_number: str) -> bool:
    digits = _digits(card_number)
    if not 12 <= len(digits) <= 19:
        return False
    total = 0
    for index, char in enumerate(reversed(digits)):
        value = int(char)
        if index % 2 == 1:
            value *= 2
            if value > 9:
                value -= 9
        total += value
    return total % 10 == 0


def parse_expiry(expiry_date: str) -> Optional[tuple[int, int]]:
    match = EXPIRY_PATTERN.match((expiry_date or "").strip())
    if not match:
        return None
    month = int(match.group(1))
    year = int(match.group(2))
    if year < 100:
        year += 2000
    if not 1 <= month <= 12:
        return None
    return year, month


def mask_card(card_number: str) -> str:
    digits = _digits(card_number)
    return f"****{digits[-4:]}" if digits else ""


def process_card(
    card_number: str,
    expiry_date: str,
    cvv: str,
    amount: Any,
    *,
    today: Optional[date] = None,
    lang: Optional[str] = None,
) -> Dict[str, Any]:
    """Validate a card charge and approve it.

    There is no acquiring gateway behind this; a card that passes the Luhn,
    expiry and CVV checks is approved with a generated transaction id.
    """
    today = today or date.today()
    if not luhn_valid(card_number):
        raise ValidationError(message_text("invalid_card_number", lang))
    expiry = parse_expiry(expiry_date)
    if expiry is None:
        raise ValidationError(message_text("invalid_expiry", lang))
    if expiry < (today.year, today.month):
        raise ValidationError(message_text("card_expired", lang))
    if not re.fullmatch(r"\d{3,4}", str(cvv or "")):
        raise ValidationError(message_text("invalid_cvv", lang))
    try:
        amount_value = float(amount)
    except (TypeError, ValueError):
        amount_value = 0.0
    if amount_value <= 0:
        raise ValidationError(message_text("invalid_amount", lang))

    transaction_id = f"txn_{uuid4().hex[:24]}"
    logger.info(
        "Card payment approved card=%s amount=%s txn=%s",
        mask_card(card_number),
        amount_value,
        transaction_id,
    )
    return {
        "transactionId": transaction_id,
        "status": "approved",
        "amount": amount,
        "last4": _digits(card_number)[-4:],
    }
