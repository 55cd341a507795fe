import logging

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from errors import ConfigurationError, TropiPayError, ValidationError
from schemas import CardPaymentRequest, CardPaymentResponse, ErrorResponse, PaymentLinkRequest
from services.card_service import mask_card, process_card
from tropipay import get_tropipay_client

logger = logging.getLogger("meal-orders")

router = APIRouter(prefix="/api/payments", tags=["payments"])

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    502: {"model": ErrorResponse},
    503: {"model": ErrorResponse},
}


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@router.post("/process-card", response_model=CardPaymentResponse, responses=ERROR_RESPONSES)
async def process_card_payment(payload: CardPaymentRequest):
    try:
        return process_card(payload.cardNumber, payload.expiryDate, payload.cvv, payload.amount)
    except ValidationError as exc:
        logger.warning("Card payment rejected card=%s: %s", mask_card(payload.cardNumber), exc)
        return _error(status.HTTP_400_BAD_REQUEST, str(exc))


@router.post("/create-payment-link", responses=ERROR_RESPONSES)
async def create_payment_link(payload: PaymentLinkRequest):
    try:
        client = get_tropipay_client()
    except ConfigurationError as exc:
        return _error(status.HTTP_503_SERVICE_UNAVAILABLE, str(exc))
    try:
        return await client.create_payment_link(payload.model_dump(exclude_none=True))
    except TropiPayError as exc:
        return _error(status.HTTP_502_BAD_GATEWAY, str(exc))
    except Exception as exc:  # pragma: no cover - network error
        return _error(status.HTTP_502_BAD_GATEWAY, str(exc) or "Error creando link de pago")
