import logging
from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException, status

from auth import CurrentUser, get_current_user
from errors import PaymentError, PaymentRejectedError, UnsupportedPaymentMethodError, ValidationError
from schemas import CheckoutRequest, CheckoutResponse
from services.checkout_service import CheckoutBusyError, checkout_sessions

logger = logging.getLogger("meal-orders")

router = APIRouter(prefix="/api/checkout", tags=["checkout"])


def _session_user(user: CurrentUser) -> dict:
    return {**user.profile, "id": user.id}


@router.post("", response_model=CheckoutResponse)
async def submit_checkout(
    payload: CheckoutRequest,
    user: CurrentUser = Depends(get_current_user),
) -> CheckoutResponse:
    session = await checkout_sessions.get(_session_user(user), user.access_token)
    summary = payload.summary.model_dump() if payload.summary else None
    try:
        outcome = await session.submit(payload.method, summary, payload.payment)
    except CheckoutBusyError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except (ValidationError, UnsupportedPaymentMethodError) as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except PaymentRejectedError as exc:
        raise HTTPException(status_code=status.HTTP_402_PAYMENT_REQUIRED, detail=str(exc)) from exc
    except PaymentError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
    except RuntimeError as exc:
        logger.error("Checkout storage error user=%s err=%s", user.id, exc)
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
    return CheckoutResponse(**{key: value for key, value in asdict(outcome).items() if key != "error_message"})
