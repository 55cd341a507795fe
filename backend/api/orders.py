import asyncio

from fastapi import APIRouter, Depends, HTTPException, status

from auth import get_current_user_id
from repositories.orders_repository import fetch_order
from schemas import OrderResponse

router = APIRouter(prefix="/api/orders", tags=["orders"])


@router.get("/{order_id}", response_model=OrderResponse)
async def read_order(
    order_id: str,
    user_id: str = Depends(get_current_user_id),
) -> OrderResponse:
    row = await asyncio.to_thread(fetch_order, order_id)
    if not row or row.get("user_id") != user_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")
    return OrderResponse(**row)
