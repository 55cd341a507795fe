from fastapi import APIRouter, Depends

from auth import get_current_user_id
from schemas import StaffStatusResponse
from services.staff_service import is_admin

router = APIRouter(prefix="/api/staff", tags=["staff"])


@router.get("/me", response_model=StaffStatusResponse)
async def read_staff_status(
    user_id: str = Depends(get_current_user_id),
) -> StaffStatusResponse:
    return StaffStatusResponse(is_admin=await is_admin(user_id))
