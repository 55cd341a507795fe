from fastapi import APIRouter, Depends

from auth import CurrentUser, get_current_user
from schemas import AvatarRequest, AvatarResponse
from services.avatar_service import avatar_service

router = APIRouter(prefix="/api/avatar", tags=["avatar"])


@router.post("", response_model=AvatarResponse)
async def generate_avatar(
    payload: AvatarRequest,
    user: CurrentUser = Depends(get_current_user),
) -> AvatarResponse:
    url = await avatar_service.generate_avatar(payload.first_name, user.access_token)
    return AvatarResponse(avatar_url=url)
