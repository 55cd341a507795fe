from dataclasses import dataclass
from typing import Any, Dict

from fastapi import Depends, Header, HTTPException, status
import httpx

from config import settings


@dataclass
class CurrentUser:
    id: str
    access_token: str
    profile: Dict[str, Any]


async def _fetch_user(access_token: str) -> dict:
    headers = {
        "Authorization": f"Bearer {access_token}",
        "apikey": settings.supabase_service_role_key,
    }
    url = f"{settings.supabase_url}/auth/v1/user"
    async with httpx.AsyncClient(timeout=10) as client:
        response = await client.get(url, headers=headers)
    if response.status_code != 200:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid auth token"
        )
    return response.json()


def _bearer_token(authorization: str | None) -> str:
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing auth token"
        )
    return authorization.split(" ", 1)[1]


async def get_current_user(
    authorization: str | None = Header(default=None, convert_underscores=False),
) -> CurrentUser:
    token = _bearer_token(authorization)
    user = await _fetch_user(token)
    user_id = user.get("id")
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid user profile"
        )
    return CurrentUser(id=user_id, access_token=token, profile=user)


async def get_current_user_id(user: CurrentUser = Depends(get_current_user)) -> str:
    return user.id
