import logging
from typing import Optional
from urllib.parse import quote

from errors import PaymentError
from services.payment_transports import AVATAR_FUNCTION_NAME, EdgeFunctionTransport

logger = logging.getLogger("meal-orders")

DICEBEAR_URL = "https://api.dicebear.com/7.x/initials/svg?seed={seed}&backgroundColor=red"


def fallback_avatar(name: str) -> str:
    return DICEBEAR_URL.format(seed=quote(name or "", safe=""))


class AvatarService:
    def __init__(self, transport: Optional[EdgeFunctionTransport] = None) -> None:
        self.transport = transport or EdgeFunctionTransport(AVATAR_FUNCTION_NAME)
        # None until the first call tells us either way.
        self.function_available: Optional[bool] = None

    async def generate_avatar(self, first_name: str, token: Optional[str]) -> str:
        if self.function_available is False or not token:
            return fallback_avatar(first_name)
        try:
            data = await self.transport.invoke({"firstName": first_name}, token)
        except PaymentError as exc:
            logger.warning("Error calling Edge Function %s: %s", AVATAR_FUNCTION_NAME, exc)
            self.function_available = False
            return fallback_avatar(first_name)
        self.function_available = True
        avatar_url = data.get("avatarUrl") if isinstance(data, dict) else None
        return avatar_url or fallback_avatar(first_name)


avatar_service = AvatarService()
