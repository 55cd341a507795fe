import asyncio
import logging
from typing import Optional

from repositories.staff_repository import fetch_role

logger = logging.getLogger("meal-orders")

ADMIN_ROLE = "admin"


async def is_admin(user_id: Optional[str]) -> bool:
    if not user_id:
        return False
    try:
        role = await asyncio.to_thread(fetch_role, user_id)
    except Exception as exc:  # pragma: no cover - network/database error
        logger.error("Error checking admin status user=%s: %s", user_id, exc)
        return False
    logger.info("Admin check user=%s role=%s", user_id, role)
    return role == ADMIN_ROLE
