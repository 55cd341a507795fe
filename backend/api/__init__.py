from .auth import router as auth_router
from .avatar import router as avatar_router
from .checkout import router as checkout_router
from .orders import router as orders_router
from .payments import router as payments_router
from .staff import router as staff_router

__all__ = [
    "auth_router",
    "avatar_router",
    "checkout_router",
    "orders_router",
    "payments_router",
    "staff_router",
]
