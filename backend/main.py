import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api import (
    auth_router,
    avatar_router,
    checkout_router,
    orders_router,
    payments_router,
    staff_router,
)
from config import settings

logger = logging.getLogger("meal-orders")

app = FastAPI(title="Meal Orders API")

if settings.allowed_origins == ["*"]:
    allow_origins = ["*"]
else:
    allow_origins = settings.allowed_origins

app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth_router)
app.include_router(staff_router)
app.include_router(avatar_router)
app.include_router(checkout_router)
app.include_router(orders_router)
app.include_router(payments_router)


@app.on_event("startup")
async def _on_startup() -> None:
    logger.info(
        "Meal Orders API starting env=%s edge_functions=%s app_server=%s",
        settings.env_mode,
        settings.edge_functions_enabled,
        settings.app_server_url,
    )
    if allow_origins == ["*"]:
        logger.warning(
            "CORS is set to allow all origins with credentials; set ALLOWED_ORIGINS to explicit values for local dev."
        )


@app.get("/api/health")
async def health():
    return {"status": "ok", "env": settings.env_mode}
