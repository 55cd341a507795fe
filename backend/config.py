import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List

from dotenv import load_dotenv

load_dotenv(Path(__file__).resolve().parent / ".env")


def _require_env(name: str) -> str:
    value = os.getenv(name)
    if not value:
        raise RuntimeError(f"Missing required environment variable: {name}")
    return value


def _get_list(name: str, fallback: str = "") -> List[str]:
    raw_value = os.getenv(name, fallback)
    if not raw_value:
        return []
    return [item.strip() for item in raw_value.split(",") if item.strip()]


def _get_bool(name: str, fallback: str = "true") -> bool:
    return os.getenv(name, fallback).strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    supabase_url: str = _require_env("SUPABASE_URL")
    supabase_service_role_key: str = _require_env("SUPABASE_SERVICE_ROLE_KEY")
    supabase_anon_key: str | None = os.getenv("SUPABASE_ANON_KEY")
    tropipay_client_id: str | None = os.getenv("TROPIPAY_CLIENT_ID")
    tropipay_client_secret: str | None = os.getenv("TROPIPAY_CLIENT_SECRET")
    env_mode: str = os.getenv("ENV_MODE", "development").strip().lower()
    app_server_url: str = os.getenv("APP_SERVER_URL", "http://localhost:8000").rstrip("/")
    site_url: str = os.getenv("SITE_URL", "http://localhost:5173").rstrip("/")
    edge_functions_enabled: bool = _get_bool("EDGE_FUNCTIONS_ENABLED")
    default_language: str = os.getenv("DEFAULT_LANGUAGE", "es")
    http_timeout_seconds: float = float(os.getenv("HTTP_TIMEOUT_SECONDS", "15"))
    allowed_origins: List[str] = field(
        default_factory=lambda: _get_list("ALLOWED_ORIGINS", "*")
    )

    @property
    def is_production(self) -> bool:
        return self.env_mode == "production"

    @property
    def functions_url(self) -> str:
        return f"{self.supabase_url.rstrip('/')}/functions/v1"

    @property
    def public_key(self) -> str:
        return self.supabase_anon_key or self.supabase_service_role_key


settings = Settings()
