import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from supabase import AuthError as SupabaseAuthError

from errors import AuthError
from services.messages import translate_auth_error
from supabase_client import new_auth_client, supabase

logger = logging.getLogger("meal-orders")


def _to_dict(model: Any) -> Optional[Dict[str, Any]]:
    if model is None:
        return None
    if isinstance(model, dict):
        return model
    return model.model_dump(mode="json")


def _translated(exc: Exception, lang: Optional[str] = None) -> AuthError:
    message = str(getattr(exc, "message", "") or exc)
    return AuthError(translate_auth_error(message, lang) or message)


def _sign_up(email: str, password: str, name: Optional[str], phone: Optional[str]):
    return new_auth_client().auth.sign_up(
        {
            "email": email,
            "password": password,
            "options": {
                "data": {
                    "display_name": name,
                    "phone": phone,
                    "created_at": datetime.now(timezone.utc).isoformat(),
                }
            },
        }
    )


async def sign_up(
    email: str,
    password: str,
    name: Optional[str] = None,
    phone: Optional[str] = None,
    lang: Optional[str] = None,
) -> Dict[str, Any]:
    try:
        response = await asyncio.to_thread(_sign_up, email, password, name, phone)
    except SupabaseAuthError as exc:
        logger.error("Error during sign up email=%s: %s", email, exc)
        raise _translated(exc, lang) from exc
    user = response.user
    needs_verification = bool(user) and not getattr(user, "confirmed_at", None)
    return {"user": _to_dict(user), "needs_email_verification": needs_verification}


async def sign_in(email: str, password: str, lang: Optional[str] = None) -> Dict[str, Any]:
    try:
        response = await asyncio.to_thread(
            new_auth_client().auth.sign_in_with_password, {"email": email, "password": password}
        )
    except SupabaseAuthError as exc:
        logger.warning("Sign in rejected email=%s: %s", email, exc)
        raise _translated(exc, lang) from exc
    return {"user": _to_dict(response.user), "session": _to_dict(response.session)}


async def sign_out(access_token: str) -> None:
    try:
        await asyncio.to_thread(supabase.auth.admin.sign_out, access_token)
    except SupabaseAuthError as exc:
        logger.error("Error during sign out: %s", exc)
        raise _translated(exc) from exc


def google_oauth_url(redirect_to: str) -> str:
    response = new_auth_client().auth.sign_in_with_oauth(
        {"provider": "google", "options": {"redirect_to": redirect_to}}
    )
    return response.url
