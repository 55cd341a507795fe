from supabase import Client, create_client

from config import settings

supabase: Client = create_client(settings.supabase_url, settings.supabase_service_role_key)


def new_auth_client() -> Client:
    # Signing in stores the user session on the client, so it must not be the shared one.
    return create_client(settings.supabase_url, settings.public_key)
