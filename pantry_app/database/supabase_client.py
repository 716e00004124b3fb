import logging
from typing import Optional

from supabase import create_client, Client, ClientOptions
from pantry_app.config import settings

logger = logging.getLogger(__name__)


def _require_config(url: str, key: str, key_name: str) -> None:
    if not url:
        raise RuntimeError("SUPABASE_URL environment variable not found")
    if not key:
        raise RuntimeError(f"{key_name} environment variable not found")


class SupabaseClient:
    _service_client: Client = None

    @classmethod
    def create_client(cls) -> Client:
        """New anon client. Each request gets its own: the SDK keeps the signed-in session in memory."""
        _require_config(settings.supabase_url, settings.supabase_key, "SUPABASE_ANON_KEY")
        return create_client(
            settings.supabase_url,
            settings.supabase_key,
            options=ClientOptions(auto_refresh_token=False, persist_session=False),
        )

    @classmethod
    def get_service_client(cls) -> Optional[Client]:
        """Client with service_role key; bypasses RLS. None when no service key is configured."""
        if cls._service_client is None and settings.supabase_service_role_key:
            _require_config(settings.supabase_url, settings.supabase_service_role_key, "SUPABASE_SERVICE_ROLE_KEY")
            cls._service_client = create_client(
                settings.supabase_url,
                settings.supabase_service_role_key,
                options=ClientOptions(auto_refresh_token=False, persist_session=False),
            )
        return cls._service_client


def get_supabase() -> Client:
    return SupabaseClient.create_client()


def get_service_supabase() -> Optional[Client]:
    """Admin client, or None so callers fall back to the user's hydrated client."""
    return SupabaseClient.get_service_client()
