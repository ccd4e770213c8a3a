from supabase import create_client, Client
from supabase.lib.client_options import ClientOptions
from coderplex.config import settings
from typing import Optional


class SupabaseClient:
    _client: Client = None
    _service_client: Client = None

    @classmethod
    def get_client(cls) -> Client:
        if cls._client is None:
            cls._client = create_client(settings.supabase_url, settings.supabase_key)
        return cls._client

    @classmethod
    def get_service_client(cls) -> Optional[Client]:
        """Client with service_role key; bypasses RLS. Needed for auth admin calls."""
        if cls._service_client is None and settings.supabase_service_role_key:
            cls._service_client = create_client(
                settings.supabase_url, settings.supabase_service_role_key
            )
        return cls._service_client

    @classmethod
    def new_session_client(cls) -> Client:
        """Fresh anon client for calls that attach a user session (sign-in, sign-up)"""
        return create_client(
            settings.supabase_url,
            settings.supabase_key,
            options=ClientOptions(persist_session=False, auto_refresh_token=False)
        )


def is_unique_violation(error: Exception) -> bool:
    """Postgres unique_violation (23505) as surfaced by postgrest"""
    message = str(error).lower()
    return "23505" in message or "duplicate key" in message


def get_supabase() -> Client:
    return SupabaseClient.get_client()


def get_service_supabase() -> Optional[Client]:
    return SupabaseClient.get_service_client()


def get_session_supabase() -> Client:
    return SupabaseClient.new_session_client()
