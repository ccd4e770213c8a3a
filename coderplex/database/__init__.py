from coderplex.database.supabase_client import (
    SupabaseClient, get_supabase, get_service_supabase, get_session_supabase, is_unique_violation
)

__all__ = [
    "SupabaseClient", "get_supabase", "get_service_supabase", "get_session_supabase",
    "is_unique_violation",
]
