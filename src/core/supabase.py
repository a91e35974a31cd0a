"""Supabase client singleton for database operations."""

from functools import lru_cache
from typing import Any

from supabase import Client, create_client
from supabase.lib.client_options import SyncClientOptions
from supabase_auth import SyncMemoryStorage

from src.core.config import get_settings


@lru_cache
def get_supabase_client() -> Client:
    """Get cached Supabase client singleton for table and storage operations.

    Uses the secret key, which bypasses RLS at the PostgREST level. Only use
    it after the caller's identity has been verified from their JWT.

    IMPORTANT: Do NOT use this client for auth operations that sign a user
    in - use create_auth_client() instead to avoid polluting the singleton's
    Authorization header.

    Returns:
        Client: Supabase client instance.
    """
    settings = get_settings()
    return create_client(
        settings.supabase_url,
        settings.supabase_secret_key,
    )


def create_auth_client(storage: SyncMemoryStorage | None = None) -> Client:
    """Create a fresh Supabase client for auth operations.

    Each call creates an isolated client with its own in-memory session
    storage, so sign-ins never leak between requests. Pass ``storage`` to
    read back what the auth client stored (e.g. the PKCE code verifier).

    Args:
        storage: Optional storage instance to use for the auth session.

    Returns:
        Client: Fresh Supabase client instance with isolated session storage.
    """
    settings = get_settings()
    options = SyncClientOptions(
        storage=storage or SyncMemoryStorage(),
        auto_refresh_token=False,
        persist_session=False,
        flow_type="pkce",
    )
    return create_client(
        settings.supabase_url,
        settings.supabase_secret_key,
        options=options,
    )


async def check_database_connection() -> dict[str, Any]:
    """Check if database connection is healthy.

    Returns:
        dict: Connection status with 'healthy' boolean and optional 'error' message.
    """
    try:
        client = get_supabase_client()
        client.table(get_settings().profile_table).select("id").limit(1).execute()
        return {"healthy": True}
    except Exception as e:
        return {"healthy": False, "error": str(e)}
