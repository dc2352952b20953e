"""Supabase client singleton for the optional order table backend."""

from functools import lru_cache

from supabase import Client, create_client

from dokkani_api.core.config import get_settings


@lru_cache
def get_supabase_client() -> Client:
    """Get cached Supabase client singleton for database operations.

    Uses the secret key for backend operations, which bypasses RLS
    at the PostgREST level. Orders are written only by the webhook handler,
    after the Stripe signature has been verified.

    Returns:
        Client: Supabase client instance.

    Raises:
        ValueError: If Supabase is not configured.
    """
    settings = get_settings()
    if not settings.supabase_url or not settings.supabase_secret_key:
        raise ValueError("Supabase is not configured. Please set SUPABASE_URL and SUPABASE_SECRET_KEY.")
    return create_client(
        settings.supabase_url,
        settings.supabase_secret_key,
    )
