# =============================================================================
# nextup_core/data/supabase_client.py
# Process-wide Supabase client handle for NextUP
# =============================================================================

from __future__ import annotations
import threading
from typing import Any, Optional

from nextup_core.config import get_settings
from nextup_core.logging import get_logger

logger = get_logger(__name__)

# Global client reference, created once and shared by every component
_supabase_client = None
_client_lock = threading.Lock()


def get_supabase_client():
    """
    Return the shared Supabase client, creating it on first use.

    The shared client is only used anonymously. Never sign in through it:
    its auth session would be visible to every app session.

    Returns:
        Supabase client instance or None if credentials are not configured
    """
    global _supabase_client

    if _supabase_client is not None:
        return _supabase_client

    settings = get_settings()
    if not settings.is_configured:
        return None

    with _client_lock:
        if _supabase_client is None:
            from supabase import create_client

            try:
                _supabase_client = create_client(settings.supabase_url, settings.supabase_key)
                logger.info(f"Connected to Supabase at {settings.supabase_url}")
            except Exception as e:
                logger.error(f"Failed to initialize Supabase client: {e}")
                return None

    return _supabase_client


def create_session_client(settings: Any = None):
    """
    Create a client owned by one app session.

    Supabase Auth keeps the signed-in session inside the client instance,
    so every visitor needs their own client for sign-in and for requests
    made with their token. The shared handle stays anonymous.

    Returns:
        A new Supabase client, or None if credentials are not configured
    """
    settings = settings or get_settings()
    if not settings.is_configured:
        return None

    from supabase import ClientOptions, create_client

    # Tokens live in this instance only; nothing is written to shared storage
    options = ClientOptions(persist_session=False, auto_refresh_token=False)
    try:
        return create_client(settings.supabase_url, settings.supabase_key, options=options)
    except Exception as e:
        logger.error(f"Failed to initialize session client: {e}")
        return None


def set_supabase_client(client: Any) -> None:
    """Install an externally created client as the shared handle."""
    global _supabase_client
    with _client_lock:
        _supabase_client = client


def reset_supabase_client() -> None:
    """Drop the shared handle (tests, credential rotation)."""
    set_supabase_client(None)


async def create_realtime_client(access_token: Optional[str] = None):
    """
    Create an async Supabase client for a change-feed subscription.

    The synchronous client cannot open realtime channels, so each feed
    owns one async client bound to the event loop it runs on.
    """
    from supabase import acreate_client

    settings = get_settings()
    client = await acreate_client(settings.supabase_url, settings.supabase_key)
    if access_token:
        await client.realtime.set_auth(access_token)
    return client
