"""The process-wide Supabase client, created on first use."""

import threading

from supabase import Client, create_client

from ..core.config import get_settings
from ..core.logging import logger

_supabase: Client | None = None
_client_lock = threading.Lock()


def get_supabase_client() -> Client:
    """Return the shared client, creating it under a lock on first call.

    Raises:
        ValueError: SUPABASE_URL or SUPABASE_KEY is not configured
    """
    global _supabase
    if _supabase is None:
        with _client_lock:
            if _supabase is None:
                settings = get_settings()
                if not settings.supabase_url or not settings.supabase_key:
                    raise ValueError("SUPABASE_URL and SUPABASE_KEY must be set")
                _supabase = create_client(settings.supabase_url, settings.supabase_key)
                logger.info("Supabase client created")
    return _supabase

