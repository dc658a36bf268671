"""FastAPI dependency injection for services."""

import time
from typing import Annotated, Any

from fastapi import Depends

from supabase import Client

from ..db.client import get_supabase_client
from ..db.vehicles import SupabaseOptionsProvider
from ..services.catalog_filter import CatalogFilter, catalog_filter
from ..services.selector.providers import CachedOptionsProvider, OptionsProvider
from .config import Settings, get_settings
from .logging import log_db_query, log_external_call

# -----------------------------------------------------------------------------
# Supabase Client
# -----------------------------------------------------------------------------


def get_supabase() -> Client:
    """Dependency for the shared Supabase client."""
    return get_supabase_client()


# -----------------------------------------------------------------------------
# Vehicle Options
# -----------------------------------------------------------------------------

_options_provider: OptionsProvider | None = None


def get_options_provider(
    settings: Annotated[Settings, Depends(get_settings)],
    supabase: Annotated[Client, Depends(get_supabase)],
) -> OptionsProvider:
    """Dependency for the cached, Supabase-backed options provider."""
    global _options_provider
    if _options_provider is None:
        _options_provider = CachedOptionsProvider(
            SupabaseOptionsProvider(supabase),
            maxsize=settings.options_cache_maxsize,
            ttl=settings.options_cache_ttl,
        )
    return _options_provider


def get_catalog_filter() -> CatalogFilter:
    """Dependency for the stateless catalog filter."""
    return catalog_filter


# -----------------------------------------------------------------------------
# Health Check Helpers
# -----------------------------------------------------------------------------


async def check_supabase_health(supabase: Client) -> dict[str, Any]:
    """Check Supabase connectivity."""
    start = time.time()
    try:
        supabase.table("vehicle_brands").select("id").limit(1).execute()
        duration_ms = (time.time() - start) * 1000
        log_db_query("health_check", "vehicle_brands", duration_ms)
        return {
            "status": "healthy",
            "latency_ms": round(duration_ms, 2),
        }
    except Exception as e:
        duration_ms = (time.time() - start) * 1000
        log_external_call("supabase", "health_check", False, duration_ms)
        return {
            "status": "unhealthy",
            "error": str(e),
            "latency_ms": round(duration_ms, 2),
        }
