"""Supabase-backed vehicle option lists for the cascading selector.

Tables (all filtered on is_active):
    vehicle_brands   id, name
    vehicle_models   id, name, brand_id
    vehicle_years    id, year, model_id          (newest first)
    vehicle_engines  id, name, code, year_id     (most powerful first)
"""

import asyncio
import time
from typing import Any, Optional

from supabase import Client

from ..core.enums import Level
from ..core.errors import FetchError
from ..core.logging import log_db_query, log_error
from ..models.vehicle import Option
from ..utils.converters import safe_year
from .client import get_supabase_client

# table, parent column, order column, descending
_LEVEL_TABLES: dict[Level, tuple[str, Optional[str], str, bool]] = {
    Level.BRAND: ("vehicle_brands", None, "name", False),
    Level.MODEL: ("vehicle_models", "brand_id", "name", False),
    Level.YEAR: ("vehicle_years", "model_id", "year", True),
    Level.ENGINE: ("vehicle_engines", "year_id", "horsepower", True),
}


def row_to_option(level: Level, row: dict[str, Any]) -> Option:
    """Convert a vehicle table row into an Option."""
    _, parent_column, _, _ = _LEVEL_TABLES[level]
    parent_id = row.get(parent_column) if parent_column else None

    if level is Level.YEAR:
        year = safe_year(row.get("year"))
        return Option(
            id=row["id"],
            label=str(year) if year is not None else str(row.get("year", "")),
            parent_id=parent_id,
            year=year,
        )

    code = row.get("code") if level is Level.ENGINE else None
    return Option(
        id=row["id"],
        label=str(row.get("name") or row["id"]),
        parent_id=parent_id,
        code=str(code) if code else None,
    )


class SupabaseOptionsProvider:
    """OptionsProvider reading the vehicle_* tables.

    The Supabase client is synchronous, so queries run in a worker thread.
    """

    def __init__(self, client: Optional[Client] = None) -> None:
        self._client = client

    def _get_client(self) -> Client:
        if self._client is None:
            self._client = get_supabase_client()
        return self._client

    async def fetch_options(self, level: Level, parent_id: Optional[str]) -> list[Option]:
        table, parent_column, order_column, descending = _LEVEL_TABLES[level]
        if parent_column and parent_id is None:
            raise FetchError(level, parent_id, f"{parent_column} is required")

        client = self._get_client()

        def _do_query():
            query = client.table(table).select("*").eq("is_active", True)
            if parent_column:
                query = query.eq(parent_column, parent_id)
            return query.order(order_column, desc=descending).execute()

        start = time.time()
        try:
            result = await asyncio.to_thread(_do_query)
        except Exception as e:
            log_error("Vehicle options query failed", e, table=table, parent_id=parent_id)
            raise FetchError(level, parent_id, "vehicle data is unavailable") from e
        rows = result.data if isinstance(result.data, list) else []
        log_db_query("select", table, (time.time() - start) * 1000, rows=len(rows))

        return [
            row_to_option(level, row)
            for row in rows
            if isinstance(row, dict) and row.get("id") is not None
        ]
