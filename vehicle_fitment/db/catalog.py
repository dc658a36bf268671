"""Catalog reads and compatibility writes against the Supabase products table."""

import asyncio
import time
from typing import Any, Optional

from supabase import Client

from ..core.config import get_settings
from ..core.logging import log_db_query, logger
from ..models.catalog import CatalogItem
from ..models.compatibility import CompatibilityDescriptor
from ..services.descriptors import descriptor_to_dict, parse_descriptor
from .client import get_supabase_client

_PRODUCT_COLUMNS = "id, sku, name, slug, price, stock, category_id, brand_id, compatibility"


def row_to_item(row: dict[str, Any]) -> CatalogItem:
    """Convert a products row into a CatalogItem.

    A NULL compatibility column stays None (universal fit); anything else is
    parsed, with problems recorded on the descriptor rather than raised.
    """
    raw = row.get("compatibility")
    descriptor = parse_descriptor(raw) if raw is not None else None
    attributes = {
        k: row[k]
        for k in ("price", "stock", "category_id", "brand_id")
        if row.get(k) is not None
    }
    return CatalogItem(
        id=str(row["id"]),
        name=str(row.get("name") or ""),
        sku=str(row.get("sku") or ""),
        slug=str(row.get("slug") or ""),
        descriptor=descriptor,
        attributes=attributes,
    )


async def fetch_catalog_items(
    category_id: Optional[str] = None,
    limit: Optional[int] = None,
    client: Optional[Client] = None,
) -> list[CatalogItem]:
    """Fetch active, non-deleted products with their compatibility data."""
    settings = get_settings()
    table = settings.products_table
    client = client or get_supabase_client()
    limit = limit or settings.catalog_page_limit

    def _do_query():
        query = (
            client.table(table)
            .select(_PRODUCT_COLUMNS)
            .eq("is_active", True)
            .eq("is_deleted", False)
        )
        if category_id:
            query = query.eq("category_id", category_id)
        return query.order("name").limit(limit).execute()

    start = time.time()
    result = await asyncio.to_thread(_do_query)
    rows = result.data if isinstance(result.data, list) else []
    log_db_query("select", table, (time.time() - start) * 1000, rows=len(rows))

    return [
        row_to_item(row) for row in rows if isinstance(row, dict) and row.get("id") is not None
    ]


def update_compatibility(
    sku: str,
    descriptor: CompatibilityDescriptor,
    client: Optional[Client] = None,
) -> int:
    """Write a descriptor to the product with the given SKU.

    Returns:
        Number of rows updated
    """
    settings = get_settings()
    client = client or get_supabase_client()
    start = time.time()
    result = (
        client.table(settings.products_table)
        .update({"compatibility": descriptor_to_dict(descriptor)})
        .eq("sku", sku)
        .execute()
    )
    log_db_query("update", settings.products_table, (time.time() - start) * 1000)
    updated = len(result.data) if isinstance(result.data, list) else 0
    if not updated:
        logger.warning(f"No product found for sku={sku}")
    return updated
