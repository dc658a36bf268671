from typing import Any, Optional

from pydantic import BaseModel, Field

from .compatibility import CompatibilityDescriptor, MatchVerdict


class CatalogItem(BaseModel):
    """A catalog product as seen by the compatibility filter."""

    id: str
    name: str = ""
    sku: str = ""
    slug: str = ""
    # None means the catalog has no compatibility data: treated as universal fit
    descriptor: Optional[CompatibilityDescriptor] = None
    attributes: dict[str, Any] = Field(default_factory=dict)


class FilteredItem(BaseModel):
    """A catalog item paired with its verdict, ready for badge rendering."""

    item: CatalogItem
    verdict: MatchVerdict
