"""Catalog filtering by vehicle compatibility.

Two display modes:
- strict:   only compatible items, in their original order
- show_all: every item, grouped compatible / partial_unknown / incompatible,
            original order kept inside each group (stable partition)
"""

from collections.abc import Callable, Iterable
from typing import Optional

from ..core.enums import STATUS_ORDER, CompatibilityStatus, FilterMode
from ..core.logging import logger
from ..models.catalog import CatalogItem, FilteredItem
from ..models.compatibility import CompatibilityDescriptor, MatchVerdict, VerdictCounts
from ..models.vehicle import VehicleSelection
from .compatibility import match

Matcher = Callable[[VehicleSelection, Optional[CompatibilityDescriptor]], MatchVerdict]


class CatalogFilter:
    """Applies the compatibility matcher across catalog items.

    Stateless; one instance can serve any number of concurrent readers.
    """

    def __init__(self, matcher: Matcher = match) -> None:
        self._matcher = matcher

    def evaluate(
        self, items: Iterable[CatalogItem], selection: VehicleSelection
    ) -> list[FilteredItem]:
        """Pair every item with its verdict, in input order."""
        return [
            FilteredItem(item=item, verdict=self._matcher(selection, item.descriptor))
            for item in items
        ]

    def filter(
        self,
        items: Iterable[CatalogItem],
        selection: VehicleSelection,
        mode: FilterMode = FilterMode.SHOW_ALL,
    ) -> list[FilteredItem]:
        """Filter and order items for display under the given mode."""
        evaluated = self.evaluate(items, selection)
        results = self.arrange(evaluated, mode)
        logger.debug(
            f"Catalog filter mode={mode.value} selection='{selection.path()}' "
            f"items={len(evaluated)} kept={len(results)}"
        )
        return results

    @staticmethod
    def arrange(
        evaluated: list[FilteredItem], mode: FilterMode = FilterMode.SHOW_ALL
    ) -> list[FilteredItem]:
        """Apply the display mode to already evaluated items."""
        if mode is FilterMode.STRICT:
            return [r for r in evaluated if r.verdict.is_compatible]

        groups: dict[CompatibilityStatus, list[FilteredItem]] = {
            status: [] for status in STATUS_ORDER
        }
        for result in evaluated:
            groups[result.verdict.status].append(result)
        return [r for status in STATUS_ORDER for r in groups[status]]


def count_by_status(results: Iterable[FilteredItem]) -> VerdictCounts:
    """Count results per verdict for badge and summary display."""
    counts = {status: 0 for status in STATUS_ORDER}
    total = 0
    for result in results:
        counts[result.verdict.status] += 1
        total += 1
    return VerdictCounts(
        compatible=counts[CompatibilityStatus.COMPATIBLE],
        partial_unknown=counts[CompatibilityStatus.PARTIAL_UNKNOWN],
        incompatible=counts[CompatibilityStatus.INCOMPATIBLE],
        total=total,
    )


# Shared stateless instance
catalog_filter = CatalogFilter()
