#!/usr/bin/env python
"""Walk the cascading selector over the demo vehicle tree and filter a small catalog.

Usage:
    uv run python scripts/demo_selector.py
    uv run python scripts/demo_selector.py --brand Audi --model A4 --year 2018 --mode strict
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from vehicle_fitment.core.enums import FilterMode, Level
from vehicle_fitment.core.logging import setup_logging
from vehicle_fitment.models.catalog import CatalogItem
from vehicle_fitment.services.catalog_filter import catalog_filter, count_by_status
from vehicle_fitment.services.descriptors import parse_descriptor
from vehicle_fitment.services.selector import SelectionStateMachine
from vehicle_fitment.services.selector.demo_vehicles import (
    DEMO_COMPATIBILITY,
    demo_provider,
)

SAMPLE_ITEMS = [
    CatalogItem(id="1", name="Oil filter", sku="OF-N47", descriptor=parse_descriptor(
        {"makes": ["BMW"], "engineCodes": ["N47D20", "B47D20"]}
    )),
    CatalogItem(id="2", name="Brake pads (front)", sku="BP-100", descriptor=parse_descriptor(
        DEMO_COMPATIBILITY
    )),
    CatalogItem(id="3", name="Wiper blades 600mm", sku="WB-600", descriptor=None),
    CatalogItem(id="4", name="Timing chain kit", sku="TC-N20", descriptor=parse_descriptor(
        {"makes": ["BMW"], "years": ["2012-2016"], "excludes": {"engines": ["318d"]}}
    )),
    CatalogItem(id="5", name="Air filter", sku="AF-CVNA", descriptor=parse_descriptor(
        {"makes": ["Audi"], "models": ["A4"], "engines": ["CVNA"]}
    )),
]


def _pick(machine: SelectionStateMachine, level: Level, label: str | None) -> bool:
    if not label:
        return False
    option = next(
        (o for o in machine.options_for(level) if o.label.lower() == label.lower()),
        None,
    )
    if option is None:
        labels = ", ".join(o.label for o in machine.options_for(level))
        print(f"Unknown {level.value} '{label}'. Available: {labels}")
        return False
    machine.select(level, option.id)
    return True


async def run(args: argparse.Namespace) -> None:
    machine = SelectionStateMachine(demo_provider())
    machine.start()
    await machine.wait_idle()

    for level, label in (
        (Level.BRAND, args.brand),
        (Level.MODEL, args.model),
        (Level.YEAR, args.year),
        (Level.ENGINE, args.engine),
    ):
        if not _pick(machine, level, label):
            break
        await machine.wait_idle()

    selection = machine.current_selection()
    mode = FilterMode.from_string(args.mode)
    results = catalog_filter.filter(SAMPLE_ITEMS, selection, mode)
    counts = count_by_status(catalog_filter.evaluate(SAMPLE_ITEMS, selection))

    print(f"\nVehicle: {selection.summary() or '(none selected)'}")
    print(f"Mode: {mode.value}\n")
    for result in results:
        print(
            f"  [{result.verdict.status.value:>15}] {result.item.name:<22} "
            f"({result.verdict.reason.value})"
        )
    print(
        f"\n{counts.compatible} compatible, {counts.partial_unknown} unknown, "
        f"{counts.incompatible} incompatible of {counts.total}"
    )


def main():
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--brand", default="BMW")
    parser.add_argument("--model", default="3 Series")
    parser.add_argument("--year", default="2015")
    parser.add_argument("--engine", default=None)
    parser.add_argument("--mode", default="show_all", help="strict or show_all")
    args = parser.parse_args()

    setup_logging("WARNING")
    asyncio.run(run(args))


if __name__ == "__main__":
    main()
