#!/usr/bin/env python
"""Validate a compatibility CSV and optionally write it to the products table.

Usage:
    uv run python scripts/load_compatibility.py datafiles/compatibility.csv
    uv run python scripts/load_compatibility.py datafiles/compatibility.csv --write
"""

import argparse
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from vehicle_fitment.db.catalog import update_compatibility
from vehicle_fitment.services.compatibility_import import load_compatibility_csv


def main():
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("csv_path", type=Path)
    parser.add_argument(
        "--write", action="store_true", help="Update products in Supabase"
    )
    parser.add_argument(
        "--skip-malformed",
        action="store_true",
        help="Write valid rows even when some rows are malformed",
    )
    args = parser.parse_args()

    if not args.csv_path.exists():
        print(f"Error: CSV file not found at {args.csv_path}")
        sys.exit(1)

    rows = load_compatibility_csv(args.csv_path)
    malformed = [r for r in rows if not r.is_valid]
    for row in malformed:
        print(f"  line {row.line} sku={row.sku}: {'; '.join(row.problems)}")
    print(f"{len(rows)} rows, {len(malformed)} malformed")

    if not args.write:
        return
    if malformed and not args.skip_malformed:
        print("Refusing to write: fix malformed rows or pass --skip-malformed")
        sys.exit(1)

    updated = 0
    for row in rows:
        if row.is_valid:
            updated += update_compatibility(row.sku, row.descriptor)
    print(f"Updated compatibility on {updated} products")


if __name__ == "__main__":
    main()
