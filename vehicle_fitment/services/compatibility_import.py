"""Bulk import of product compatibility from a spreadsheet export (CSV).

Expected columns (list cells separated by ';' or '|'):

    sku, makes, models, years, engines, universal_fit,
    exclude_makes, exclude_models, exclude_years, exclude_engines

Alternatively a single `compatibility` column holding the JSON object.
"""

import json
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pandas as pd

from ..core.logging import logger
from ..models.compatibility import CompatibilityDescriptor
from ..utils.converters import safe_bool
from .descriptors import parse_descriptor

_LIST_SPLIT_RE = re.compile(r"[;|]")

_INCLUDE_COLUMNS = ("makes", "models", "years", "engines")


@dataclass
class ImportRow:
    sku: str
    descriptor: CompatibilityDescriptor
    line: int
    problems: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.problems


def _split_cell(value: Any) -> list[str]:
    if value is None or value == "":
        return []
    return [part.strip() for part in _LIST_SPLIT_RE.split(str(value)) if part.strip()]


def row_to_raw(row: dict[str, Any]) -> dict[str, Any] | None:
    """Turn one CSV row into the raw compatibility JSON shape.

    Returns None when the row carries no compatibility data at all.
    """
    if row.get("compatibility"):
        return json.loads(str(row["compatibility"]))

    raw: dict[str, Any] = {
        column: _split_cell(row.get(column)) for column in _INCLUDE_COLUMNS
    }
    cell = row.get("universal_fit")
    flag = safe_bool(cell)
    # Unrecognized flags pass through so the parser reports them
    raw["universalFit"] = cell if flag is None else flag

    exclude = {
        column: _split_cell(row.get(f"exclude_{column}")) for column in _INCLUDE_COLUMNS
    }
    if any(exclude.values()):
        raw["excludes"] = [{k: v for k, v in exclude.items() if v}]

    if not raw["universalFit"] and not any(raw[c] for c in _INCLUDE_COLUMNS) and "excludes" not in raw:
        return None
    return {k: v for k, v in raw.items() if v}


def load_compatibility_csv(csv_path: str | Path) -> list[ImportRow]:
    """Read a compatibility CSV and parse every row into a descriptor.

    Rows without a SKU are skipped. Malformed data never raises; it is
    reported on the row's `problems`.
    """
    df = pd.read_csv(csv_path, dtype=str)
    df = df.fillna("")

    rows: list[ImportRow] = []
    for index, row in df.iterrows():
        row_dict = row.to_dict()
        # Header is line 1
        line = int(index) + 2  # type: ignore[call-overload]
        sku = str(row_dict.get("sku", "")).strip()
        if not sku:
            logger.warning(f"Skipping line {line}: missing sku")
            continue

        try:
            raw = row_to_raw(row_dict)
        except json.JSONDecodeError:
            descriptor = CompatibilityDescriptor(notes=("compatibility is not valid JSON",))
        else:
            descriptor = parse_descriptor(raw)

        rows.append(
            ImportRow(sku=sku, descriptor=descriptor, line=line, problems=descriptor.problems())
        )

    invalid = sum(1 for r in rows if not r.is_valid)
    logger.info(f"Parsed {len(rows)} compatibility rows from {csv_path} ({invalid} malformed)")
    return rows
