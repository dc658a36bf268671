"""Parsing of raw catalog compatibility JSON into CompatibilityDescriptor.

The storefront's `products.compatibility` column has accumulated several
shapes over time. All of these are accepted:

    {"makes": ["BMW"], "models": ["3 Series"], "years": ["2012-2019", 2020]}
    {"makes": ["BMW"], "yearRanges": [[2012, 2019], {"from": 2020, "to": null}]}
    {"engines": ["320d"], "engineCodes": ["N47D20"]}
    {"universalFit": true}
    {"makes": ["BMW"], "excludes": {"engines": ["M57"]}}

Missing or empty data means "no constraints" (universal fit). Pieces that
cannot be parsed are recorded in `descriptor.notes`; the matcher then
reports the item as partial_unknown instead of hiding it.
"""

import json
from typing import Any

from ..core.logging import logger
from ..models.compatibility import CompatibilityClause, CompatibilityDescriptor, YearRange
from ..utils.converters import parse_year_span, safe_bool, safe_year

# Accepted key spellings (camelCase from the web app, snake_case from scripts)
_KEY_ALIASES: dict[str, tuple[str, ...]] = {
    "makes": ("makes", "brands", "make"),
    "models": ("models", "model"),
    "years": ("years",),
    "year_ranges": ("year_ranges", "yearRanges"),
    "engines": ("engines", "engine"),
    "engine_codes": ("engine_codes", "engineCodes"),
    "universal_fit": ("universal_fit", "universalFit", "universal"),
    "excludes": ("excludes", "exclude"),
}


def _get(raw: dict[str, Any], key: str) -> Any:
    for alias in _KEY_ALIASES[key]:
        if alias in raw:
            return raw[alias]
    return None


def _parse_names(value: Any, field: str, notes: list[str]) -> frozenset[str]:
    """Parse a list (or single string) of names into a set."""
    if value is None:
        return frozenset()
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple, set, frozenset)):
        notes.append(f"{field} is not a list")
        return frozenset()

    names = set()
    for entry in value:
        if isinstance(entry, (str, int)) and not isinstance(entry, bool):
            text = str(entry).strip()
            if text:
                names.add(text)
        else:
            notes.append(f"{field} entry {entry!r} is not a name")
    return frozenset(names)


def _parse_range_entry(entry: Any) -> tuple[int, int | None] | None:
    if isinstance(entry, dict):
        start = safe_year(entry.get("from", entry.get("start")))
        if start is None:
            return None
        end_raw = entry.get("to", entry.get("end"))
        if end_raw is None:
            return (start, None)
        end = safe_year(end_raw)
        return (start, end) if end is not None else None

    if isinstance(entry, (list, tuple)) and len(entry) == 2:
        start = safe_year(entry[0])
        if start is None:
            return None
        if entry[1] is None:
            return (start, None)
        end = safe_year(entry[1])
        return (start, end) if end is not None else None

    return parse_year_span(entry)


def _parse_year_ranges(raw: dict[str, Any], notes: list[str]) -> tuple[YearRange, ...]:
    entries: list[Any] = []
    for key in ("year_ranges", "years"):
        value = _get(raw, key)
        if value is None:
            continue
        if isinstance(value, (str, int, dict)):
            value = [value]
        if not isinstance(value, (list, tuple)):
            notes.append(f"{key} is not a list")
            continue
        entries.extend(value)

    ranges: list[YearRange] = []
    for entry in entries:
        span = _parse_range_entry(entry)
        if span is None:
            notes.append(f"unreadable year entry {entry!r}")
            continue
        ranges.append(YearRange(start=span[0], end=span[1]))
    return tuple(ranges)


def parse_clause(raw: dict[str, Any], notes: list[str]) -> CompatibilityClause:
    """Parse the include-shaped fields shared by descriptors and excludes."""
    engines = _parse_names(_get(raw, "engines"), "engines", notes)
    engines |= _parse_names(_get(raw, "engine_codes"), "engine_codes", notes)
    return CompatibilityClause(
        makes=_parse_names(_get(raw, "makes"), "makes", notes),
        models=_parse_names(_get(raw, "models"), "models", notes),
        year_ranges=_parse_year_ranges(raw, notes),
        engines=engines,
    )


def parse_descriptor(raw: Any) -> CompatibilityDescriptor:
    """Build a CompatibilityDescriptor from raw catalog data.

    Args:
        raw: dict, JSON string, None, or an existing descriptor

    Returns:
        Parsed descriptor. Unparseable input yields a descriptor whose
        `notes` explain what was wrong.
    """
    if isinstance(raw, CompatibilityDescriptor):
        return raw
    if raw is None or raw == "" or raw == {}:
        return CompatibilityDescriptor(universal_fit=True)

    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError:
            logger.debug(f"Unparseable compatibility JSON: {raw[:80]!r}")
            return CompatibilityDescriptor(notes=("compatibility is not valid JSON",))
        if raw is None or raw == {}:
            return CompatibilityDescriptor(universal_fit=True)

    if not isinstance(raw, dict):
        return CompatibilityDescriptor(notes=("compatibility is not an object",))

    notes: list[str] = []
    include = parse_clause(raw, notes)

    excludes: list[CompatibilityClause] = []
    raw_excludes = _get(raw, "excludes")
    if isinstance(raw_excludes, dict):
        raw_excludes = [raw_excludes]
    if raw_excludes is not None:
        if isinstance(raw_excludes, list):
            for entry in raw_excludes:
                if isinstance(entry, dict):
                    excludes.append(parse_clause(entry, notes))
                else:
                    notes.append(f"exclude entry {entry!r} is not an object")
        else:
            notes.append("excludes is not a list")

    universal_fit = safe_bool(_get(raw, "universal_fit"))
    if universal_fit is None:
        notes.append(f"universal_fit value {_get(raw, 'universal_fit')!r} is not a flag")
        universal_fit = False

    return CompatibilityDescriptor(
        makes=include.makes,
        models=include.models,
        year_ranges=include.year_ranges,
        engines=include.engines,
        universal_fit=universal_fit,
        excludes=tuple(excludes),
        notes=tuple(notes),
    )


def descriptor_to_dict(descriptor: CompatibilityDescriptor) -> dict[str, Any]:
    """Serialize a descriptor back to the catalog's JSON shape."""

    def _clause(clause: CompatibilityClause) -> dict[str, Any]:
        return {
            "makes": sorted(clause.makes),
            "models": sorted(clause.models),
            "yearRanges": [[r.start, r.end] for r in clause.year_ranges],
            "engines": sorted(clause.engines),
        }

    data = _clause(descriptor)
    data["universalFit"] = descriptor.universal_fit
    data["excludes"] = [_clause(c) for c in descriptor.excludes]
    return data
