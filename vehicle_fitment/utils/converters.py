"""Type conversion utilities for safely handling data from CSV/database.

This module is the single source of truth for safe type conversion.
All other modules should import from here instead of defining their own.
"""

import re
from typing import Any

# Years accepted as plausible model years
MIN_MODEL_YEAR = 1900
MAX_MODEL_YEAR = 2100

_YEAR_SPAN_RE = re.compile(r"^\s*(\d{4})\s*(?:(?:-|–|to)\s*(\d{4})?\s*\+?|\+)\s*$")


def safe_int(val: Any, default: int = 0) -> int:
    """Safely convert a value to int.

    Args:
        val: Value to convert (can be str, int, float, None, etc.)
        default: Value to return if conversion fails

    Returns:
        Converted int or default value

    Examples:
        >>> safe_int("42")
        42
        >>> safe_int(3.7)
        3
        >>> safe_int(None)
        0
    """
    if val is None or val == "" or isinstance(val, bool):
        return default
    try:
        return int(float(val))  # Handle "3.0" -> 3
    except (ValueError, TypeError):
        return default


def safe_year(val: Any) -> int | None:
    """Convert a value to a plausible model year, or None.

    Examples:
        >>> safe_year("2015")
        2015
        >>> safe_year("3 Series")
        >>> safe_year(15)
    """
    year = safe_int(val, default=0)
    if MIN_MODEL_YEAR <= year <= MAX_MODEL_YEAR:
        return year
    return None


def parse_year_span(val: Any) -> tuple[int, int | None] | None:
    """Parse a year or year span into an inclusive (start, end) pair.

    End is None for open-ended spans ("2019-" or "2019+").

    Examples:
        >>> parse_year_span("2012-2019")
        (2012, 2019)
        >>> parse_year_span(2015)
        (2015, 2015)
        >>> parse_year_span("2019+")
        (2019, None)
        >>> parse_year_span("soon")
    """
    if isinstance(val, bool):
        return None
    if isinstance(val, (int, float)):
        year = safe_year(val)
        return (year, year) if year is not None else None
    if not isinstance(val, str):
        return None

    text = val.strip()
    year = safe_year(text) if text.isdigit() else None
    if year is not None:
        return (year, year)

    match = _YEAR_SPAN_RE.match(text)
    if not match:
        return None
    start = safe_year(match.group(1))
    if start is None:
        return None
    end = safe_year(match.group(2)) if match.group(2) else None
    return (start, end)


TRUE_VALUES = frozenset({"1", "true", "yes", "y", "да"})
FALSE_VALUES = frozenset({"0", "false", "no", "n", "не", ""})


def safe_bool(val: Any) -> bool | None:
    """Read a yes/no flag from JSON or a spreadsheet cell.

    Returns None when the value is not a recognizable flag.

    Examples:
        >>> safe_bool("Yes")
        True
        >>> safe_bool("false")
        False
        >>> safe_bool("maybe")
    """
    if isinstance(val, bool):
        return val
    if val is None:
        return False
    if isinstance(val, int) and val in (0, 1):
        return bool(val)
    if isinstance(val, str):
        text = val.strip().lower()
        if text in TRUE_VALUES:
            return True
        if text in FALSE_VALUES:
            return False
    return None
