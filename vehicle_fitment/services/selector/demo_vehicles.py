"""Hardcoded vehicle tree for local development, demos and tests.

Covers a handful of popular European models sold in Bulgaria. Engines are
(name, engine code) pairs so code-based compatibility can be exercised.
"""

from typing import Any

from .providers import InMemoryOptionsProvider

_BMW_3_SERIES_ENGINES = [("320i", "N20B20"), ("318d", "N47D20"), ("320d", "B47D20")]
_C_CLASS_ENGINES = [("C200", "M274"), ("C220d", "OM651")]
_A4_ENGINES = [("2.0 TFSI", "CVNA"), ("2.0 TDI", "CUNA")]
_GOLF_ENGINES = [("1.4 TSI", "CZCA"), ("2.0 TDI", "CRLB")]

DEMO_VEHICLES: dict[str, Any] = {
    "BMW": {
        "3 Series": {year: _BMW_3_SERIES_ENGINES for year in range(2019, 2011, -1)},
        "5 Series": {
            2017: [("520d", "B47D20"), ("530i", "B48B20")],
            2016: [("520d", "N47D20"), ("528i", "N20B20")],
        },
    },
    "Mercedes-Benz": {
        "C-Class": {year: _C_CLASS_ENGINES for year in range(2021, 2013, -1)},
    },
    "Audi": {
        "A4": {year: _A4_ENGINES for year in range(2023, 2014, -1)},
    },
    "Volkswagen": {
        "Golf": {year: _GOLF_ENGINES for year in range(2020, 2012, -1)},
    },
}

# Sample descriptor matching the demo tree
DEMO_COMPATIBILITY: dict[str, Any] = {
    "makes": ["BMW", "Mercedes-Benz", "Audi"],
    "models": ["3 Series", "C-Class", "A4"],
    "years": ["2012-2019", "2014-2021", "2015-2023"],
}


def demo_provider(delay: float = 0.0) -> InMemoryOptionsProvider:
    """An in-memory provider serving DEMO_VEHICLES."""
    return InMemoryOptionsProvider.from_tree(DEMO_VEHICLES, delay=delay)
