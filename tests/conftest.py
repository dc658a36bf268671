"""Shared fixtures: an in-memory stand-in for the Supabase query builder."""

from types import SimpleNamespace

import pytest


class FakeQuery:
    """Supports the select/eq/order/limit/update chain the app uses."""

    def __init__(self, rows: list[dict], fail: bool = False):
        self._rows = rows
        self._fail = fail
        self._filters: list[tuple[str, object]] = []
        self._order: tuple[str, bool] | None = None
        self._limit: int | None = None
        self._update: dict | None = None

    def select(self, columns="*"):
        return self

    def eq(self, column, value):
        self._filters.append((column, value))
        return self

    def order(self, column, desc=False):
        self._order = (column, desc)
        return self

    def limit(self, count):
        self._limit = count
        return self

    def update(self, values):
        self._update = values
        return self

    def execute(self):
        if self._fail:
            raise ConnectionError("supabase unreachable")
        rows = [
            r for r in self._rows if all(r.get(c) == v for c, v in self._filters)
        ]
        if self._update is not None:
            for row in rows:
                row.update(self._update)
        if self._order:
            column, desc = self._order
            rows = sorted(rows, key=lambda r: r.get(column) or 0, reverse=desc)
        if self._limit is not None:
            rows = rows[: self._limit]
        return SimpleNamespace(data=[dict(r) for r in rows])


class FakeSupabase:
    def __init__(self, tables: dict[str, list[dict]] | None = None, fail: bool = False):
        self.tables = tables or {}
        self.fail = fail

    def table(self, name):
        return FakeQuery(self.tables.setdefault(name, []), fail=self.fail)


VEHICLE_TABLES = {
    "vehicle_brands": [
        {"id": 2, "name": "BMW", "is_active": True},
        {"id": 1, "name": "Audi", "is_active": True},
        {"id": 3, "name": "Trabant", "is_active": False},
    ],
    "vehicle_models": [
        {"id": 20, "name": "3 Series", "brand_id": "2", "is_active": True},
        {"id": 10, "name": "A4", "brand_id": "1", "is_active": True},
    ],
    "vehicle_years": [
        {"id": 200, "year": 2014, "model_id": "20", "is_active": True},
        {"id": 201, "year": 2015, "model_id": "20", "is_active": True},
    ],
    "vehicle_engines": [
        {"id": 2000, "name": "318d", "code": "N47D20", "horsepower": 143, "year_id": "201", "is_active": True},
        {"id": 2001, "name": "320d", "code": "B47D20", "horsepower": 190, "year_id": "201", "is_active": True},
    ],
}


PRODUCTS = [
    {
        "id": 1,
        "sku": "BP-100",
        "name": "Brake pads",
        "price": 89.9,
        "is_active": True,
        "is_deleted": False,
        "compatibility": {"makes": ["Audi"]},
    },
    {
        "id": 2,
        "sku": "OF-N47",
        "name": "Oil filter",
        "is_active": True,
        "is_deleted": False,
        "compatibility": {"makes": ["BMW"], "years": ["2012-2019"]},
    },
    {
        "id": 3,
        "sku": "WB-600",
        "name": "Wiper blades",
        "is_active": True,
        "is_deleted": False,
        "compatibility": None,
    },
    {
        "id": 4,
        "sku": "OLD-1",
        "name": "Discontinued",
        "is_active": True,
        "is_deleted": True,
        "compatibility": None,
    },
]


@pytest.fixture
def fake_supabase():
    tables = {name: [dict(r) for r in rows] for name, rows in VEHICLE_TABLES.items()}
    tables["products"] = [dict(r) for r in PRODUCTS]
    return FakeSupabase(tables)


@pytest.fixture
def failing_supabase():
    return FakeSupabase(fail=True)
