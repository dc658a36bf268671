from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ..core.enums import (
    ClauseKind,
    CompatibilityStatus,
    Level,
    MatchReason,
)


class YearRange(BaseModel):
    """Inclusive model-year range; end=None means open-ended."""

    model_config = ConfigDict(frozen=True)

    start: int
    end: Optional[int] = None

    @property
    def is_valid(self) -> bool:
        return self.end is None or self.start <= self.end

    def contains(self, year: int) -> bool:
        if year < self.start:
            return False
        return self.end is None or year <= self.end

    def __str__(self) -> str:
        if self.end is None:
            return f"{self.start}+"
        if self.end == self.start:
            return str(self.start)
        return f"{self.start}-{self.end}"


class CompatibilityClause(BaseModel):
    """Sets of makes/models/years/engines; an empty field places no constraint."""

    model_config = ConfigDict(frozen=True)

    makes: frozenset[str] = frozenset()
    models: frozenset[str] = frozenset()
    year_ranges: tuple[YearRange, ...] = ()
    engines: frozenset[str] = frozenset()

    def constrains(self, level: Level) -> bool:
        """Whether this clause restricts the given level at all."""
        if level is Level.BRAND:
            return bool(self.makes)
        if level is Level.MODEL:
            return bool(self.models)
        if level is Level.YEAR:
            return bool(self.year_ranges)
        return bool(self.engines)

    @property
    def constrained_levels(self) -> tuple[Level, ...]:
        return tuple(lvl for lvl in Level if self.constrains(lvl))

    def problems(self) -> list[str]:
        """Shape problems that make this clause untrustworthy."""
        return [
            f"year range {r.start}-{r.end} ends before it starts"
            for r in self.year_ranges
            if not r.is_valid
        ]


class CompatibilityDescriptor(CompatibilityClause):
    """Vehicle compatibility data attached to a catalog item.

    Include fields say which vehicles the item fits; any matching exclude
    clause overrides them and marks the item incompatible.
    """

    universal_fit: bool = False
    excludes: tuple[CompatibilityClause, ...] = ()
    # Problems found while parsing raw catalog data
    notes: tuple[str, ...] = ()

    def problems(self) -> list[str]:
        found = list(self.notes)
        found.extend(super().problems())
        for i, clause in enumerate(self.excludes):
            if not clause.constrained_levels:
                found.append(f"exclude clause {i} has no constraints")
            found.extend(f"exclude clause {i}: {p}" for p in clause.problems())
        return found

    @property
    def is_malformed(self) -> bool:
        return bool(self.problems())


class FieldCheck(BaseModel):
    """One evaluated level and whether the selection matched the clause.

    For an include clause a match is good for the item; for an exclude
    clause a match is what rules the item out.
    """

    model_config = ConfigDict(frozen=True)

    level: Level
    matched: bool
    clause: ClauseKind = ClauseKind.INCLUDE


class MatchVerdict(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: CompatibilityStatus
    reason: MatchReason
    fields: tuple[FieldCheck, ...] = ()
    notes: tuple[str, ...] = ()
    # Index into descriptor.excludes of the clause that forced incompatibility
    excluded_by: Optional[int] = None

    @property
    def is_compatible(self) -> bool:
        return self.status is CompatibilityStatus.COMPATIBLE

    @property
    def is_incompatible(self) -> bool:
        return self.status is CompatibilityStatus.INCOMPATIBLE

    @property
    def failed_levels(self) -> tuple[Level, ...]:
        """Levels that count against the item: include misses and exclude hits."""
        return tuple(
            f.level
            for f in self.fields
            if f.matched == (f.clause is ClauseKind.EXCLUDE)
        )


class VerdictCounts(BaseModel):
    compatible: int = 0
    partial_unknown: int = 0
    incompatible: int = 0
    total: int = Field(default=0, description="All items that were evaluated")
