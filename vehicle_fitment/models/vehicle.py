from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from ..core.enums import LEVEL_ORDER, Level
from ..utils.converters import safe_year


class Option(BaseModel):
    """A selectable value at one level (a brand, a model, a year or an engine)."""

    model_config = ConfigDict(frozen=True)

    id: str
    label: str
    parent_id: Optional[str] = None
    # Engine code such as "N47D20"; matched alongside id and label
    code: Optional[str] = None
    # Model year for year-level options
    year: Optional[int] = None

    @field_validator("id", "parent_id", mode="before")
    @classmethod
    def coerce_identifier(cls, value: Any) -> Any:
        """Database ids arrive as ints or UUIDs; store them as strings."""
        if value is None or isinstance(value, str):
            return value
        return str(value)

    @property
    def match_keys(self) -> frozenset[str]:
        """Normalized names this option can be matched by."""
        keys = {normalize_key(self.id), normalize_key(self.label)}
        if self.code:
            keys.add(normalize_key(self.code))
        keys.discard("")
        return frozenset(keys)

    @property
    def year_value(self) -> Optional[int]:
        """The model year this option stands for, if it is a year option."""
        if self.year is not None:
            return self.year
        return safe_year(self.label) or safe_year(self.id)


def normalize_key(value: Any) -> str:
    """Case- and whitespace-insensitive comparison key."""
    return " ".join(str(value).split()).casefold()


class VehicleSelection(BaseModel):
    """An immutable, internally consistent Brand/Model/Year/Engine selection.

    A level can only be set when every shallower level is set, and each
    option's parent_id must equal the id of the option one level up.
    """

    model_config = ConfigDict(frozen=True)

    brand: Optional[Option] = None
    model: Optional[Option] = None
    year: Optional[Option] = None
    engine: Optional[Option] = None

    @model_validator(mode="after")
    def check_chain(self) -> "VehicleSelection":
        parent: Optional[Option] = None
        gap_at: Optional[Level] = None
        for level in LEVEL_ORDER:
            option = self.get(level)
            if option is None:
                gap_at = gap_at or level
                continue
            if gap_at is not None:
                raise ValueError(
                    f"{level.value} is selected while {gap_at.value} is not"
                )
            if parent is not None and option.parent_id != parent.id:
                raise ValueError(
                    f"{level.value} option '{option.id}' does not belong to "
                    f"{level.parent.value} '{parent.id}'"  # type: ignore[union-attr]
                )
            if level is Level.YEAR and option.year_value is None:
                raise ValueError(f"year option '{option.id}' has no model year")
            parent = option
        return self

    def get(self, level: Level) -> Optional[Option]:
        return getattr(self, level.value)

    def with_option(self, level: Level, option: Option) -> "VehicleSelection":
        """Return a new selection with `level` set and every deeper level cleared."""
        values = {lvl.value: self.get(lvl) for lvl in LEVEL_ORDER if lvl < level}
        values[level.value] = option
        return VehicleSelection(**values)

    def up_to(self, level: Level) -> "VehicleSelection":
        """Return a copy keeping only `level` and the levels above it."""
        return VehicleSelection(
            **{lvl.value: self.get(lvl) for lvl in LEVEL_ORDER if lvl <= level}
        )

    @property
    def selected_levels(self) -> tuple[Level, ...]:
        return tuple(lvl for lvl in LEVEL_ORDER if self.get(lvl) is not None)

    @property
    def deepest_level(self) -> Optional[Level]:
        levels = self.selected_levels
        return levels[-1] if levels else None

    @property
    def is_empty(self) -> bool:
        return self.brand is None

    @property
    def is_complete(self) -> bool:
        return self.engine is not None

    @property
    def year_value(self) -> Optional[int]:
        return self.year.year_value if self.year else None

    def path(self, separator: str = " > ") -> str:
        """Breadcrumb such as 'BMW > 3 Series > 2015 > 320d'."""
        return separator.join(
            option.label for option in (self.get(lvl) for lvl in LEVEL_ORDER) if option
        )

    def summary(self) -> Optional[str]:
        """Human readable summary such as 'BMW 3 Series (2015) - 320d'."""
        if self.brand is None:
            return None
        parts = [self.brand.label]
        if self.model:
            parts.append(self.model.label)
        if self.year:
            parts.append(f"({self.year.label})")
        if self.engine:
            parts.append(f"- {self.engine.label}")
        return " ".join(parts)

    @classmethod
    def from_values(
        cls,
        brand: Optional[str] = None,
        model: Optional[str] = None,
        year: Optional[int | str] = None,
        engine: Optional[str] = None,
        engine_code: Optional[str] = None,
    ) -> "VehicleSelection":
        """Build a selection from plain names, chaining parent ids automatically.

        Each option's id is its label, so the result matches descriptors
        that list makes/models/engines by name. A value given below a
        missing level fails validation.

        Examples:
            >>> VehicleSelection.from_values("BMW", "3 Series", 2015).path()
            'BMW > 3 Series > 2015'
        """
        values: dict[str, Option] = {}
        parent_id: Optional[str] = None
        raw = {
            Level.BRAND: brand,
            Level.MODEL: model,
            Level.YEAR: year,
            Level.ENGINE: engine,
        }
        for level in LEVEL_ORDER:
            value = raw[level]
            if value is None or str(value).strip() == "":
                continue
            label = str(value).strip()
            values[level.value] = Option(
                id=label,
                label=label,
                parent_id=parent_id,
                code=engine_code if level is Level.ENGINE else None,
                year=safe_year(label) if level is Level.YEAR else None,
            )
            parent_id = label
        return cls(**values)
