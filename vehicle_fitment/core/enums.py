"""Enums for vehicle selection and compatibility constants."""

from enum import Enum


class Level(str, Enum):
    """The four cascading vehicle selection steps, shallowest first."""

    BRAND = "brand"
    MODEL = "model"
    YEAR = "year"
    ENGINE = "engine"

    @property
    def depth(self) -> int:
        return LEVEL_ORDER.index(self)

    @property
    def parent(self) -> "Level | None":
        """The level one step up, or None for BRAND."""
        if self.depth == 0:
            return None
        return LEVEL_ORDER[self.depth - 1]

    @property
    def next_level(self) -> "Level | None":
        """The level one step down, or None for ENGINE."""
        if self.depth + 1 >= len(LEVEL_ORDER):
            return None
        return LEVEL_ORDER[self.depth + 1]

    def deeper(self) -> tuple["Level", ...]:
        """All levels strictly below this one, in order."""
        return LEVEL_ORDER[self.depth + 1 :]

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Level):
            return NotImplemented
        return self.depth < other.depth

    def __le__(self, other: object) -> bool:
        if not isinstance(other, Level):
            return NotImplemented
        return self.depth <= other.depth

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, Level):
            return NotImplemented
        return self.depth > other.depth

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, Level):
            return NotImplemented
        return self.depth >= other.depth

    @classmethod
    def from_string(cls, value: str | None) -> "Level | None":
        """Convert string to enum, handling the storefront's aliases."""
        if not value:
            return None
        mappings = {
            "brand": cls.BRAND,
            "make": cls.BRAND,
            "model": cls.MODEL,
            "year": cls.YEAR,
            "engine": cls.ENGINE,
        }
        return mappings.get(value.lower().strip())


LEVEL_ORDER: tuple[Level, ...] = (Level.BRAND, Level.MODEL, Level.YEAR, Level.ENGINE)


class LevelStatus(str, Enum):
    """Load status of a single level's option list."""

    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    ERROR = "error"


class CompatibilityStatus(str, Enum):
    """Tri-state outcome of matching a selection against a descriptor."""

    COMPATIBLE = "compatible"
    PARTIAL_UNKNOWN = "partial_unknown"
    INCOMPATIBLE = "incompatible"

    @property
    def rank(self) -> int:
        """Display group order: compatible first, incompatible last."""
        return STATUS_ORDER.index(self)


STATUS_ORDER: tuple[CompatibilityStatus, ...] = (
    CompatibilityStatus.COMPATIBLE,
    CompatibilityStatus.PARTIAL_UNKNOWN,
    CompatibilityStatus.INCOMPATIBLE,
)


class MatchReason(str, Enum):
    """Why the matcher reached its verdict."""

    NO_SELECTION = "no_selection"
    UNIVERSAL_FIT = "universal_fit"
    ALL_SELECTED_MATCH = "all_selected_match"
    SELECTION_INCOMPLETE = "selection_incomplete"
    MAKE_MISMATCH = "make_mismatch"
    MODEL_MISMATCH = "model_mismatch"
    YEAR_OUT_OF_RANGE = "year_out_of_range"
    ENGINE_MISMATCH = "engine_mismatch"
    EXCLUDED = "excluded"
    MALFORMED_DESCRIPTOR = "malformed_descriptor"


# Reason reported when a given level fails the include pass
MISMATCH_REASONS: dict[Level, MatchReason] = {
    Level.BRAND: MatchReason.MAKE_MISMATCH,
    Level.MODEL: MatchReason.MODEL_MISMATCH,
    Level.YEAR: MatchReason.YEAR_OUT_OF_RANGE,
    Level.ENGINE: MatchReason.ENGINE_MISMATCH,
}


class ClauseKind(str, Enum):
    """Which part of a descriptor produced a field check."""

    INCLUDE = "include"
    EXCLUDE = "exclude"


class FilterMode(str, Enum):
    """How the catalog filter treats non-compatible items."""

    STRICT = "strict"
    SHOW_ALL = "show_all"

    @classmethod
    def from_string(cls, value: str | None) -> "FilterMode":
        """Convert string to enum, defaulting to SHOW_ALL."""
        if not value:
            return cls.SHOW_ALL
        mappings = {
            "strict": cls.STRICT,
            "strict_compatible_only": cls.STRICT,
            "strictcompatibleonly": cls.STRICT,
            "compatible_only": cls.STRICT,
            "show_all": cls.SHOW_ALL,
            "show_all_with_badges": cls.SHOW_ALL,
            "showallwithbadges": cls.SHOW_ALL,
            "all": cls.SHOW_ALL,
        }
        return mappings.get(value.lower().strip(), cls.SHOW_ALL)
