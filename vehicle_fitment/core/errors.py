"""Domain exceptions for vehicle selection."""

from .enums import Level


class FitmentError(Exception):
    """Base class for vehicle fitment errors."""


class InvalidOptionError(FitmentError, ValueError):
    """An option id was selected that is not in the level's loaded options."""

    def __init__(self, level: Level, option_id: str, reason: str | None = None) -> None:
        self.level = level
        self.option_id = option_id
        detail = reason or "not among the loaded options"
        super().__init__(f"Invalid {level.value} option '{option_id}': {detail}")


class FetchError(FitmentError):
    """The options provider failed to load a level's option list."""

    def __init__(self, level: Level, parent_id: str | None, reason: str) -> None:
        self.level = level
        self.parent_id = parent_id
        self.reason = reason
        super().__init__(
            f"Failed to load {level.value} options for parent={parent_id}: {reason}"
        )
