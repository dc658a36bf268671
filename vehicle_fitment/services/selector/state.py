"""Cascading Brand -> Model -> Year -> Engine selection as a pure state machine.

Each level is in exactly one of these states:

    Idle                      nothing loaded, nothing selected
    Loading(token, parent)    options requested from the provider
    Loaded(options)           options available, none chosen
    Failed(reason, parent)    provider failed; retryable
    Selected(option, options) an option was chosen from the loaded list

A level other than BRAND can only leave Idle while its parent is Selected,
and only a prefix of levels can be Selected. SelectorState rejects any other
combination at construction, so no reachable state is half-consistent.

Every fetch carries the level's request token at issue time. Selecting or
clearing bumps the tokens of all deeper levels, so a response is applied
only if its token still equals the level's current token. Responses are
therefore applied in selection order, never in completion order.
"""

from dataclasses import dataclass, field
from typing import Optional, Union

from ...core.enums import LEVEL_ORDER, Level, LevelStatus
from ...core.errors import InvalidOptionError
from ...models.vehicle import Option, VehicleSelection


# -----------------------------------------------------------------------------
# Per-level states
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Loading:
    token: int
    parent_id: Optional[str]


@dataclass(frozen=True)
class Loaded:
    options: tuple[Option, ...]


@dataclass(frozen=True)
class Failed:
    reason: str
    parent_id: Optional[str]


@dataclass(frozen=True)
class Selected:
    option: Option
    options: tuple[Option, ...]


LevelState = Union[Idle, Loading, Loaded, Failed, Selected]


def status_of(level_state: LevelState) -> LevelStatus:
    if isinstance(level_state, Loading):
        return LevelStatus.LOADING
    if isinstance(level_state, Failed):
        return LevelStatus.ERROR
    if isinstance(level_state, (Loaded, Selected)):
        return LevelStatus.LOADED
    return LevelStatus.IDLE


# -----------------------------------------------------------------------------
# Events
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class LoadRoot:
    """Request the brand list."""


@dataclass(frozen=True)
class Select:
    level: Level
    option_id: str


@dataclass(frozen=True)
class Retry:
    """Re-issue the fetch for a level whose parent is selected."""

    level: Level


@dataclass(frozen=True)
class OptionsLoaded:
    level: Level
    token: int
    options: tuple[Option, ...]


@dataclass(frozen=True)
class OptionsFailed:
    level: Level
    token: int
    reason: str


@dataclass(frozen=True)
class Clear:
    pass


Event = Union[LoadRoot, Select, Retry, OptionsLoaded, OptionsFailed, Clear]


@dataclass(frozen=True)
class FetchRequest:
    """What the driver must ask the options provider for."""

    level: Level
    parent_id: Optional[str]
    token: int


# -----------------------------------------------------------------------------
# State
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class SelectorState:
    levels: tuple[LevelState, ...]
    tokens: tuple[int, ...]
    selection: VehicleSelection = field(init=False, compare=False)

    def __post_init__(self) -> None:
        if len(self.levels) != len(LEVEL_ORDER) or len(self.tokens) != len(LEVEL_ORDER):
            raise ValueError("SelectorState needs exactly one entry per level")

        parent: Optional[LevelState] = None
        for level, level_state in zip(LEVEL_ORDER, self.levels):
            active = not isinstance(level_state, Idle)
            if active and parent is not None and not isinstance(parent, Selected):
                raise ValueError(
                    f"{level.value} is {status_of(level_state).value} "
                    f"while {level.parent.value} is not selected"  # type: ignore[union-attr]
                )
            if isinstance(level_state, Selected) and level_state.option not in level_state.options:
                raise ValueError(f"{level.value} selection is not among its options")
            parent = level_state

        selection = VehicleSelection(
            **{
                level.value: level_state.option
                for level, level_state in zip(LEVEL_ORDER, self.levels)
                if isinstance(level_state, Selected)
            }
        )
        object.__setattr__(self, "selection", selection)

    @classmethod
    def initial(cls) -> "SelectorState":
        return cls(levels=(Idle(),) * len(LEVEL_ORDER), tokens=(0,) * len(LEVEL_ORDER))

    def level_state(self, level: Level) -> LevelState:
        return self.levels[level.depth]

    def token_for(self, level: Level) -> int:
        return self.tokens[level.depth]

    def status_for(self, level: Level) -> LevelStatus:
        return status_of(self.level_state(level))

    def options_for(self, level: Level) -> tuple[Option, ...]:
        level_state = self.level_state(level)
        if isinstance(level_state, (Loaded, Selected)):
            return level_state.options
        return ()

    def error_for(self, level: Level) -> Optional[str]:
        level_state = self.level_state(level)
        return level_state.reason if isinstance(level_state, Failed) else None

    def pending_request(self, level: Level) -> Optional[FetchRequest]:
        level_state = self.level_state(level)
        if not isinstance(level_state, Loading):
            return None
        return FetchRequest(
            level=level, parent_id=level_state.parent_id, token=level_state.token
        )

    def is_step_enabled(self, level: Level) -> bool:
        """A level can be chosen from once its parent is selected."""
        parent = level.parent
        return parent is None or isinstance(self.level_state(parent), Selected)

    @property
    def is_complete(self) -> bool:
        return self.selection.is_complete

    def _replace(
        self, updates: dict[Level, LevelState], bump: tuple[Level, ...] = ()
    ) -> "SelectorState":
        levels = tuple(updates.get(lvl, self.levels[lvl.depth]) for lvl in LEVEL_ORDER)
        tokens = tuple(
            t + 1 if lvl in bump else t for lvl, t in zip(LEVEL_ORDER, self.tokens)
        )
        return SelectorState(levels=levels, tokens=tokens)


# -----------------------------------------------------------------------------
# Transitions
# -----------------------------------------------------------------------------


def _begin_fetch(
    state: SelectorState,
    level: Level,
    parent_id: Optional[str],
    updates: Optional[dict[Level, LevelState]] = None,
) -> SelectorState:
    """Put `level` into Loading with a fresh token and reset everything below it."""
    updates = dict(updates or {})
    invalidated = (level,) + level.deeper()
    for lvl in level.deeper():
        updates[lvl] = Idle()
    updates[level] = Loading(token=state.token_for(level) + 1, parent_id=parent_id)
    return state._replace(updates, bump=invalidated)


def _select(state: SelectorState, event: Select) -> SelectorState:
    level = event.level
    if not state.is_step_enabled(level):
        raise InvalidOptionError(
            level, event.option_id, f"{level.parent.value} is not selected"  # type: ignore[union-attr]
        )

    options = state.options_for(level)
    if not options:
        raise InvalidOptionError(
            level, event.option_id, f"{level.value} options are not loaded"
        )

    option = next((o for o in options if o.id == str(event.option_id)), None)
    if option is None:
        raise InvalidOptionError(level, event.option_id)

    parent = level.parent
    if parent is not None:
        parent_option = state.selection.get(parent)
        if parent_option is None or option.parent_id != parent_option.id:
            raise InvalidOptionError(
                level, event.option_id, "option belongs to a different parent"
            )

    if level is Level.YEAR and option.year_value is None:
        raise InvalidOptionError(level, event.option_id, "option has no model year")

    updates: dict[Level, LevelState] = {level: Selected(option=option, options=options)}
    next_level = level.next_level
    if next_level is None:
        return state._replace(updates)
    return _begin_fetch(state, next_level, option.id, updates)


def _retry(state: SelectorState, event: Retry) -> SelectorState:
    level = event.level
    parent = level.parent
    if parent is None:
        return _begin_fetch(state, level, None)
    parent_option = state.selection.get(parent)
    if parent_option is None:
        return state
    return _begin_fetch(state, level, parent_option.id)


def _resolve(
    state: SelectorState, level: Level, token: int, resolved: LevelState
) -> SelectorState:
    if state.token_for(level) != token or not isinstance(state.level_state(level), Loading):
        # Stale response from a superseded request
        return state
    return state._replace({level: resolved})


def reduce(state: SelectorState, event: Event) -> SelectorState:
    """Apply one event and return the next state.

    Stale OptionsLoaded/OptionsFailed events return `state` itself, so
    callers can detect a discarded response with an identity check.

    Raises:
        InvalidOptionError: Select for an id not in the level's loaded options
    """
    if isinstance(event, Select):
        return _select(state, event)
    if isinstance(event, OptionsLoaded):
        return _resolve(state, event.level, event.token, Loaded(options=tuple(event.options)))
    if isinstance(event, OptionsFailed):
        current = state.level_state(event.level)
        parent_id = current.parent_id if isinstance(current, Loading) else None
        return _resolve(
            state, event.level, event.token, Failed(reason=event.reason, parent_id=parent_id)
        )
    if isinstance(event, LoadRoot):
        return _begin_fetch(state, Level.BRAND, None)
    if isinstance(event, Retry):
        return _retry(state, event)
    if isinstance(event, Clear):
        return state._replace(
            {lvl: Idle() for lvl in LEVEL_ORDER}, bump=LEVEL_ORDER
        )
    raise TypeError(f"Unknown selector event: {event!r}")
