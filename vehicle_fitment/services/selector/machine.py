"""Async driver for the cascading vehicle selector.

State changes are synchronous: `select`, `retry` and `clear` reduce the
current state immediately and return. Only the provider fetch for the next
level suspends, as an asyncio task whose result is fed back through the
same reducer (and dropped there if a newer selection superseded it).

Callers must serialize select/clear calls; one instance belongs to one
browsing session.
"""

import asyncio
import time
from collections.abc import Callable
from typing import Optional

from ...core.enums import Level, LevelStatus
from ...core.errors import FetchError
from ...core.logging import log_external_call, log_transition
from ...models.vehicle import Option, VehicleSelection
from .providers import OptionsProvider
from .state import (
    Clear,
    Event,
    FetchRequest,
    LoadRoot,
    OptionsFailed,
    OptionsLoaded,
    Retry,
    Select,
    SelectorState,
    reduce,
)

SelectionListener = Callable[[VehicleSelection], None]


class SelectionStateMachine:
    """Owns one session's vehicle selection and keeps its levels consistent."""

    def __init__(
        self, provider: OptionsProvider, state: Optional[SelectorState] = None
    ) -> None:
        self._provider = provider
        self._state = state or SelectorState.initial()
        self._tasks: set[asyncio.Task[None]] = set()
        self._listeners: list[SelectionListener] = []

    @property
    def state(self) -> SelectorState:
        return self._state

    # -------------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------------

    def dispatch(self, event: Event) -> SelectorState:
        """Reduce one event into the current state and notify listeners."""
        previous = self._state
        self._state = reduce(previous, event)

        level = getattr(event, "level", None)
        level_name = level.value if level else None
        if self._state is previous:
            # Only provider responses can be stale; anything else changed nothing
            outcome = "stale" if isinstance(event, (OptionsLoaded, OptionsFailed)) else "noop"
            log_transition(outcome, level_name, event=type(event).__name__)
            return self._state

        log_transition(type(event).__name__, level_name)
        if self._state.selection != previous.selection:
            for listener in list(self._listeners):
                listener(self._state.selection)
        return self._state

    def start(self) -> Optional[asyncio.Task[None]]:
        """Load the brand list. Must be called from a running event loop."""
        loop = asyncio.get_running_loop()
        self.dispatch(LoadRoot())
        return self._issue(loop, Level.BRAND)

    def select(self, level: Level, option_id: str) -> Optional[asyncio.Task[None]]:
        """Select an option and start loading the next level.

        Returns the fetch task for the next level (None after ENGINE).

        Raises:
            InvalidOptionError: option_id is not in the level's loaded options
            RuntimeError: called outside a running event loop; the state is
                left unchanged
        """
        loop = asyncio.get_running_loop()
        self.dispatch(Select(level=level, option_id=option_id))
        next_level = level.next_level
        return self._issue(loop, next_level) if next_level else None

    def retry(self, level: Level) -> Optional[asyncio.Task[None]]:
        """Re-issue a level's fetch with a fresh token (e.g. after an error).

        Must be called from a running event loop, like `start` and `select`.
        """
        loop = asyncio.get_running_loop()
        self.dispatch(Retry(level=level))
        return self._issue(loop, level)

    def clear(self) -> None:
        """Reset to the empty selection and invalidate every in-flight fetch."""
        self.dispatch(Clear())

    def subscribe(self, listener: SelectionListener) -> Callable[[], None]:
        """Call `listener` with the new selection whenever it changes.

        Returns a function that removes the listener.
        """
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    async def wait_idle(self) -> None:
        """Wait until no fetch is in flight, including ones issued meanwhile."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def current_selection(self) -> VehicleSelection:
        return self._state.selection

    def is_complete(self) -> bool:
        return self._state.is_complete

    def options_for(self, level: Level) -> tuple[Option, ...]:
        return self._state.options_for(level)

    def status_for(self, level: Level) -> LevelStatus:
        return self._state.status_for(level)

    def error_for(self, level: Level) -> Optional[str]:
        return self._state.error_for(level)

    def is_step_enabled(self, level: Level) -> bool:
        return self._state.is_step_enabled(level)

    @property
    def has_selection(self) -> bool:
        return not self._state.selection.is_empty

    def selection_path(self) -> str:
        return self._state.selection.path()

    # -------------------------------------------------------------------------
    # Fetching
    # -------------------------------------------------------------------------

    def _issue(
        self, loop: asyncio.AbstractEventLoop, level: Level
    ) -> Optional[asyncio.Task[None]]:
        request = self._state.pending_request(level)
        if request is None:
            return None
        task = loop.create_task(self._fetch(request))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _fetch(self, request: FetchRequest) -> None:
        start = time.time()
        operation = f"fetch_{request.level.value}_options"
        try:
            options = await self._provider.fetch_options(request.level, request.parent_id)
        except FetchError as e:
            log_external_call("options_provider", operation, False, (time.time() - start) * 1000)
            self.dispatch(OptionsFailed(level=request.level, token=request.token, reason=e.reason))
            return
        except Exception as e:
            log_external_call("options_provider", operation, False, (time.time() - start) * 1000)
            reason = str(e) or type(e).__name__
            self.dispatch(OptionsFailed(level=request.level, token=request.token, reason=reason))
            return

        log_external_call("options_provider", operation, True, (time.time() - start) * 1000)
        self.dispatch(
            OptionsLoaded(level=request.level, token=request.token, options=tuple(options))
        )
