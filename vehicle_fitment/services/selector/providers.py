"""Options providers: where each level's option list comes from."""

import asyncio
import re
import threading
from collections.abc import Iterable, Mapping
from typing import Any, Optional, Protocol

from cachetools import TTLCache

from ...core.enums import LEVEL_ORDER, Level
from ...core.logging import logger
from ...models.vehicle import Option
from ...utils.converters import safe_year


class OptionsProvider(Protocol):
    """Supplies the valid child options for a level and parent id.

    Implementations must only return options whose parent_id equals the
    requested parent_id; the state machine trusts this contract.
    """

    async def fetch_options(
        self, level: Level, parent_id: Optional[str]
    ) -> list[Option]: ...


def _slugify(text: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")


class InMemoryOptionsProvider:
    """Options held in memory, for tests, demos and local development.

    Returns options in insertion order. An optional delay simulates a
    slow backend.
    """

    def __init__(self, options: Iterable[tuple[Level, Option]], delay: float = 0.0) -> None:
        self._options: dict[Level, list[Option]] = {lvl: [] for lvl in LEVEL_ORDER}
        for level, option in options:
            self._options[level].append(option)
        self._delay = delay
        self.calls: list[tuple[Level, Optional[str]]] = []

    @classmethod
    def from_tree(cls, tree: Mapping[str, Any], delay: float = 0.0) -> "InMemoryOptionsProvider":
        """Build from a nested {brand: {model: {year: [engines]}}} mapping.

        Engines are names or (name, code) pairs.

        Ids are slug paths, e.g. 'bmw/3-series/2015/320d', so the same
        engine name under two years stays distinct.

        Examples:
            >>> provider = InMemoryOptionsProvider.from_tree(
            ...     {"BMW": {"3 Series": {2015: ["320d", "330i"]}}}
            ... )
        """
        entries: list[tuple[Level, Option]] = []

        def _walk(node: Any, level: Level, parent_id: Optional[str]) -> None:
            labels: Iterable[Any] = node.keys() if isinstance(node, Mapping) else node
            for label in labels:
                # Engine leaves may be (name, code) pairs
                text, code = (str(label[0]), str(label[1])) if isinstance(label, tuple) else (str(label), None)
                option_id = _slugify(text) if parent_id is None else f"{parent_id}/{_slugify(text)}"
                entries.append(
                    (
                        level,
                        Option(
                            id=option_id,
                            label=text,
                            parent_id=parent_id,
                            code=code,
                            year=safe_year(text) if level is Level.YEAR else None,
                        ),
                    )
                )
                child_level = level.next_level
                if child_level is not None and isinstance(node, Mapping):
                    _walk(node[label], child_level, option_id)

        _walk(tree, Level.BRAND, None)
        return cls(entries, delay=delay)

    async def fetch_options(self, level: Level, parent_id: Optional[str]) -> list[Option]:
        self.calls.append((level, parent_id))
        if self._delay:
            await asyncio.sleep(self._delay)
        return [o for o in self._options[level] if o.parent_id == parent_id]


class CachedOptionsProvider:
    """TTL cache in front of another provider.

    Keyed on (level, parent_id). Failures are never cached so a retry
    reaches the backend again.
    """

    def __init__(self, provider: OptionsProvider, maxsize: int = 512, ttl: int = 900) -> None:
        self._provider = provider
        self._cache: TTLCache[tuple[str, Optional[str]], tuple[Option, ...]] = TTLCache(
            maxsize=maxsize, ttl=ttl
        )
        self._lock = threading.Lock()

    async def fetch_options(self, level: Level, parent_id: Optional[str]) -> list[Option]:
        key = (level.value, parent_id)
        with self._lock:
            cached = self._cache.get(key)
        if cached is not None:
            logger.debug(f"Options cache hit: {key}")
            return list(cached)

        options = await self._provider.fetch_options(level, parent_id)
        with self._lock:
            self._cache[key] = tuple(options)
        return list(options)

    def invalidate(self) -> None:
        with self._lock:
            self._cache.clear()

