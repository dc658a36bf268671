"""Cascading vehicle selector.

Pure transitions live in `state`; `SelectionStateMachine` drives them and
runs the provider fetches.
"""

from .machine import SelectionStateMachine
from .providers import CachedOptionsProvider, InMemoryOptionsProvider, OptionsProvider
from .state import SelectorState, reduce

__all__ = [
    "CachedOptionsProvider",
    "InMemoryOptionsProvider",
    "OptionsProvider",
    "SelectionStateMachine",
    "SelectorState",
    "reduce",
]
