"""Scenario resolution and test selection state."""

from certweb.selection.resolver import resolve_selection
from certweb.selection.store import SelectionStateStore

__all__ = [
    "resolve_selection",
    "SelectionStateStore",
]
