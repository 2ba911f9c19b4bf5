"""Mode derivation and layer transitions over :class:`ApplicationState`.

Every helper is pure: it takes a snapshot and returns a new one. Each layer
(drawer, filter, search) is opened and closed independently, so closing a
drawer reveals whatever filter or search layer sits underneath.
"""

from __future__ import annotations

import time
from dataclasses import replace
from typing import Optional

from .models import (
    PALETTE_DRAWER,
    RECOMMENDED_DRAWER,
    ApplicationState,
    Message,
)

NORMAL = "NORMAL"
COMMAND = "COMMAND"
FILTER = "FILTER"
SEARCH = "SEARCH"
RECOMMENDED = "RECOMMENDED"


def derive_mode(state: ApplicationState) -> str:
    """Return the effective mode tag.

    Precedence: open drawer > local filter > search > normal.
    """

    drawer = state.ui.drawer
    if drawer == PALETTE_DRAWER:
        return COMMAND
    if drawer == RECOMMENDED_DRAWER:
        return RECOMMENDED
    if drawer is not None:
        return drawer.upper()
    if state.ui.filter_active:
        return FILTER
    if state.ui.search_active:
        return SEARCH
    return NORMAL


def _with_ui(state: ApplicationState, **changes: object) -> ApplicationState:
    return replace(state, ui=replace(state.ui, **changes))


def activate_overlay(state: ApplicationState) -> ApplicationState:
    return replace(state, core=replace(state.core, overlay_active=True))


def deactivate_overlay(state: ApplicationState) -> ApplicationState:
    return replace(state, core=replace(state.core, overlay_active=False))


def open_drawer(state: ApplicationState, drawer: str) -> ApplicationState:
    if not drawer:
        raise ValueError("drawer id cannot be empty")
    return _with_ui(state, drawer=drawer)


def open_palette(state: ApplicationState, query: str = "") -> ApplicationState:
    return _with_ui(
        state, drawer=PALETTE_DRAWER, palette_query=query, palette_selected_idx=0
    )


def close_drawer(state: ApplicationState) -> ApplicationState:
    """Close the drawer and drop any in-flight palette query/selection."""

    return _with_ui(state, drawer=None, palette_query="", palette_selected_idx=0)


def open_filter(state: ApplicationState) -> ApplicationState:
    return _with_ui(state, filter_active=True, filter_query="", selected_idx=0)


def set_filter_query(state: ApplicationState, query: str) -> ApplicationState:
    return _with_ui(state, filter_query=query, selected_idx=0)


def exit_filter(state: ApplicationState) -> ApplicationState:
    return _with_ui(state, filter_active=False, filter_query="", selected_idx=0)


def open_search(state: ApplicationState) -> ApplicationState:
    return _with_ui(state, search_active=True, search_query="")


def set_search_query(state: ApplicationState, query: str) -> ApplicationState:
    return _with_ui(state, search_query=query)


def exit_search(state: ApplicationState) -> ApplicationState:
    return _with_ui(state, search_active=False, search_query="")


def set_selected_index(state: ApplicationState, index: int) -> ApplicationState:
    return _with_ui(state, selected_idx=max(0, index))


def set_message(
    state: ApplicationState, text: Optional[str], *, timestamp: Optional[float] = None
) -> ApplicationState:
    if text is None:
        return _with_ui(state, message=None)
    stamp = time.time() if timestamp is None else timestamp
    return _with_ui(state, message=Message(text=text, timestamp=stamp))


__all__ = [
    "NORMAL",
    "COMMAND",
    "FILTER",
    "SEARCH",
    "RECOMMENDED",
    "derive_mode",
    "activate_overlay",
    "deactivate_overlay",
    "open_drawer",
    "open_palette",
    "close_drawer",
    "open_filter",
    "set_filter_query",
    "exit_filter",
    "open_search",
    "set_search_query",
    "exit_search",
    "set_selected_index",
    "set_message",
]
