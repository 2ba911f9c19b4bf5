"""Application state snapshots and the pure mode model."""

from .models import (
    PALETTE_DRAWER,
    RECOMMENDED_DRAWER,
    RESERVED_DRAWERS,
    ApplicationState,
    CoreState,
    Message,
    UIState,
    create_app_state,
    reset_state,
)
from .modes import (
    COMMAND,
    FILTER,
    NORMAL,
    RECOMMENDED,
    SEARCH,
    activate_overlay,
    close_drawer,
    deactivate_overlay,
    derive_mode,
    exit_filter,
    exit_search,
    open_drawer,
    open_filter,
    open_palette,
    open_search,
    set_filter_query,
    set_message,
    set_search_query,
    set_selected_index,
)

__all__ = [
    "PALETTE_DRAWER",
    "RECOMMENDED_DRAWER",
    "RESERVED_DRAWERS",
    "ApplicationState",
    "CoreState",
    "Message",
    "UIState",
    "create_app_state",
    "reset_state",
    "COMMAND",
    "FILTER",
    "NORMAL",
    "RECOMMENDED",
    "SEARCH",
    "activate_overlay",
    "close_drawer",
    "deactivate_overlay",
    "derive_mode",
    "exit_filter",
    "exit_search",
    "open_drawer",
    "open_filter",
    "open_palette",
    "open_search",
    "set_filter_query",
    "set_message",
    "set_search_query",
    "set_selected_index",
]
