"""Immutable application state snapshots."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

PALETTE_DRAWER = "palette"
RECOMMENDED_DRAWER = "recommended"
RESERVED_DRAWERS = frozenset({PALETTE_DRAWER, RECOMMENDED_DRAWER})


@dataclass(frozen=True, slots=True)
class Message:
    """Transient status-bar message."""

    text: str
    timestamp: float


@dataclass(frozen=True, slots=True)
class CoreState:
    """Global flags owned by the overlay session."""

    overlay_active: bool = False
    last_url: str = ""


@dataclass(frozen=True, slots=True)
class UIState:
    """Interaction sub-state: drawers, filter/search layers, selection."""

    drawer: Optional[str] = None
    palette_query: str = ""
    palette_selected_idx: int = 0
    selected_idx: int = 0
    filter_active: bool = False
    filter_query: str = ""
    search_active: bool = False
    search_query: str = ""
    key_seq: str = ""
    message: Optional[Message] = None

    def __post_init__(self) -> None:
        if self.drawer == "":
            raise ValueError("drawer id cannot be empty; use None for no drawer")


@dataclass(frozen=True, slots=True)
class ApplicationState:
    """Full snapshot handed around by ``get_state``/``set_state``.

    ``site`` and ``page`` belong to the collaborator and are never inspected
    by the engine.
    """

    core: CoreState = field(default_factory=CoreState)
    ui: UIState = field(default_factory=UIState)
    site: object | None = None
    page: object | None = None


def create_app_state(
    *, site: object | None = None, page: object | None = None
) -> ApplicationState:
    return ApplicationState(site=site, page=page)


def reset_state(state: ApplicationState) -> ApplicationState:
    """Discard everything and return a fresh default snapshot."""

    del state
    return create_app_state()


__all__ = [
    "PALETTE_DRAWER",
    "RECOMMENDED_DRAWER",
    "RESERVED_DRAWERS",
    "Message",
    "CoreState",
    "UIState",
    "ApplicationState",
    "create_app_state",
    "reset_state",
]
