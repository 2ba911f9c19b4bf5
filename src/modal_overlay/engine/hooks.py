"""Host-supplied configuration and action callbacks."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional

from modal_overlay.keymaps import BindingTable, KeyContext

from .events import InputTarget


def _noop(*_args, **_kwargs) -> None:  # pragma: no cover - default hook
    return None


def _unhandled(_key: str) -> bool:  # pragma: no cover - default hook
    return False


@dataclass(slots=True)
class AppCallbacks:
    """Named operations bindings may call.

    Domain-specific operations live in ``extras`` and are reachable as
    attributes, so ``callbacks.copy_url`` works the same as
    ``callbacks.navigate``.
    """

    navigate: Callable[[str], None] = _noop
    select: Callable[[bool], None] = _noop
    open_palette: Callable[[str], None] = _noop
    open_drawer: Callable[[str], None] = _noop
    close_drawer: Callable[[], None] = _noop
    render: Callable[[], None] = _noop
    on_drawer_key: Callable[[str], bool] = _unhandled
    extras: Dict[str, Callable[..., Any]] = field(default_factory=dict)

    def __getattr__(self, name: str) -> Callable[..., Any]:
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return self.extras[name]
        except KeyError as exc:
            raise AttributeError(
                f"{type(self).__name__!r} has no operation {name!r}"
            ) from exc


KeySequenceBuilder = Callable[[Any, KeyContext], Optional[BindingTable]]


@dataclass(slots=True)
class EngineConfig:
    """Collaborator contract consulted on every key event.

    Only ``get_key_sequences`` is required; the other hooks fall back to
    neutral answers (no page type, nothing blocked, no native search input,
    no refocus target).
    """

    get_key_sequences: KeySequenceBuilder
    get_page_type: Optional[Callable[[], Optional[str]]] = None
    get_blocked_native_keys: Optional[Callable[[KeyContext], List[str]]] = None
    is_native_search_input: Optional[Callable[[InputTarget], bool]] = None
    focus_status_input: Optional[Callable[[], None]] = None

    def __post_init__(self) -> None:
        if not callable(self.get_key_sequences):
            raise TypeError("get_key_sequences must be callable")

    def page_type(self) -> Optional[str]:
        if self.get_page_type is None:
            return None
        return self.get_page_type()

    def key_sequences(self, callbacks: Any, context: KeyContext) -> Mapping[str, Any]:
        table = self.get_key_sequences(callbacks, context)
        return table if table is not None else {}

    def blocked_keys(self, context: KeyContext) -> List[str]:
        if self.get_blocked_native_keys is None:
            return []
        return list(self.get_blocked_native_keys(context) or [])

    def native_search_input(self, target: InputTarget) -> bool:
        if self.is_native_search_input is None:
            return False
        return bool(self.is_native_search_input(target))

    def focus_status(self) -> None:
        if self.focus_status_input is not None:
            self.focus_status_input()


__all__ = ["AppCallbacks", "EngineConfig", "KeySequenceBuilder"]
