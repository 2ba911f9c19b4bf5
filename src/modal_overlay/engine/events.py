"""Raw key events and the widgets they originate from."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol, runtime_checkable


@runtime_checkable
class InputTarget(Protocol):
    """The widget that had focus when a key was pressed."""

    @property
    def widget_id(self) -> Optional[str]:  # pragma: no cover - protocol
        ...

    @property
    def is_text_entry(self) -> bool:  # pragma: no cover - protocol
        ...

    def blur(self) -> None:  # pragma: no cover - protocol
        ...


@dataclass(slots=True)
class StaticTarget:
    """Plain :class:`InputTarget` for hosts that track focus themselves."""

    widget_id: Optional[str] = None
    is_text_entry: bool = False
    focused: bool = True

    def blur(self) -> None:
        self.focused = False


@dataclass(slots=True)
class KeyEvent:
    """Key press as delivered by the host, before normalization.

    ``key`` is the host's label for the key (``"a"``, ``"G"``, ``"Enter"``,
    ``"Shift"``). Handlers flip ``default_prevented``/``propagation_stopped``
    to keep the host page from acting on the key.
    """

    key: str
    ctrl: bool = False
    shift: bool = False
    alt: bool = False
    meta: bool = False
    target: Optional[InputTarget] = None
    default_prevented: bool = False
    propagation_stopped: bool = False

    def prevent_default(self) -> None:
        self.default_prevented = True

    def stop_propagation(self) -> None:
        self.propagation_stopped = True

    def consume(self) -> None:
        self.prevent_default()
        self.stop_propagation()

    @property
    def consumed(self) -> bool:
        return self.default_prevented


__all__ = ["InputTarget", "KeyEvent", "StaticTarget"]
