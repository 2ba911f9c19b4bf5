"""Textual adapter that feeds Textual key events through the dispatch engine."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from modal_overlay.engine import (
    DispatchEngine,
    EngineConfig,
    InputPipeline,
    InputTarget,
    KeyEvent,
)
from modal_overlay.runtime.scheduler import Scheduler
from modal_overlay.runtime.settings import EngineSettings
from modal_overlay.state import (
    ApplicationState,
    activate_overlay,
    create_app_state,
    derive_mode,
)

# Textual key names -> host labels the bindings are written against.
NAMED_KEYS: Dict[str, str] = {
    "enter": "Enter",
    "return": "Enter",
    "escape": "Escape",
    "tab": "Tab",
    "backspace": "Backspace",
    "delete": "Delete",
    "up": "ArrowUp",
    "down": "ArrowDown",
    "left": "ArrowLeft",
    "right": "ArrowRight",
    "home": "Home",
    "end": "End",
    "pageup": "PageUp",
    "pagedown": "PageDown",
}

_MODIFIERS = {"ctrl", "shift", "alt", "meta"}


def _noop(*_args, **_kwargs) -> None:  # pragma: no cover - default hook
    return None


def translate_textual_key(event: Any, target: Optional[InputTarget] = None) -> KeyEvent:
    """Build a :class:`KeyEvent` from a Textual ``events.Key``.

    Only ``event.key`` and ``event.character`` are read, so any object with
    those attributes works.
    """

    parts = str(event.key).split("+")
    modifiers = {part for part in parts[:-1] if part in _MODIFIERS}
    name = parts[-1]
    if name == "backtab":
        name = "tab"
        modifiers.add("shift")
    ctrl = "ctrl" in modifiers
    character = getattr(event, "character", None)

    if name in NAMED_KEYS:
        label = NAMED_KEYS[name]
    elif (
        not ctrl
        and character is not None
        and len(character) == 1
        and character.isprintable()
    ):
        label = character
    else:
        label = name

    return KeyEvent(
        key=label,
        ctrl=ctrl,
        shift="shift" in modifiers,
        alt="alt" in modifiers,
        meta="meta" in modifiers,
        target=target,
    )


@dataclass(slots=True)
class WidgetTarget:
    """Adapts a Textual widget to the engine's :class:`InputTarget`."""

    widget: Any
    is_text_entry: bool = False

    @property
    def widget_id(self) -> Optional[str]:
        return getattr(self.widget, "id", None)

    def blur(self) -> None:
        self.widget.blur()


class _TextualTimer:
    def __init__(self) -> None:
        self.timer: Any = None
        self.done = False

    @property
    def active(self) -> bool:
        return not self.done

    def cancel(self) -> None:
        if self.done:
            return
        self.done = True
        if self.timer is not None:
            self.timer.stop()


class TextualScheduler:
    """Runs engine timers on a Textual app's message loop."""

    def __init__(self, app: Any) -> None:
        self._app = app

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> _TextualTimer:
        handle = _TextualTimer()

        def _fire() -> None:
            if handle.done:
                return
            handle.done = True
            callback()

        handle.timer = self._app.set_timer(delay_ms / 1000.0, _fire)
        return handle


@dataclass(slots=True)
class TextualUIHooks:
    """Callbacks invoked by the adapter to update Textual widgets."""

    update_mode: Callable[[str], None] = _noop
    # Optional realtime log callback a host may use to surface debug lines
    log: Callable[[str], None] = _noop


class TextualOverlayAdapter:
    """Owns the state snapshot, the input pipeline, and one engine."""

    def __init__(
        self,
        config: EngineConfig,
        callbacks: Any,
        hooks: TextualUIHooks,
        *,
        scheduler: Scheduler,
        settings: Optional[EngineSettings] = None,
        initial_state: Optional[ApplicationState] = None,
    ) -> None:
        self.hooks = hooks
        self._state = initial_state or activate_overlay(create_app_state())
        self.pipeline = InputPipeline()
        self.engine = DispatchEngine(
            config,
            self.get_state,
            self.set_state,
            callbacks,
            scheduler=scheduler,
            settings=settings,
        )
        self.engine.attach(self.pipeline)
        self.hooks.update_mode(derive_mode(self._state))

    def get_state(self) -> ApplicationState:
        return self._state

    def set_state(self, state: ApplicationState) -> None:
        previous = derive_mode(self._state)
        self._state = state
        mode = derive_mode(state)
        if mode != previous:
            self._log_state("mode ->", previous=previous)
        self.hooks.update_mode(mode)

    def handle_textual_key(
        self, event: Any, *, target: Optional[InputTarget] = None
    ) -> KeyEvent:
        key_event = translate_textual_key(event, target)
        self._log_state("key ->", key=key_event.key, ctrl=key_event.ctrl or None)
        self.pipeline.dispatch(key_event)
        self._log_state("result <-", consumed=key_event.consumed)
        return key_event

    def close(self) -> None:
        self.engine.cleanup()

    def _log_state(self, prefix: str, **fields: object) -> None:
        snapshot: Dict[str, object] = {
            "mode": derive_mode(self._state),
            "sequence": self.engine.accumulated_sequence,
            "pending": self.engine.pending_action is not None,
        }
        snapshot.update({k: v for k, v in fields.items() if v is not None})
        parts = [prefix]
        for key, value in snapshot.items():
            parts.append(f"{key}={value!r}")
        self.hooks.log(" ".join(parts))


__all__ = [
    "NAMED_KEYS",
    "TextualOverlayAdapter",
    "TextualScheduler",
    "TextualUIHooks",
    "WidgetTarget",
    "translate_textual_key",
]
