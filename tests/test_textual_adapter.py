from __future__ import annotations

from types import SimpleNamespace
from typing import Any, Callable, List, Optional

import pytest

from modal_overlay.adapters.textual import (
    TextualOverlayAdapter,
    TextualScheduler,
    TextualUIHooks,
    WidgetTarget,
    translate_textual_key,
)
from modal_overlay.engine import AppCallbacks, EngineConfig
from modal_overlay.keymaps import KeymapRegistry
from modal_overlay.runtime import ManualScheduler
from modal_overlay.state import FILTER, NORMAL, open_filter


def key(name: str, character: Optional[str] = None) -> SimpleNamespace:
    return SimpleNamespace(key=name, character=character)


class FakeTimer:
    def __init__(self, delay: float, callback: Callable[[], None]) -> None:
        self.delay = delay
        self.callback = callback
        self.stopped = False

    def stop(self) -> None:
        self.stopped = True


class FakeApp:
    def __init__(self) -> None:
        self.timers: List[FakeTimer] = []

    def set_timer(self, delay: float, callback: Callable[[], None]) -> FakeTimer:
        timer = FakeTimer(delay, callback)
        self.timers.append(timer)
        return timer


class FakeWidget:
    def __init__(self, widget_id: str) -> None:
        self.id = widget_id
        self.blurred = False

    def blur(self) -> None:
        self.blurred = True


def make_adapter(
    registry: KeymapRegistry, calls: List[tuple], **kwargs: Any
) -> tuple[TextualOverlayAdapter, ManualScheduler, List[str], List[str]]:
    modes: List[str] = []
    lines: List[str] = []
    callbacks = AppCallbacks(
        navigate=lambda direction: calls.append(("navigate", direction)),
        extras={
            "mute": lambda: calls.append(("mute",)),
            "watch_later": lambda: calls.append(("watch_later",)),
        },
    )
    config = EngineConfig(
        get_key_sequences=registry.binding_table,
        get_blocked_native_keys=registry.blocked_keys,
    )
    scheduler = ManualScheduler()
    adapter = TextualOverlayAdapter(
        config,
        callbacks,
        TextualUIHooks(update_mode=modes.append, log=lines.append),
        scheduler=scheduler,
        **kwargs,
    )
    return adapter, scheduler, modes, lines


@pytest.mark.parametrize(
    ("event", "label", "ctrl", "shift"),
    [
        (key("j", "j"), "j", False, False),
        (key("G", "G"), "G", False, False),
        (key("slash", "/"), "/", False, False),
        (key("enter", "\r"), "Enter", False, False),
        (key("escape", "\x1b"), "Escape", False, False),
        (key("down"), "ArrowDown", False, False),
        (key("shift+enter"), "Enter", False, True),
        (key("ctrl+f", "\x06"), "f", True, False),
        (key("backtab"), "Tab", False, True),
    ],
)
def test_translate_textual_key(event: Any, label: str, ctrl: bool, shift: bool) -> None:
    translated = translate_textual_key(event)

    assert translated.key == label
    assert translated.ctrl is ctrl
    assert translated.shift is shift


def test_translate_keeps_target() -> None:
    target = WidgetTarget(FakeWidget("listing"))

    translated = translate_textual_key(key("j", "j"), target)

    assert translated.target is target
    assert target.widget_id == "listing"


def test_adapter_dispatches_through_engine() -> None:
    calls: List[tuple] = []
    registry = KeymapRegistry()
    registry.bind("j", "navigate", "down", when=("!filter_active",))
    adapter, _, modes, lines = make_adapter(registry, calls)

    event = adapter.handle_textual_key(key("j", "j"))

    assert calls == [("navigate", "down")]
    assert event.consumed is True
    assert modes == [NORMAL]
    assert any(line.startswith("key ->") for line in lines)
    assert lines[-1].endswith("consumed=True")


def test_adapter_disambiguates_with_timeout() -> None:
    calls: List[tuple] = []
    registry = KeymapRegistry()
    registry.bind("m", "mute")
    registry.bind("mw", "watch_later")
    adapter, scheduler, _, _ = make_adapter(registry, calls)

    adapter.handle_textual_key(key("m", "m"))
    assert calls == []

    scheduler.advance(500)

    assert calls == [("mute",)]


def test_adapter_reports_mode_changes_on_escape() -> None:
    registry = KeymapRegistry()
    registry.bind("j", "navigate", "down", when=("!filter_active",))
    calls: List[tuple] = []
    adapter, _, modes, lines = make_adapter(registry, calls)
    adapter.set_state(open_filter(adapter.get_state()))

    adapter.handle_textual_key(key("j", "j"))
    adapter.handle_textual_key(key("escape"))

    assert calls == []
    assert modes == [NORMAL, FILTER, NORMAL]
    assert any(line.startswith("mode ->") for line in lines)


def test_adapter_blocks_native_keys() -> None:
    registry = KeymapRegistry()
    registry.block_native("f")
    adapter, _, _, _ = make_adapter(registry, [])

    assert adapter.handle_textual_key(key("f", "f")).consumed is True
    assert adapter.handle_textual_key(key("z", "z")).consumed is False


def test_adapter_close_detaches_engine() -> None:
    calls: List[tuple] = []
    registry = KeymapRegistry()
    registry.bind("j", "navigate", "down")
    adapter, _, _, _ = make_adapter(registry, calls)

    adapter.close()
    adapter.close()
    event = adapter.handle_textual_key(key("j", "j"))

    assert calls == []
    assert event.consumed is False
    assert adapter.engine.closed is True


def test_status_input_target_is_ignored() -> None:
    calls: List[tuple] = []
    registry = KeymapRegistry()
    registry.bind("j", "navigate", "down")
    adapter, _, _, _ = make_adapter(registry, calls)
    target = WidgetTarget(FakeWidget("status-input"), is_text_entry=True)

    event = adapter.handle_textual_key(key("j", "j"), target=target)

    assert calls == []
    assert event.consumed is False


def test_textual_scheduler_uses_app_timers() -> None:
    app = FakeApp()
    fired: List[str] = []
    scheduler = TextualScheduler(app)

    handle = scheduler.call_later(500, lambda: fired.append("x"))
    assert app.timers[0].delay == pytest.approx(0.5)
    assert handle.active is True

    app.timers[0].callback()
    app.timers[0].callback()

    assert fired == ["x"]
    assert handle.active is False


def test_textual_scheduler_cancel_stops_timer() -> None:
    app = FakeApp()
    fired: List[str] = []
    handle = TextualScheduler(app).call_later(10, lambda: fired.append("x"))

    handle.cancel()
    app.timers[0].callback()

    assert app.timers[0].stopped is True
    assert fired == []
