"""Executable Textual app that hosts the overlay engine over a toy listing."""

from __future__ import annotations

import argparse
import os
from dataclasses import replace
from typing import Optional, Sequence

try:  # pragma: no cover - imported only when demo is run
    from textual import events
    from textual.app import App, ComposeResult
    from textual.containers import Horizontal, Vertical
    from textual.widgets import Footer, Header, Input, Static
except ModuleNotFoundError as exc:  # pragma: no cover - friendly error for missing dep
    raise RuntimeError(
        "Install the 'textual' package to use modal_overlay.adapters.textual.app"
    ) from exc

from modal_overlay.engine import AppCallbacks, EngineConfig
from modal_overlay.keymaps import KeymapRegistry
from modal_overlay.runtime import telemetry
from modal_overlay.runtime.settings import EngineSettings
from modal_overlay.state import (
    COMMAND,
    FILTER,
    SEARCH,
    close_drawer,
    derive_mode,
    exit_filter,
    open_drawer,
    open_filter,
    open_palette,
    set_filter_query,
    set_message,
    set_selected_index,
)

from .controller import TextualOverlayAdapter, TextualScheduler, TextualUIHooks, WidgetTarget

DEMO_ITEMS: tuple[str, ...] = (
    "Introduction to modal editing",
    "Why sequences need a timeout",
    "Prefix collisions explained",
    "Drawers, filters, and search",
    "Escape as a layer stack",
    "Capture-phase key handling",
    "Refocusing after actions",
    "Testing timers with a virtual clock",
)

INPUT_MODES = {FILTER, SEARCH, COMMAND}


def build_demo_keymap() -> KeymapRegistry:
    """Bindings for the demo listing page."""

    registry = KeymapRegistry(logger_name="modal_overlay.demo")
    registry.bind("j", "navigate", "down", when=("!filter_active",))
    registry.bind("k", "navigate", "up", when=("!filter_active",))
    registry.bind("ArrowDown", "navigate", "down")
    registry.bind("ArrowUp", "navigate", "up")
    registry.bind("gg", "go_to_top")
    registry.bind("G", "go_to_bottom")
    registry.bind("Enter", "select", False)
    registry.bind("S-Enter", "select", True)
    registry.bind("/", "open_filter")
    registry.bind(":", "open_palette", "command")
    registry.bind("zo", "open_drawer", "details")
    registry.bind("m", "toggle_mark", description="Mark the selected item")
    registry.bind("mw", "mark_all", description="Mark every visible item")
    registry.block_native("f")
    return registry


class OverlayDemoApp(App[None]):
    """Minimal Textual UI embedding the overlay engine."""

    CSS = """
	Screen {
		layout: vertical;
	}

	#listing {
		height: 1fr;
		border: round $accent;
		padding: 0 1;
	}

	#drawer {
		height: auto;
		border: round $warning;
		padding: 0 1;
		display: none;
	}

	#status-bar {
		height: 3;
	}

	#mode-badge {
		width: 14;
		padding: 1 1;
		background: $surface-darken-1;
	}

	#message {
		width: 1fr;
		padding: 1 1;
	}

	#status-input {
		width: 40;
	}
	"""

    def __init__(
        self,
        *,
        items: Sequence[str] = DEMO_ITEMS,
        settings: Optional[EngineSettings] = None,
    ) -> None:
        super().__init__()
        self._items = tuple(items)
        self._marked: set[str] = set()
        self._settings = settings or EngineSettings.from_env()
        self._keymap = build_demo_keymap()
        self.adapter: TextualOverlayAdapter | None = None
        self._logger = telemetry.get_logger("modal_overlay.demo")

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        with Vertical():
            yield Static("", id="listing")
            yield Static("", id="drawer")
        with Horizontal(id="status-bar"):
            yield Static("", id="mode-badge")
            yield Static("", id="message")
            yield Input(placeholder="", id=self._settings.status_input_id)
        yield Footer()

    def on_mount(self) -> None:
        callbacks = AppCallbacks(
            navigate=self._navigate,
            select=self._select,
            open_palette=self._open_palette,
            open_drawer=self._open_drawer,
            close_drawer=self._close_drawer,
            render=self._render,
            on_drawer_key=self._on_drawer_key,
            extras={
                "go_to_top": lambda: self._select_index(0),
                "go_to_bottom": lambda: self._select_index(len(self._visible()) - 1),
                "open_filter": self._open_filter,
                "toggle_mark": self._toggle_mark,
                "mark_all": self._mark_all,
            },
        )
        config = EngineConfig(
            get_key_sequences=self._keymap.binding_table,
            get_page_type=lambda: "listing",
            get_blocked_native_keys=self._keymap.blocked_keys,
            focus_status_input=self._focus_status_input,
        )
        hooks = TextualUIHooks(update_mode=self._update_mode, log=self._log_line)
        self.adapter = TextualOverlayAdapter(
            config,
            callbacks,
            hooks,
            scheduler=TextualScheduler(self),
            settings=self._settings,
        )
        self.set_focus(None)
        self._render()

    def on_unmount(self) -> None:
        if self.adapter:
            self.adapter.close()

    async def on_key(self, event: events.Key) -> None:
        if not self.adapter:
            return
        focused = self.focused
        target = None
        if focused is not None:
            target = WidgetTarget(focused, is_text_entry=isinstance(focused, Input))
        if (
            target is not None
            and target.widget_id == self._settings.status_input_id
            and event.key == "escape"
        ):
            self._leave_input()
            event.stop()
            return
        result = self.adapter.handle_textual_key(event, target=target)
        if result.consumed:
            event.prevent_default()
            event.stop()

    def on_input_changed(self, event: Input.Changed) -> None:
        if not self.adapter:
            return
        state = self.adapter.get_state()
        mode = derive_mode(state)
        if mode == FILTER:
            self.adapter.set_state(set_filter_query(state, event.value))
        elif mode == COMMAND:
            self.adapter.set_state(
                replace(state, ui=replace(state.ui, palette_query=event.value))
            )
        self._render()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if not self.adapter:
            return
        state = self.adapter.get_state()
        if derive_mode(state) == COMMAND:
            self._run_command(event.value.strip())
            state = close_drawer(self.adapter.get_state())
            self.adapter.set_state(state)
        self.set_focus(None)
        self._render()

    def _run_command(self, command: str) -> None:
        if command in {"q", "quit"}:
            self.exit()
        elif command == "top":
            self._select_index(0)
        elif command == "bottom":
            self._select_index(len(self._visible()) - 1)
        elif command:
            self._set_message(f"Unknown command: {command}")

    def _leave_input(self) -> None:
        assert self.adapter is not None
        state = self.adapter.get_state()
        if state.ui.drawer is not None:
            state = close_drawer(state)
        elif state.ui.filter_active:
            state = exit_filter(state)
        self.adapter.set_state(state)
        self.set_focus(None)
        self._render()

    def _visible(self) -> list[str]:
        assert self.adapter is not None
        state = self.adapter.get_state()
        query = state.ui.filter_query.lower() if state.ui.filter_active else ""
        return [item for item in self._items if query in item.lower()]

    def _navigate(self, direction: str) -> None:
        assert self.adapter is not None
        current = self.adapter.get_state().ui.selected_idx
        step = 1 if direction in {"down", "right"} else -1
        self._select_index(current + step)

    def _select_index(self, index: int) -> None:
        assert self.adapter is not None
        visible = self._visible()
        bounded = min(max(index, 0), max(len(visible) - 1, 0))
        self.adapter.set_state(set_selected_index(self.adapter.get_state(), bounded))
        self._render()

    def _selected_item(self) -> Optional[str]:
        assert self.adapter is not None
        visible = self._visible()
        index = self.adapter.get_state().ui.selected_idx
        return visible[index] if 0 <= index < len(visible) else None

    def _select(self, new_tab: bool) -> None:
        item = self._selected_item()
        if item is None:
            return
        where = "new tab" if new_tab else "here"
        self._set_message(f"Open {item!r} ({where})")

    def _open_palette(self, mode: str) -> None:
        del mode  # the demo only has the command palette
        assert self.adapter is not None
        self.adapter.set_state(open_palette(self.adapter.get_state()))
        self._render()

    def _open_drawer(self, drawer: str) -> None:
        assert self.adapter is not None
        self.adapter.set_state(open_drawer(self.adapter.get_state(), drawer))
        self._render()

    def _close_drawer(self) -> None:
        assert self.adapter is not None
        self.adapter.set_state(close_drawer(self.adapter.get_state()))
        self._render()

    def _open_filter(self) -> None:
        assert self.adapter is not None
        self.adapter.set_state(open_filter(self.adapter.get_state()))
        self._render()

    def _on_drawer_key(self, key: str) -> bool:
        if key == "q":
            self._close_drawer()
            return True
        return False

    def _toggle_mark(self) -> None:
        item = self._selected_item()
        if item is None:
            return
        if item in self._marked:
            self._marked.discard(item)
        else:
            self._marked.add(item)
        self._render()

    def _mark_all(self) -> None:
        self._marked.update(self._visible())
        self._render()

    def _set_message(self, text: str) -> None:
        assert self.adapter is not None
        self.adapter.set_state(set_message(self.adapter.get_state(), text))
        self._render()

    def _focus_status_input(self) -> None:
        if not self.adapter:
            return
        if derive_mode(self.adapter.get_state()) in INPUT_MODES:
            status_input = self.query_one(f"#{self._settings.status_input_id}", Input)
            status_input.value = ""
            status_input.focus()

    def _update_mode(self, mode: str) -> None:
        self.query_one("#mode-badge", Static).update(mode)

    def _render(self) -> None:
        if not self.adapter:
            return
        state = self.adapter.get_state()
        lines = []
        for index, item in enumerate(self._visible()):
            cursor = ">" if index == state.ui.selected_idx else " "
            mark = "*" if item in self._marked else " "
            lines.append(f"{cursor}{mark} {item}")
        self.query_one("#listing", Static).update("\n".join(lines) or "(no matches)")

        drawer = self.query_one("#drawer", Static)
        if state.ui.drawer == "details":
            drawer.display = True
            drawer.update(f"Details: {self._selected_item() or '-'}\n(q or Esc to close)")
        else:
            drawer.display = False

        message = state.ui.message.text if state.ui.message else ""
        self.query_one("#message", Static).update(message)

    def _log_line(self, line: str) -> None:
        self._logger.debug(line)


def _env_int(key: str, fallback: int) -> int:
    value = os.environ.get(key)
    if value is None:
        return fallback
    try:
        return int(value)
    except ValueError:
        return fallback


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the modal overlay Textual demo.")
    parser.add_argument(
        "--sequence-timeout",
        type=int,
        default=_env_int(f"{telemetry.ENV_PREFIX}SEQUENCE_TIMEOUT_MS", 500),
        help="Disambiguation window for ambiguous bindings in ms (default: 500)",
    )
    parser.add_argument(
        "--log-preset",
        choices=sorted(telemetry.PRESETS),
        default=None,
        help="Telemetry preset to apply before starting",
    )
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = _parse_args(argv)
    if args.log_preset:
        telemetry.configure(preset=args.log_preset)
    settings = replace(EngineSettings.from_env(), sequence_timeout_ms=args.sequence_timeout)
    app = OverlayDemoApp(settings=settings)
    app.run()


if __name__ == "__main__":  # pragma: no cover - manual demo
    main()
