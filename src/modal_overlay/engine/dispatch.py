"""Modal key dispatch engine.

One :class:`DispatchEngine` serves one overlay session. For every key event
it applies, in order: the entry-field guard, the overlay-active guard, the
Escape layer stack (drawer > filter > search), drawer delegation, the
palette block, and finally sequence matching with timed disambiguation of
ambiguous bindings (``m`` vs ``mw``).
"""

from __future__ import annotations

from typing import Any, Callable, List, Optional

from modal_overlay.keymaps import Action, KeyContext, resolve
from modal_overlay.runtime import telemetry
from modal_overlay.runtime.scheduler import AsyncioScheduler, Scheduler, TimerHandle
from modal_overlay.runtime.settings import EngineSettings
from modal_overlay.state import (
    PALETTE_DRAWER,
    RESERVED_DRAWERS,
    ApplicationState,
    close_drawer,
    exit_filter,
    exit_search,
)

from .events import KeyEvent
from .hooks import EngineConfig
from .normalizer import normalize_key
from .pipeline import CAPTURE_PRIORITY, InputPipeline, default_pipeline

GetState = Callable[[], ApplicationState]
SetState = Callable[[ApplicationState], None]

ESCAPE = "Escape"


class DispatchEngine:
    """Owns the sequence buffer, the pending action, and the timers."""

    def __init__(
        self,
        config: EngineConfig,
        get_state: GetState,
        set_state: SetState,
        callbacks: Any,
        get_site_state: Optional[Callable[[], object | None]] = None,
        *,
        scheduler: Optional[Scheduler] = None,
        settings: Optional[EngineSettings] = None,
        logger_name: str | None = "modal_overlay.dispatch",
    ) -> None:
        self._config = config
        self._get_state = get_state
        self._set_state = set_state
        self._callbacks = callbacks
        self._get_site_state = get_site_state
        self._scheduler: Scheduler = scheduler or AsyncioScheduler()
        self._settings = settings or EngineSettings()
        self._logger_name = logger_name
        self._sequence = ""
        self._pending: Optional[Action] = None
        self._timer: Optional[TimerHandle] = None
        self._refocus_timers: List[TimerHandle] = []
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._closed = False

    @property
    def accumulated_sequence(self) -> str:
        return self._sequence

    @property
    def pending_action(self) -> Optional[Action]:
        return self._pending

    @property
    def timer_active(self) -> bool:
        return self._timer is not None and self._timer.active

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def site_state(self) -> object | None:
        """Collaborator-owned state for drawer callbacks; never interpreted here."""

        if self._get_site_state is None:
            return None
        return self._get_site_state()

    def attach(
        self, pipeline: InputPipeline, *, priority: int = CAPTURE_PRIORITY
    ) -> None:
        if self._closed:
            raise RuntimeError("cannot attach a cleaned-up engine")
        if self._unsubscribe is not None:
            self._unsubscribe()
        self._unsubscribe = pipeline.subscribe(self.handle_event, priority=priority)

    def cleanup(self) -> None:
        """Cancel timers, drop buffered state, and leave the input pipeline.

        Safe to call more than once.
        """

        if self._closed:
            return
        self._closed = True
        self._cancel_timer()
        for timer in self._refocus_timers:
            timer.cancel()
        self._refocus_timers.clear()
        self._pending = None
        self._sequence = ""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        telemetry.record_event("dispatch.cleanup", logger_name=self._logger_name)

    def handle_event(self, event: KeyEvent) -> None:
        if self._closed:
            return
        with telemetry.span(
            "dispatch::handle",
            logger_name=self._logger_name,
            component="dispatch",
            metadata={"key": event.key},
        ) as handle:
            outcome = self._dispatch(event)
            handle.annotate("outcome", outcome)

    def _dispatch(self, event: KeyEvent) -> str:
        state = self._get_state()
        ui = state.ui

        target = event.target
        if target is not None and target.is_text_entry:
            if target.widget_id == self._settings.status_input_id:
                return "status_input"
            if self._config.native_search_input(target):
                if event.key == ESCAPE:
                    target.blur()
                    event.consume()
                    return "native_search_blur"
                return "native_search"
            return "text_entry"

        if not state.core.overlay_active:
            return "inactive"

        if event.key == ESCAPE:
            event.consume()
            return self._handle_escape(state)

        drawer = ui.drawer
        if drawer is not None and drawer not in RESERVED_DRAWERS:
            event.consume()
            on_drawer_key = getattr(self._callbacks, "on_drawer_key", None)
            if on_drawer_key is not None:
                on_drawer_key(event.key)
            return "drawer"

        if drawer == PALETTE_DRAWER:
            return "palette"

        token = normalize_key(event)
        if token is None:
            return "modifier"

        context = KeyContext(
            page_type=self._config.page_type(),
            filter_active=ui.filter_active,
            search_active=ui.search_active,
            drawer=drawer,
        )
        table = self._config.key_sequences(self._callbacks, context)
        if token in self._config.blocked_keys(context):
            event.consume()

        self._cancel_timer()

        candidate = self._sequence + token
        resolution = resolve(token, self._sequence, table)
        self._sequence = resolution.new_seq
        if resolution.consumed:
            event.consume()

        if resolution.action is not None:
            self._pending = None
            self._fire(resolution.action, reason="match", sequence=candidate)
            return "fire"

        if resolution.pending is not None:
            self._pending = resolution.pending
            telemetry.record_event(
                "dispatch.pending",
                data={"sequence": self._sequence},
                logger_name=self._logger_name,
            )

        if not self._sequence and self._pending is not None:
            action, self._pending = self._pending, None
            self._fire(action, reason="collapse", sequence=candidate)
            return "collapse"

        if self._sequence:
            self._timer = self._scheduler.call_later(
                self._settings.sequence_timeout_ms, self._on_timeout
            )
        return resolution.status

    def _handle_escape(self, state: ApplicationState) -> str:
        ui = state.ui
        if ui.drawer is not None:
            layer, updated = "drawer", close_drawer(state)
        elif ui.filter_active:
            layer, updated = "filter", exit_filter(state)
        elif ui.search_active:
            layer, updated = "search", exit_search(state)
        else:
            return "escape_noop"

        self._set_state(updated)
        render = getattr(self._callbacks, "render", None)
        if render is not None:
            render()
        telemetry.record_event(
            "dispatch.escape", data={"layer": layer}, logger_name=self._logger_name
        )
        return f"escape_{layer}"

    def _on_timeout(self) -> None:
        self._timer = None
        if self._closed:
            return
        action, self._pending = self._pending, None
        sequence, self._sequence = self._sequence, ""
        telemetry.record_event(
            "dispatch.timeout",
            data={"sequence": sequence, "fires": action is not None},
            logger_name=self._logger_name,
        )
        if action is not None:
            self._fire(action, reason="timeout", sequence=sequence)

    def _fire(self, action: Action, *, reason: str, sequence: str) -> None:
        telemetry.record_event(
            "dispatch.fire",
            data={"reason": reason, "sequence": sequence},
            logger_name=self._logger_name,
        )
        action()
        self._schedule_refocus()

    def _schedule_refocus(self) -> None:
        # The action may have torn the session down.
        if self._closed:
            return
        self._refocus_timers = [t for t in self._refocus_timers if t.active]
        self._refocus_timers.append(
            self._scheduler.call_later(
                self._settings.refocus_delay_ms, self._config.focus_status
            )
        )

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None


def setup_dispatch_engine(
    config: EngineConfig,
    get_state: GetState,
    set_state: SetState,
    callbacks: Any,
    get_site_state: Optional[Callable[[], object | None]] = None,
    *,
    pipeline: Optional[InputPipeline] = None,
    scheduler: Optional[Scheduler] = None,
    settings: Optional[EngineSettings] = None,
) -> Callable[[], None]:
    """Create an engine, register it at capture priority, return its cleanup.

    Without ``pipeline`` the engine joins :func:`default_pipeline`, which the
    host feeds with ``default_pipeline().dispatch(event)``.
    """

    engine = DispatchEngine(
        config,
        get_state,
        set_state,
        callbacks,
        get_site_state,
        scheduler=scheduler,
        settings=settings,
    )
    engine.attach(pipeline if pipeline is not None else default_pipeline())
    return engine.cleanup


__all__ = ["DispatchEngine", "ESCAPE", "setup_dispatch_engine"]
