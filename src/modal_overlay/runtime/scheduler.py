"""Cancellable one-shot timers used by the dispatch engine."""

from __future__ import annotations

import asyncio
import itertools
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Protocol


class TimerHandle(Protocol):
    """Handle for a scheduled callback."""

    @property
    def active(self) -> bool:  # pragma: no cover - protocol
        ...

    def cancel(self) -> None:  # pragma: no cover - protocol
        ...


class Scheduler(Protocol):
    """Anything offering "run this after N milliseconds" plus cancellation."""

    def call_later(
        self, delay_ms: float, callback: Callable[[], None]
    ) -> TimerHandle:  # pragma: no cover - protocol
        ...


@dataclass(slots=True)
class ScheduledCall:
    """Timer entry tracked by :class:`ManualScheduler`."""

    deadline: float
    order: int
    callback: Callable[[], None]
    cancelled: bool = False
    fired: bool = False

    @property
    def active(self) -> bool:
        return not (self.cancelled or self.fired)

    def cancel(self) -> None:
        self.cancelled = True


@dataclass
class ManualScheduler:
    """Virtual clock that only advances when told to.

    Hosts without an event loop can poll :meth:`advance` from their own
    tick; tests use it to step through disambiguation windows exactly.
    """

    now: float = 0.0
    _calls: List[ScheduledCall] = field(default_factory=list)
    _counter: "itertools.count[int]" = field(default_factory=itertools.count)

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> ScheduledCall:
        if delay_ms < 0:
            raise ValueError("delay_ms cannot be negative")
        call = ScheduledCall(
            deadline=self.now + delay_ms,
            order=next(self._counter),
            callback=callback,
        )
        self._calls.append(call)
        return call

    @property
    def pending_count(self) -> int:
        return sum(1 for call in self._calls if call.active)

    def advance(self, delay_ms: float) -> int:
        """Move the clock forward, firing due callbacks in deadline order.

        Returns the number of callbacks that fired.
        """

        if delay_ms < 0:
            raise ValueError("delay_ms cannot be negative")
        target = self.now + delay_ms
        fired = 0
        while True:
            due = self._next_due(target)
            if due is None:
                break
            self.now = max(self.now, due.deadline)
            due.fired = True
            due.callback()
            fired += 1
        self.now = target
        self._calls = [call for call in self._calls if call.active]
        return fired

    def run_pending(self) -> int:
        """Fire everything outstanding, however far in the future."""

        fired = 0
        while True:
            upcoming = [call for call in self._calls if call.active]
            if not upcoming:
                return fired
            latest = max(call.deadline for call in upcoming)
            fired += self.advance(max(0.0, latest - self.now))

    def _next_due(self, target: float) -> Optional[ScheduledCall]:
        due = [
            call for call in self._calls if call.active and call.deadline <= target
        ]
        if not due:
            return None
        return min(due, key=lambda call: (call.deadline, call.order))


class _AsyncioTimer:
    def __init__(self) -> None:
        self._handle: Optional[asyncio.TimerHandle] = None
        self._done = False

    @property
    def active(self) -> bool:
        return not self._done

    def cancel(self) -> None:
        if self._done:
            return
        self._done = True
        if self._handle is not None:
            self._handle.cancel()


class AsyncioScheduler:
    """Schedules callbacks on an asyncio event loop.

    Without an explicit ``loop`` the running loop is captured at
    construction, so a synchronous caller learns about the missing loop
    before any key event is handled.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        if loop is None:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError as exc:
                raise RuntimeError(
                    "AsyncioScheduler needs a running event loop; pass loop= "
                    "or give the engine another scheduler"
                ) from exc
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        return self._loop

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> _AsyncioTimer:
        timer = _AsyncioTimer()

        def _fire() -> None:
            if timer._done:
                return
            timer._done = True
            callback()

        timer._handle = self.loop.call_later(delay_ms / 1000.0, _fire)
        return timer


__all__ = [
    "AsyncioScheduler",
    "ManualScheduler",
    "ScheduledCall",
    "Scheduler",
    "TimerHandle",
]
