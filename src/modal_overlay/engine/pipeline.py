"""Priority-ordered key event subscribers.

The host delivers every key press to :meth:`InputPipeline.dispatch`; the
overlay engine subscribes at :data:`CAPTURE_PRIORITY` so it sees events
before anything the underlying page registered.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass
from typing import Callable, List

from .events import KeyEvent

KeyHandler = Callable[[KeyEvent], None]

CAPTURE_PRIORITY = 1000
DEFAULT_PRIORITY = 0


@dataclass(frozen=True, slots=True)
class _Subscription:
    priority: int
    order: int
    handler: KeyHandler


class InputPipeline:
    def __init__(self) -> None:
        self._subscriptions: List[_Subscription] = []
        self._counter = itertools.count()

    def subscribe(
        self, handler: KeyHandler, *, priority: int = DEFAULT_PRIORITY
    ) -> Callable[[], None]:
        """Register ``handler``; returns an idempotent unsubscribe callable."""

        subscription = _Subscription(priority, next(self._counter), handler)
        self._subscriptions.append(subscription)
        self._subscriptions.sort(key=lambda sub: (-sub.priority, sub.order))

        def unsubscribe() -> None:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)

        return unsubscribe

    def __len__(self) -> int:
        return len(self._subscriptions)

    def dispatch(self, event: KeyEvent) -> KeyEvent:
        # Snapshot so handlers may unsubscribe mid-dispatch.
        for subscription in list(self._subscriptions):
            if event.propagation_stopped:
                break
            subscription.handler(event)
        return event


_default_pipeline = InputPipeline()


def default_pipeline() -> InputPipeline:
    """Process-wide pipeline used when a host does not supply its own."""

    return _default_pipeline


__all__ = [
    "CAPTURE_PRIORITY",
    "DEFAULT_PRIORITY",
    "InputPipeline",
    "KeyHandler",
    "default_pipeline",
]
