"""Textual integration for the overlay engine."""

from .controller import (
    NAMED_KEYS,
    TextualOverlayAdapter,
    TextualScheduler,
    TextualUIHooks,
    WidgetTarget,
    translate_textual_key,
)

__all__ = [
    "NAMED_KEYS",
    "TextualOverlayAdapter",
    "TextualScheduler",
    "TextualUIHooks",
    "WidgetTarget",
    "translate_textual_key",
]
