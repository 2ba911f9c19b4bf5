"""Key normalization: raw events to sequence tokens."""

from __future__ import annotations

from typing import Optional

from .events import KeyEvent

MODIFIER_KEYS = frozenset({"Shift", "Control", "Alt", "Meta"})


def is_named_key(key: str) -> bool:
    """Named keys (``Enter``, ``ArrowUp``) have multi-character labels."""

    return len(key) > 1


def normalize_key(event: KeyEvent) -> Optional[str]:
    """Return the token for ``event`` or ``None`` for a bare modifier press.

    >>> normalize_key(KeyEvent("G", shift=True))
    'G'
    >>> normalize_key(KeyEvent("f", ctrl=True))
    'C-f'
    >>> normalize_key(KeyEvent("Enter", ctrl=True, shift=True))
    'C-S-Enter'
    """

    key = event.key
    if not key or key in MODIFIER_KEYS:
        return None
    if is_named_key(key):
        prefix = ""
        if event.ctrl:
            prefix += "C-"
        if event.shift:
            prefix += "S-"
        return prefix + key
    # Shift already shows up in the label's case.
    if event.ctrl:
        return "C-" + key
    return key


__all__ = ["MODIFIER_KEYS", "is_named_key", "normalize_key"]
