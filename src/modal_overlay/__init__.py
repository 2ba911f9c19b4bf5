"""Input-dispatch core for a vim-style modal overlay."""

__all__ = [
    "adapters",
    "engine",
    "keymaps",
    "runtime",
    "state",
]

__version__ = "0.1.0"
