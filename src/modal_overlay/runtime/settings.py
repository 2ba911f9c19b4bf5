"""Environment-driven engine settings."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .telemetry import ENV_PREFIX

DEFAULT_SEQUENCE_TIMEOUT_MS = 500
DEFAULT_REFOCUS_DELAY_MS = 10
DEFAULT_STATUS_INPUT_ID = "status-input"


def _env_int(
    environ: Mapping[str, str], name: str, fallback: int, *, minimum: int = 0
) -> int:
    value = environ.get(f"{ENV_PREFIX}{name}")
    if value is None:
        return fallback
    try:
        parsed = int(value)
    except ValueError:
        return fallback
    return parsed if parsed >= minimum else fallback


@dataclass(frozen=True, slots=True)
class EngineSettings:
    """Timing constants and widget ids shared by every engine instance."""

    sequence_timeout_ms: int = DEFAULT_SEQUENCE_TIMEOUT_MS
    refocus_delay_ms: int = DEFAULT_REFOCUS_DELAY_MS
    status_input_id: str = DEFAULT_STATUS_INPUT_ID

    def __post_init__(self) -> None:
        if self.sequence_timeout_ms <= 0:
            raise ValueError("sequence_timeout_ms must be positive")
        if self.refocus_delay_ms < 0:
            raise ValueError("refocus_delay_ms cannot be negative")
        if not self.status_input_id:
            raise ValueError("status_input_id cannot be empty")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "EngineSettings":
        env = os.environ if environ is None else environ
        return cls(
            sequence_timeout_ms=_env_int(
                env, "SEQUENCE_TIMEOUT_MS", DEFAULT_SEQUENCE_TIMEOUT_MS, minimum=1
            ),
            refocus_delay_ms=_env_int(
                env, "REFOCUS_DELAY_MS", DEFAULT_REFOCUS_DELAY_MS
            ),
            status_input_id=env.get(f"{ENV_PREFIX}STATUS_INPUT_ID")
            or DEFAULT_STATUS_INPUT_ID,
        )


__all__ = [
    "DEFAULT_REFOCUS_DELAY_MS",
    "DEFAULT_SEQUENCE_TIMEOUT_MS",
    "DEFAULT_STATUS_INPUT_ID",
    "EngineSettings",
]
