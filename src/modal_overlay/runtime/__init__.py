"""Telemetry, settings, and timer plumbing."""

from . import telemetry
from .scheduler import AsyncioScheduler, ManualScheduler, Scheduler, TimerHandle
from .settings import EngineSettings

__all__ = [
    "telemetry",
    "AsyncioScheduler",
    "ManualScheduler",
    "Scheduler",
    "TimerHandle",
    "EngineSettings",
]
