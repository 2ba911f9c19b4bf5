"""Key normalization, input pipeline, and the modal dispatch engine."""

from .events import InputTarget, KeyEvent, StaticTarget
from .hooks import AppCallbacks, EngineConfig
from .normalizer import MODIFIER_KEYS, normalize_key
from .pipeline import CAPTURE_PRIORITY, InputPipeline, default_pipeline
from .dispatch import DispatchEngine, setup_dispatch_engine

__all__ = [
    "InputTarget",
    "KeyEvent",
    "StaticTarget",
    "AppCallbacks",
    "EngineConfig",
    "MODIFIER_KEYS",
    "normalize_key",
    "CAPTURE_PRIORITY",
    "InputPipeline",
    "default_pipeline",
    "DispatchEngine",
    "setup_dispatch_engine",
]
