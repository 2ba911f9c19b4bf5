"""Structured logging for the overlay, backed by telelog.

Everything else in the package goes through four calls: :func:`configure`,
:func:`get_logger`, :func:`record_event` and :func:`span`. Configuration is
read from ``MODAL_OVERLAY_*`` environment variables unless a preset or an
explicit ``telelog.Config`` is supplied.
"""

from __future__ import annotations

import os
from contextlib import ExitStack, contextmanager
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Tuple, cast

import telelog  # type: ignore[import]

tl = cast(Any, telelog)

ENV_PREFIX = "MODAL_OVERLAY_"
DEFAULT_LOGGER_NAME = "modal_overlay"

_TRUTHY = frozenset({"1", "true", "yes", "on"})

_loggers: Dict[str, Any] = {}
_config: Optional[Any] = None


def _env(name: str) -> Optional[str]:
    return os.environ.get(ENV_PREFIX + name)


def _env_flag(name: str, default: bool = False) -> bool:
    raw = _env(name)
    return default if raw is None else raw.strip().lower() in _TRUTHY


def _text(value: Any) -> str:
    return value if isinstance(value, str) else repr(value)


def _pairs(payload: Mapping[str, Any]) -> List[Tuple[str, str]]:
    return [(str(key), _text(value)) for key, value in payload.items()]


def _console(config: Any, *, colored: bool = True) -> Any:
    config.with_console_output(True)
    config.with_colored_output(colored)
    return config


def _development() -> Any:
    config = _console(tl.Config())
    config.with_min_level("DEBUG")
    config.with_json_format(False)
    config.with_profiling(True)
    return config


def _production() -> Any:
    config = tl.Config()
    config.with_min_level("INFO")
    config.with_console_output(False)
    config.with_file_output(_env("LOG_FILE") or "modal_overlay.log")
    config.with_buffering(True)
    return config


def _quiet() -> Any:
    config = tl.Config()
    config.with_min_level("ERROR")
    config.with_console_output(False)
    return config


PRESETS: Dict[str, Callable[[], Any]] = {
    "development": _development,
    "production": _production,
    "quiet": _quiet,
}


def _from_environment() -> Any:
    """Default configuration: warnings to the console, tuned by env vars."""

    config = tl.Config()
    config.with_min_level((_env("LOG_LEVEL") or "WARNING").upper())

    if _env_flag("DISABLE_CONSOLE"):
        config.with_console_output(False)
    else:
        _console(config, colored=not _env_flag("NO_COLOR"))

    if _env_flag("LOG_JSON"):
        config.with_json_format(True)

    log_file = _env("LOG_FILE")
    if log_file:
        config.with_file_output(log_file)

    if _env_flag("LOG_BUFFERED"):
        config.with_buffering(True)
        config.with_buffer_size(int(_env("LOG_BUFFER_SIZE") or "2048"))

    config.with_profiling(_env_flag("PROFILE", True))
    return config


def configure(*, config: Optional[Any] = None, preset: Optional[str] = None) -> None:
    """Replace the active configuration and drop cached loggers.

    ``preset`` names one of :data:`PRESETS`; it cannot be combined with an
    explicit ``config``. With neither, the environment is consulted.
    """

    global _config
    if config is not None and preset:
        raise ValueError("pass either config or preset, not both")
    if preset:
        try:
            config = PRESETS[preset.lower()]()
        except KeyError:
            raise ValueError(f"unknown logging preset {preset!r}") from None
    _config = config if config is not None else _from_environment()
    _loggers.clear()


def get_logger(name: Optional[str] = None) -> Any:
    global _config
    key = name or _env("LOGGER") or DEFAULT_LOGGER_NAME
    if key not in _loggers:
        if _config is None:
            _config = _from_environment()
        _loggers[key] = tl.Logger.with_config(key, _config)
    return _loggers[key]


def _emit(log: Any, level: str, message: str, payload: Mapping[str, Any]) -> None:
    lowered = str(level).lower()
    structured = getattr(log, f"{lowered}_with", None)
    if structured is not None:
        structured(message, _pairs(payload))
        return
    plain = getattr(log, lowered, None)
    if plain is None:
        raise ValueError(f"unsupported log level {level!r}")
    plain(f"{message} {dict(payload)}")


def record_event(
    name: str,
    *,
    level: str = "debug",
    data: Optional[Mapping[str, Any]] = None,
    logger_name: Optional[str] = None,
) -> None:
    """Log ``event::<name>`` with ``data`` attached as key/value pairs."""

    _emit(get_logger(logger_name), level, f"event::{name}", {"event": name, **(data or {})})


@dataclass
class Span:
    """Live view of a :func:`span` block; annotations go out with the close line."""

    logger: Any
    name: str
    component: Optional[str] = None
    fields: Dict[str, str] = field(default_factory=dict)

    def annotate(self, key: str, value: Any) -> None:
        self.fields[key] = _text(value)

    def payload(self, **extra: Any) -> Dict[str, str]:
        payload = {"span": self.name, **self.fields}
        if self.component:
            payload["component"] = self.component
        payload.update({key: _text(value) for key, value in extra.items()})
        return payload


@contextmanager
def span(
    name: str,
    *,
    logger_name: Optional[str] = None,
    component: Optional[str | bool] = None,
    metadata: Optional[Mapping[str, Any]] = None,
) -> Iterator[Span]:
    """Profile a block, optionally tracking it as a telelog component.

    ``metadata`` is pushed as logger context for the duration of the block.
    Exceptions are logged at error level and re-raised.
    """

    log = get_logger(logger_name)
    component_name = name if component is True else component or None
    handle = Span(log, name, cast(Optional[str], component_name))

    pushed: List[str] = []
    for key, value in (metadata or {}).items():
        handle.annotate(key, value)
        log.add_context(key, handle.fields[key])
        pushed.append(key)

    try:
        with ExitStack() as stack:
            if handle.component:
                stack.enter_context(log.track_component(handle.component))
            stack.enter_context(log.profile(name))
            try:
                yield handle
            except Exception as exc:
                _emit(log, "error", "span::fail", handle.payload(reason=exc))
                raise
            _emit(log, "debug", "span::done", handle.payload())
    finally:
        for key in pushed:
            log.remove_context(key)


configure()
logger = get_logger()

__all__ = [
    "ENV_PREFIX",
    "PRESETS",
    "Span",
    "configure",
    "get_logger",
    "logger",
    "record_event",
    "span",
]
