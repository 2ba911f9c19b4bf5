"""Declarative keymap registry that builds per-event binding tables."""

from __future__ import annotations

from dataclasses import dataclass
from functools import partial
from typing import Dict, Iterable, Iterator, List, Optional

from modal_overlay.runtime.telemetry import record_event, span

from .models import Action, Binding, BlockedKeys, KeyContext, WhenClause


@dataclass(slots=True)
class RegistryStats:
    """Lightweight snapshot describing registry state."""

    binding_count: int
    blocked_key_count: int
    sequences: tuple[str, ...]


class KeymapConflictError(RuntimeError):
    """Raised when a new binding conflicts with existing entries."""

    def __init__(self, binding: Binding, conflicts: Iterable[Binding]):
        conflicts_tuple = tuple(conflicts)
        message = (
            f"Binding '{binding.sequence}' -> {binding.action} conflicts with "
            f"{[b.action for b in conflicts_tuple]}"
        )
        super().__init__(message)
        self.binding = binding
        self.conflicts = conflicts_tuple


class KeymapRegistry:
    """Owns declared bindings and native-key blocks.

    ``binding_table`` and ``blocked_keys`` have the signatures the dispatch
    engine expects from its config, so a registry can be plugged straight
    into :class:`~modal_overlay.engine.hooks.EngineConfig`.
    """

    def __init__(self, *, logger_name: str | None = None) -> None:
        self._bindings: Dict[str, List[Binding]] = {}
        self._blocked: List[BlockedKeys] = []
        self._logger_name = logger_name

    def register(self, binding: Binding, *, replace: bool = False) -> Binding:
        with span(
            "keymaps::register",
            logger_name=self._logger_name,
            component="keymaps",
            metadata={"sequence": binding.sequence, "action": binding.action},
        ) as handle:
            conflicts = self.detect_conflicts(binding)
            if conflicts and not replace:
                handle.annotate(
                    "conflicts", ",".join(conflict.action for conflict in conflicts)
                )
                raise KeymapConflictError(binding, conflicts)

            bucket = self._bindings.setdefault(binding.sequence, [])
            for conflict in conflicts:
                bucket.remove(conflict)
            bucket.append(binding)
            return binding

    def bind(
        self,
        sequence: str,
        action: str,
        *args: object,
        when: Iterable[WhenClause | str] = (),
        page_types: Iterable[str] = (),
        description: str = "",
        priority: int = 0,
        replace: bool = False,
    ) -> Binding:
        binding = Binding(
            sequence=sequence,
            action=action,
            args=args,
            when=tuple(when),
            page_types=tuple(page_types),
            description=description,
            priority=priority,
        )
        return self.register(binding, replace=replace)

    def unregister(self, sequence: str) -> list[Binding]:
        return self._bindings.pop(sequence, [])

    def block_native(
        self,
        *keys: str,
        when: Iterable[WhenClause | str] = (),
        page_types: Iterable[str] = (),
    ) -> BlockedKeys:
        entry = BlockedKeys(
            keys=tuple(keys), when=tuple(when), page_types=tuple(page_types)
        )
        self._blocked.append(entry)
        return entry

    def iter_bindings(self, context: Optional[KeyContext] = None) -> Iterator[Binding]:
        for bucket in self._bindings.values():
            for binding in bucket:
                if context is None or binding.allows(context):
                    yield binding

    def detect_conflicts(self, binding: Binding) -> list[Binding]:
        return [
            existing
            for existing in self._bindings.get(binding.sequence, [])
            if _contexts_overlap(binding, existing)
        ]

    def binding_table(self, callbacks: object, context: KeyContext) -> Dict[str, Action]:
        """Build the ``sequence -> zero-arg action`` table for ``context``.

        When several bindings for one sequence apply, the highest priority
        wins, then the most specific gate.
        """

        table: Dict[str, Action] = {}
        for sequence, bucket in self._bindings.items():
            allowed = [binding for binding in bucket if binding.allows(context)]
            if not allowed:
                continue
            chosen = max(
                allowed,
                key=lambda b: (b.priority, len(b.when) + len(b.page_types)),
            )
            handler = getattr(callbacks, chosen.action, None)
            if not callable(handler):
                record_event(
                    "keymaps.missing_action",
                    level="warning",
                    data={"sequence": sequence, "action": chosen.action},
                    logger_name=self._logger_name,
                )
                continue
            table[sequence] = partial(handler, *chosen.args)
        return table

    def blocked_keys(self, context: KeyContext) -> list[str]:
        keys: Dict[str, None] = {}
        for entry in self._blocked:
            if entry.allows(context):
                keys.update(dict.fromkeys(entry.keys))
        return list(keys)

    def stats(self) -> RegistryStats:
        return RegistryStats(
            binding_count=sum(len(bucket) for bucket in self._bindings.values()),
            blocked_key_count=sum(len(entry.keys) for entry in self._blocked),
            sequences=tuple(sorted(self._bindings)),
        )


def _contexts_overlap(left: Binding, right: Binding) -> bool:
    if left.priority != right.priority:
        return False

    if left.page_types and right.page_types:
        if not set(left.page_types) & set(right.page_types):
            return False
    elif left.page_types or right.page_types:
        return False

    left_map = left.when_map
    right_map = right.when_map

    if not left.when and not right.when:
        return True

    for flag, expected in left_map.items():
        if flag in right_map and right_map[flag] != expected:
            return False

    if not left.when or not right.when:
        return False

    return left_map == right_map


__all__ = [
    "KeymapRegistry",
    "KeymapConflictError",
    "RegistryStats",
]
