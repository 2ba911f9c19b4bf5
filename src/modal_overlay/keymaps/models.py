"""Dataclasses describing key contexts and declared bindings."""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Callable, Iterable, Mapping, Optional

Action = Callable[[], object]
BindingTable = Mapping[str, Action]


@dataclass(frozen=True, slots=True)
class KeyContext:
    """Snapshot of what the keyboard is currently "inside"."""

    page_type: Optional[str] = None
    filter_active: bool = False
    search_active: bool = False
    drawer: Optional[str] = None

    def as_flags(self) -> Mapping[str, bool]:
        flags = {
            "filter_active": self.filter_active,
            "search_active": self.search_active,
            "drawer_open": self.drawer is not None,
        }
        if self.drawer is not None:
            flags[f"drawer.{self.drawer}"] = True
        return MappingProxyType(flags)


@dataclass(frozen=True, slots=True)
class WhenClause:
    """Simple boolean condition used to gate bindings."""

    flag: str
    expected: bool = True

    def __post_init__(self) -> None:
        if not self.flag:
            raise ValueError("flag cannot be empty")

    @classmethod
    def parse(cls, expression: str) -> "WhenClause":
        expr = expression.strip()
        if not expr:
            raise ValueError("expression cannot be empty")
        expected = True
        if expr.startswith("!"):
            expected = False
            expr = expr[1:]
        return cls(expr, expected)

    def evaluate(self, context: Mapping[str, bool]) -> bool:
        return bool(context.get(self.flag, False)) is self.expected


def _normalize_when(clauses: Iterable[WhenClause | str]) -> tuple[WhenClause, ...]:
    return tuple(
        clause if isinstance(clause, WhenClause) else WhenClause.parse(str(clause))
        for clause in clauses
    )


def _normalize_names(names: Iterable[str]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(name.strip() for name in names if name.strip()))


@dataclass(frozen=True, slots=True)
class Binding:
    """Associates a key sequence with a named callback and its context.

    ``action`` names an attribute of the callbacks object handed to the
    engine (``"navigate"``, ``"open_drawer"``, ...); ``args`` are passed
    through when the binding fires. ``page_types`` limits the binding to the
    listed page types; empty means every page.
    """

    sequence: str
    action: str
    args: tuple[object, ...] = ()
    when: tuple[WhenClause, ...] = ()
    page_types: tuple[str, ...] = ()
    description: str = ""
    priority: int = 0

    def __post_init__(self) -> None:
        if not self.sequence:
            raise ValueError("binding sequence cannot be empty")
        if not self.action:
            raise ValueError("binding action cannot be empty")
        object.__setattr__(self, "args", tuple(self.args))
        object.__setattr__(self, "when", _normalize_when(self.when))
        object.__setattr__(self, "page_types", _normalize_names(self.page_types))

    @property
    def when_map(self) -> Mapping[str, bool]:
        return MappingProxyType({clause.flag: clause.expected for clause in self.when})

    def allows(self, context: KeyContext) -> bool:
        if self.page_types and context.page_type not in self.page_types:
            return False
        flags = context.as_flags()
        return all(clause.evaluate(flags) for clause in self.when)


@dataclass(frozen=True, slots=True)
class BlockedKeys:
    """Native host keys to suppress while the gate matches."""

    keys: tuple[str, ...]
    when: tuple[WhenClause, ...] = ()
    page_types: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not self.keys:
            raise ValueError("BlockedKeys requires at least one key")
        object.__setattr__(self, "when", _normalize_when(self.when))
        object.__setattr__(self, "page_types", _normalize_names(self.page_types))

    def allows(self, context: KeyContext) -> bool:
        if self.page_types and context.page_type not in self.page_types:
            return False
        flags = context.as_flags()
        return all(clause.evaluate(flags) for clause in self.when)


__all__ = [
    "Action",
    "BindingTable",
    "KeyContext",
    "WhenClause",
    "Binding",
    "BlockedKeys",
]
