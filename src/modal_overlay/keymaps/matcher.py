"""Sequence matching against a flat binding table."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Optional

from .models import Action, BindingTable

ResolutionStatus = Literal["fire", "ambiguous", "building", "miss"]


@dataclass(frozen=True, slots=True)
class Resolution:
    """Outcome of feeding one token into the matcher."""

    status: ResolutionStatus
    action: Optional[Action] = None
    pending: Optional[Action] = None
    new_seq: str = ""
    consumed: bool = False


def has_longer_binding(candidate: str, table: BindingTable) -> bool:
    return any(
        len(sequence) > len(candidate) and sequence.startswith(candidate)
        for sequence in table
    )


def resolve(token: str, accumulated: str, table: BindingTable) -> Resolution:
    """Decide what ``accumulated + token`` means for ``table``.

    An exact match fires immediately unless a strictly longer binding shares
    the prefix, in which case it is returned as ``pending`` and the sequence
    keeps growing. Tables are small, so prefixes are found by a linear scan.
    """

    candidate = accumulated + token
    exact = table.get(candidate)
    longer = has_longer_binding(candidate, table)

    if exact is not None and not longer:
        return Resolution(status="fire", action=exact, consumed=True)
    if exact is not None:
        return Resolution(
            status="ambiguous", pending=exact, new_seq=candidate, consumed=True
        )
    if longer:
        return Resolution(status="building", new_seq=candidate)
    return Resolution(status="miss")


__all__ = ["Resolution", "ResolutionStatus", "has_longer_binding", "resolve"]
