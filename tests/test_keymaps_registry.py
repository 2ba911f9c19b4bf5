from __future__ import annotations

from typing import List

import pytest

from modal_overlay.engine import AppCallbacks
from modal_overlay.keymaps import (
    Binding,
    KeyContext,
    KeymapConflictError,
    KeymapRegistry,
    WhenClause,
)


def make_callbacks(calls: List[tuple]) -> AppCallbacks:
    return AppCallbacks(
        navigate=lambda direction: calls.append(("navigate", direction)),
        select=lambda new_tab: calls.append(("select", new_tab)),
        extras={"copy_url": lambda: calls.append(("copy_url",))},
    )


def test_register_binding_success() -> None:
    registry = KeymapRegistry()
    binding = Binding(sequence="j", action="navigate", args=("down",))

    registry.register(binding)

    assert registry.stats().binding_count == 1
    assert list(registry.iter_bindings()) == [binding]


def test_register_binding_conflict_detection() -> None:
    registry = KeymapRegistry()
    registry.bind("gh", "navigate", "home")

    with pytest.raises(KeymapConflictError):
        registry.bind("gh", "navigate", "history")


def test_replace_swaps_conflicting_binding() -> None:
    registry = KeymapRegistry()
    registry.bind("gh", "navigate", "home")

    registry.bind("gh", "navigate", "history", replace=True)

    bindings = list(registry.iter_bindings())
    assert len(bindings) == 1
    assert bindings[0].args == ("history",)


def test_register_binding_non_overlapping_when() -> None:
    registry = KeymapRegistry()

    registry.bind("j", "navigate", "down")
    registry.bind("j", "navigate", "next", when=("filter_active",))
    registry.bind("j", "navigate", "skip", when=(WhenClause.parse("!filter_active"),))

    assert registry.stats().binding_count == 3


def test_disjoint_page_types_do_not_conflict() -> None:
    registry = KeymapRegistry()

    registry.bind("h", "navigate", "left", page_types=("listing",))
    registry.bind("h", "seek", -10, page_types=("watch",))

    assert registry.stats().binding_count == 2


def test_binding_table_calls_through_with_args() -> None:
    calls: List[tuple] = []
    registry = KeymapRegistry()
    registry.bind("j", "navigate", "down")
    registry.bind("Enter", "select", False)
    registry.bind("yy", "copy_url")

    table = registry.binding_table(make_callbacks(calls), KeyContext())
    table["j"]()
    table["Enter"]()
    table["yy"]()

    assert calls == [("navigate", "down"), ("select", False), ("copy_url",)]


def test_binding_table_honors_when_clauses() -> None:
    registry = KeymapRegistry()
    registry.bind("j", "navigate", "down", when=("!filter_active", "!search_active"))
    callbacks = make_callbacks([])

    normal = registry.binding_table(callbacks, KeyContext())
    filtering = registry.binding_table(callbacks, KeyContext(filter_active=True))

    assert "j" in normal
    assert "j" not in filtering


def test_binding_table_honors_page_types() -> None:
    registry = KeymapRegistry()
    registry.bind("C-f", "navigate", "next_comments", page_types=("watch",))
    callbacks = make_callbacks([])

    assert "C-f" in registry.binding_table(callbacks, KeyContext(page_type="watch"))
    assert "C-f" not in registry.binding_table(callbacks, KeyContext(page_type="home"))
    assert "C-f" not in registry.binding_table(callbacks, KeyContext())


def test_more_specific_binding_wins() -> None:
    calls: List[tuple] = []
    registry = KeymapRegistry()
    registry.bind("Enter", "select", False)
    registry.bind("Enter", "navigate", "drawer", when=("drawer.recommended",))
    callbacks = make_callbacks(calls)

    registry.binding_table(callbacks, KeyContext(drawer="recommended"))["Enter"]()
    registry.binding_table(callbacks, KeyContext())["Enter"]()

    assert calls == [("navigate", "drawer"), ("select", False)]


def test_higher_priority_wins() -> None:
    calls: List[tuple] = []
    registry = KeymapRegistry()
    registry.bind("j", "navigate", "down")
    registry.bind("j", "navigate", "fast", priority=10)

    registry.binding_table(make_callbacks(calls), KeyContext())["j"]()

    assert calls == [("navigate", "fast")]


def test_missing_callback_is_skipped() -> None:
    registry = KeymapRegistry()
    registry.bind("zz", "does_not_exist")
    registry.bind("j", "navigate", "down")

    table = registry.binding_table(make_callbacks([]), KeyContext())

    assert set(table) == {"j"}


def test_blocked_keys_follow_context() -> None:
    registry = KeymapRegistry()
    registry.block_native("f", "m", page_types=("watch",))
    registry.block_native("k")
    registry.block_native("j", when=("filter_active",))

    assert registry.blocked_keys(KeyContext(page_type="watch")) == ["f", "m", "k"]
    assert registry.blocked_keys(KeyContext(page_type="home")) == ["k"]
    assert registry.blocked_keys(KeyContext(filter_active=True)) == ["k", "j"]


def test_unregister_drops_every_binding_for_sequence() -> None:
    registry = KeymapRegistry()
    registry.bind("j", "navigate", "down")
    registry.bind("j", "navigate", "next", when=("filter_active",))

    removed = registry.unregister("j")

    assert len(removed) == 2
    assert registry.stats().binding_count == 0
    assert registry.unregister("j") == []


def test_binding_validation() -> None:
    with pytest.raises(ValueError):
        Binding(sequence="", action="navigate")
    with pytest.raises(ValueError):
        Binding(sequence="j", action="")
    with pytest.raises(ValueError):
        WhenClause.parse("  ")


def test_key_context_flags() -> None:
    flags = KeyContext(drawer="chapters", search_active=True).as_flags()

    assert flags["drawer_open"] is True
    assert flags["drawer.chapters"] is True
    assert flags["search_active"] is True
    assert flags["filter_active"] is False
