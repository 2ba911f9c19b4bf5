from __future__ import annotations

import dataclasses

import pytest

from modal_overlay.state import (
    COMMAND,
    FILTER,
    NORMAL,
    RECOMMENDED,
    SEARCH,
    ApplicationState,
    UIState,
    activate_overlay,
    close_drawer,
    create_app_state,
    deactivate_overlay,
    derive_mode,
    exit_filter,
    exit_search,
    open_drawer,
    open_filter,
    open_palette,
    open_search,
    reset_state,
    set_filter_query,
    set_message,
    set_selected_index,
)


def make_state(**ui: object) -> ApplicationState:
    return ApplicationState(ui=UIState(**ui))  # type: ignore[arg-type]


def test_default_state_is_normal_and_inactive() -> None:
    state = create_app_state()

    assert derive_mode(state) == NORMAL
    assert state.core.overlay_active is False
    assert state.ui.drawer is None


@pytest.mark.parametrize(
    ("ui", "expected"),
    [
        ({"drawer": "palette"}, COMMAND),
        ({"drawer": "recommended"}, RECOMMENDED),
        ({"drawer": "chapters"}, "CHAPTERS"),
        ({"drawer": "description"}, "DESCRIPTION"),
        ({"filter_active": True}, FILTER),
        ({"search_active": True}, SEARCH),
        ({}, NORMAL),
    ],
)
def test_derive_mode_tags(ui: dict, expected: str) -> None:
    assert derive_mode(make_state(**ui)) == expected


def test_drawer_wins_over_filter_and_search() -> None:
    state = make_state(drawer="chapters", filter_active=True, search_active=True)

    assert derive_mode(state) == "CHAPTERS"


def test_filter_wins_over_search() -> None:
    state = make_state(filter_active=True, search_active=True)

    assert derive_mode(state) == FILTER


def test_closing_drawer_reveals_filter_underneath() -> None:
    state = open_drawer(open_filter(create_app_state()), "chapters")

    closed = close_drawer(state)

    assert derive_mode(closed) == FILTER
    assert closed.ui.filter_active is True


def test_close_drawer_resets_palette_query() -> None:
    state = open_palette(create_app_state(), query="sor")
    state = dataclasses.replace(state, ui=dataclasses.replace(state.ui, palette_selected_idx=3))

    closed = close_drawer(state)

    assert closed.ui.drawer is None
    assert closed.ui.palette_query == ""
    assert closed.ui.palette_selected_idx == 0


def test_exit_filter_clears_query_and_selection() -> None:
    state = set_selected_index(set_filter_query(open_filter(create_app_state()), "abc"), 4)

    exited = exit_filter(state)

    assert exited.ui.filter_active is False
    assert exited.ui.filter_query == ""
    assert exited.ui.selected_idx == 0


def test_exit_search_clears_query_only() -> None:
    state = open_search(set_selected_index(create_app_state(), 2))
    state = dataclasses.replace(state, ui=dataclasses.replace(state.ui, search_query="cats"))

    exited = exit_search(state)

    assert exited.ui.search_active is False
    assert exited.ui.search_query == ""
    assert exited.ui.selected_idx == 2


def test_transitions_never_mutate_previous_snapshot() -> None:
    original = create_app_state()

    updated = open_drawer(activate_overlay(original), "chapters")

    assert original.ui.drawer is None
    assert original.core.overlay_active is False
    assert updated is not original
    assert updated.ui is not original.ui


def test_snapshots_are_frozen() -> None:
    state = create_app_state()

    with pytest.raises(dataclasses.FrozenInstanceError):
        state.ui.drawer = "chapters"  # type: ignore[misc]


def test_site_and_page_are_threaded_through() -> None:
    site = {"transcript": None}
    state = create_app_state(site=site, page=["item"])

    updated = exit_filter(open_filter(activate_overlay(state)))

    assert updated.site is site
    assert updated.page == ["item"]


def test_reset_state_discards_everything() -> None:
    state = open_drawer(activate_overlay(create_app_state(site=object())), "chapters")

    fresh = reset_state(state)

    assert fresh == create_app_state()


def test_deactivate_overlay_keeps_ui_layers() -> None:
    state = open_filter(activate_overlay(create_app_state()))

    inactive = deactivate_overlay(state)

    assert inactive.core.overlay_active is False
    assert inactive.ui.filter_active is True


def test_open_drawer_rejects_empty_id() -> None:
    with pytest.raises(ValueError):
        open_drawer(create_app_state(), "")


def test_set_message_records_text_and_timestamp() -> None:
    state = set_message(create_app_state(), "Copied", timestamp=12.5)

    assert state.ui.message is not None
    assert state.ui.message.text == "Copied"
    assert state.ui.message.timestamp == 12.5
    assert set_message(state, None).ui.message is None


def test_selected_index_is_never_negative() -> None:
    assert set_selected_index(create_app_state(), -3).ui.selected_idx == 0
