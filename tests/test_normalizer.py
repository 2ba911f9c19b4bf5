from __future__ import annotations

import pytest

from modal_overlay.engine import KeyEvent, normalize_key


def test_plain_key_is_returned_as_is() -> None:
    assert normalize_key(KeyEvent("a")) == "a"


def test_shifted_letter_keeps_upstream_casing() -> None:
    assert normalize_key(KeyEvent("G", shift=True)) == "G"


def test_ctrl_chord_gets_prefix() -> None:
    assert normalize_key(KeyEvent("f", ctrl=True)) == "C-f"


@pytest.mark.parametrize("key", ["Shift", "Control", "Alt", "Meta"])
def test_modifier_only_presses_are_dropped(key: str) -> None:
    assert normalize_key(KeyEvent(key)) is None


def test_named_keys_pass_through() -> None:
    assert normalize_key(KeyEvent("Enter")) == "Enter"
    assert normalize_key(KeyEvent("Escape")) == "Escape"
    assert normalize_key(KeyEvent("ArrowDown")) == "ArrowDown"


def test_named_keys_carry_modifier_prefixes() -> None:
    assert normalize_key(KeyEvent("Enter", shift=True)) == "S-Enter"
    assert normalize_key(KeyEvent("Tab", shift=True)) == "S-Tab"
    assert normalize_key(KeyEvent("Enter", ctrl=True)) == "C-Enter"
    assert normalize_key(KeyEvent("Enter", ctrl=True, shift=True)) == "C-S-Enter"


def test_alt_and_meta_do_not_change_the_token() -> None:
    assert normalize_key(KeyEvent("x", alt=True)) == "x"
    assert normalize_key(KeyEvent("Enter", meta=True)) == "Enter"


def test_empty_label_is_treated_as_noop() -> None:
    assert normalize_key(KeyEvent("")) is None
