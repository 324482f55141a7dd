"""Tests for normalized key events."""

from __future__ import annotations

from types import SimpleNamespace

import pytest

from relaycode.app.input import KeyEvent, NamedKey


@pytest.mark.parametrize(
    ("spec", "name"),
    [
        ("up", NamedKey.UP),
        ("pagedown", NamedKey.PAGE_DOWN),
        ("page_up", NamedKey.PAGE_UP),
        ("esc", NamedKey.ESCAPE),
        ("return", NamedKey.ENTER),
    ],
)
def test_named_keys(spec: str, name: NamedKey) -> None:
    event = KeyEvent.parse(spec)

    assert event.is_key(name)
    assert event.char == ""


def test_space_is_both_named_and_printable() -> None:
    event = KeyEvent.parse(" ")

    assert event.is_key(NamedKey.SPACE)
    assert event.char == " "


def test_upper_case_implies_shift() -> None:
    assert KeyEvent.parse("T") == KeyEvent.parse("shift+t")
    assert KeyEvent.parse("T").letter == "t"


def test_ctrl_combination() -> None:
    event = KeyEvent.parse("ctrl+b")

    assert event.is_ctrl("b")
    assert not KeyEvent.parse("b").is_ctrl("b")


def test_digits() -> None:
    assert KeyEvent.parse("3").digit == 3
    assert KeyEvent.parse("x").digit is None
    assert KeyEvent.parse("ctrl+3").digit is None


def test_plus_character() -> None:
    assert KeyEvent.parse("+").char == "+"


@pytest.mark.parametrize(
    ("key", "character", "printable", "expected"),
    [
        ("up", None, False, KeyEvent(name=NamedKey.UP)),
        ("space", " ", True, KeyEvent(name=NamedKey.SPACE, char=" ")),
        ("ctrl+l", None, False, KeyEvent(char="l", ctrl=True)),
        ("T", "T", True, KeyEvent(char="T", shift=True)),
        ("question_mark", "?", True, KeyEvent(char="?")),
        ("shift+down", None, False, KeyEvent(name=NamedKey.DOWN, shift=True)),
    ],
)
def test_from_textual(
    key: str, character: str | None, printable: bool, expected: KeyEvent
) -> None:
    event = SimpleNamespace(key=key, character=character, is_printable=printable)

    assert KeyEvent.from_textual(event) == expected  # type: ignore[arg-type]
