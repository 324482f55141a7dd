"""Normalized input events.

Screens never see Textual events directly. The TUI bridge converts each key
press into a :class:`KeyEvent` and resize events into a :class:`TerminalSize`,
so every controller can be driven from tests with ``KeyEvent.parse``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from textual import events

__all__ = ["NamedKey", "KeyEvent", "TerminalSize"]


class NamedKey(str, Enum):
    """Non-character keys the engine reacts to."""

    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"
    ENTER = "enter"
    ESCAPE = "escape"
    PAGE_UP = "page_up"
    PAGE_DOWN = "page_down"
    SPACE = "space"
    BACKSPACE = "backspace"
    TAB = "tab"


_ALIASES: dict[str, NamedKey] = {
    "pageup": NamedKey.PAGE_UP,
    "pagedown": NamedKey.PAGE_DOWN,
    "esc": NamedKey.ESCAPE,
    "return": NamedKey.ENTER,
    "ctrl+h": NamedKey.BACKSPACE,
}

_MODIFIERS = ("shift", "ctrl", "meta", "alt")


def _named(token: str) -> NamedKey | None:
    try:
        return NamedKey(token)
    except ValueError:
        return _ALIASES.get(token)


@dataclass(frozen=True, slots=True)
class KeyEvent:
    """A single key press.

    Attributes:
        name: The named key, if the press was not a printable character
            (space is both: ``name`` SPACE and ``char`` " ").
        char: The printable character, empty for named keys.
        shift: Shift was held (also set for upper-case letters).
        ctrl: Control was held.
        meta: Meta/Alt was held.
    """

    name: NamedKey | None = None
    char: str = ""
    shift: bool = False
    ctrl: bool = False
    meta: bool = False

    @property
    def letter(self) -> str:
        """The character in lower case, for case-insensitive bindings."""
        return self.char.lower()

    def is_key(self, name: NamedKey) -> bool:
        return self.name is name

    def is_ctrl(self, letter: str) -> bool:
        return self.ctrl and self.letter == letter

    @property
    def digit(self) -> int | None:
        if len(self.char) == 1 and self.char.isdigit() and not self.ctrl:
            return int(self.char)
        return None

    @classmethod
    def parse(cls, spec: str) -> KeyEvent:
        """Build an event from a key spec such as ``"up"``, ``"shift+t"``, ``"T"``.

        Args:
            spec: Key name or character, optionally prefixed by modifiers
                joined with ``+``.

        Returns:
            The parsed event.
        """
        if spec == "+":
            return cls(char="+")
        *mods, base = spec.split("+") if len(spec) > 1 else [spec]
        modifiers = {m.lower() for m in mods}
        shift = "shift" in modifiers
        ctrl = "ctrl" in modifiers
        meta = bool(modifiers & {"meta", "alt"})

        if base == " ":
            return cls(name=NamedKey.SPACE, char=" ", shift=shift, ctrl=ctrl, meta=meta)
        if len(base) == 1:
            char = base.upper() if shift and base.isalpha() else base
            return cls(
                char=char,
                shift=shift or (char.isalpha() and char.isupper()),
                ctrl=ctrl,
                meta=meta,
            )
        name = _named(base.lower())
        if name is NamedKey.SPACE:
            return cls(name=name, char=" ", shift=shift, ctrl=ctrl, meta=meta)
        return cls(name=name, shift=shift, ctrl=ctrl, meta=meta)

    @classmethod
    def from_textual(cls, event: events.Key) -> KeyEvent:
        """Convert a Textual key event."""
        key = event.key
        if key in ("space", " "):
            return cls(name=NamedKey.SPACE, char=" ")
        parts = key.split("+")
        base = parts[-1]
        modifiers = {p for p in parts[:-1] if p in _MODIFIERS}
        name = _named(key) or _named(base)
        if name is not None:
            return cls(
                name=name,
                shift="shift" in modifiers,
                ctrl="ctrl" in modifiers,
                meta=bool(modifiers & {"meta", "alt"}),
            )
        char = event.character if event.is_printable and event.character else ""
        if not char and len(base) == 1:
            char = base
        return cls(
            char=char,
            shift="shift" in modifiers or (char.isalpha() and char.isupper()),
            ctrl="ctrl" in modifiers,
            meta=bool(modifiers & {"meta", "alt"}),
        )


@dataclass(frozen=True, slots=True)
class TerminalSize:
    """Terminal dimensions in character cells."""

    columns: int
    rows: int
