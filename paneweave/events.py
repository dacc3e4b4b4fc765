"""Input events handed to the layout manager."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union

MODIFIER_ORDER = ("ctrl", "alt", "shift")

# Display libraries name punctuation keys differently; fold them to one spelling.
KEY_ALIASES = {
    "right_square_bracket": "]",
    "left_square_bracket": "[",
    "backslash": "\\",
    "underscore": "_",
    "slash": "/",
    "question_mark": "?",
    "exclamation_mark": "!",
    "minus": "-",
    "return": "enter",
    "esc": "escape",
    "pgup": "pageup",
    "pgdn": "pagedown",
    "page_up": "pageup",
    "page_down": "pagedown",
    "backtab": "tab",
}


@dataclass(frozen=True)
class KeyEvent:
    """A key press.

    ``key`` is a lower-case key name (``"q"``, ``"enter"``, ``"left"``,
    ``"f5"``) and ``char`` is the printable character, if any.
    """

    key: str
    modifiers: frozenset[str] = field(default_factory=frozenset)
    char: str | None = None

    @property
    def ctrl(self) -> bool:
        return "ctrl" in self.modifiers

    @property
    def alt(self) -> bool:
        return "alt" in self.modifiers

    @property
    def shift(self) -> bool:
        return "shift" in self.modifiers

    @property
    def combo(self) -> str:
        """Canonical ``mod+mod+key`` spelling used by shortcut tables."""
        mods = [m for m in MODIFIER_ORDER if m in self.modifiers]
        return "+".join([*mods, self.key])

    @property
    def is_printable(self) -> bool:
        return bool(self.char) and self.char.isprintable() and not (self.ctrl or self.alt)

    @classmethod
    def parse(cls, combo: str, char: str | None = None) -> "KeyEvent":
        """Build an event from a ``ctrl+shift+n`` style string."""
        if combo == "+":
            return cls("+", frozenset(), "+")
        parts = combo.split("+")
        if parts[-1] == "" and len(parts) > 1:
            parts = parts[:-2] + ["+"]
        key = KEY_ALIASES.get(parts[-1].lower(), parts[-1])
        if len(key) > 1:
            key = key.lower()
        modifiers = frozenset(p.lower() for p in parts[:-1])
        if combo.lower() == "backtab" or combo.lower() == "shift+tab":
            modifiers = modifiers | {"shift"}
        if char is None and len(key) == 1 and not modifiers & {"ctrl", "alt"}:
            char = key
        return cls(key, modifiers, char)


@dataclass(frozen=True)
class MouseEvent:
    """A pointer press at screen coordinates."""

    x: int
    y: int
    button: str = "left"

    @property
    def is_wheel(self) -> bool:
        return self.button in ("wheel_up", "wheel_down")


@dataclass(frozen=True)
class ResizeEvent:
    width: int
    height: int


@dataclass(frozen=True)
class PasteEvent:
    text: str


@dataclass(frozen=True)
class RawEvent:
    """Escape sequence the display library could not decode."""

    sequence: str


InputEvent = Union[KeyEvent, MouseEvent, ResizeEvent, PasteEvent, RawEvent]
