"""Translate key events into the bytes a terminal program reads."""

from __future__ import annotations

from paneweave.events import KeyEvent

KEY_SEQUENCES = {
    "enter": "\r",
    "tab": "\t",
    "backspace": "\x7f",
    "escape": "\x1b",
    "delete": "\x1b[3~",
    "insert": "\x1b[2~",
    "up": "\x1b[A",
    "down": "\x1b[B",
    "right": "\x1b[C",
    "left": "\x1b[D",
    "home": "\x1b[H",
    "end": "\x1b[F",
    "pageup": "\x1b[5~",
    "pagedown": "\x1b[6~",
    "f1": "\x1bOP",
    "f2": "\x1bOQ",
    "f3": "\x1bOR",
    "f4": "\x1bOS",
    "f5": "\x1b[15~",
    "f6": "\x1b[17~",
    "f7": "\x1b[18~",
    "f8": "\x1b[19~",
    "f9": "\x1b[20~",
    "f10": "\x1b[21~",
    "f11": "\x1b[23~",
    "f12": "\x1b[24~",
}

_CURSOR_FINALS = {"up": "A", "down": "B", "right": "C", "left": "D", "home": "H", "end": "F"}

_CTRL_PUNCTUATION = {
    "space": "\x00",
    "@": "\x00",
    "[": "\x1b",
    "\\": "\x1c",
    "]": "\x1d",
    "^": "\x1e",
    "_": "\x1f",
    "/": "\x1f",
}


def _modifier_param(event: KeyEvent) -> int:
    value = 1
    if event.shift:
        value += 1
    if event.alt:
        value += 2
    if event.ctrl:
        value += 4
    return value


def encode_key(event: KeyEvent) -> str | None:
    """Bytes for ``event``, or None when the key has no terminal encoding."""
    key = event.key
    if key == "tab" and event.shift:
        return "\x1b[Z"

    if key in _CURSOR_FINALS and event.modifiers:
        return f"\x1b[1;{_modifier_param(event)}{_CURSOR_FINALS[key]}"

    if event.ctrl:
        if len(key) == 1 and key.isalpha():
            encoded = chr(ord(key.lower()) - 96)
        elif key in _CTRL_PUNCTUATION:
            encoded = _CTRL_PUNCTUATION[key]
        elif key in KEY_SEQUENCES:
            encoded = KEY_SEQUENCES[key]
        else:
            return None
        return "\x1b" + encoded if event.alt else encoded

    if key in KEY_SEQUENCES:
        encoded = KEY_SEQUENCES[key]
    elif key == "space":
        encoded = " "
    elif event.char:
        encoded = event.char
    elif len(key) == 1:
        encoded = key
    else:
        return None
    return "\x1b" + encoded if event.alt else encoded
