"""Colour and attribute mapping from pyte cells to rich styles."""

from __future__ import annotations

import os
from functools import lru_cache
from typing import Mapping, NamedTuple

from pyte.graphics import FG_BG_256
from rich.color import Color
from rich.style import Style

DEFAULT_COLOR = -1
TRUECOLOR_FLAG = 1 << 24
PALETTE_SIZE = 256

ATTR_BOLD = 1
ATTR_UNDERLINE = 2
ATTR_REVERSE = 4
ATTR_BLINK = 8
# pyte cells carry no dim flag, so ATTR_DIM is only set on hand-built VTCells.
ATTR_DIM = 16
ATTR_ITALIC = 32

MULTIPLEXER_ENV_VARS = ("TMUX", "ZELLIJ", "STY")

_NAMED = {
    "black": 0,
    "red": 1,
    "green": 2,
    "brown": 3,
    "yellow": 3,
    "blue": 4,
    "magenta": 5,
    "cyan": 6,
    "white": 7,
}

_PALETTE_BY_HEX: dict[str, int] = {}
for _index, _hex in enumerate(FG_BG_256):
    _PALETTE_BY_HEX.setdefault(_hex.lower(), _index)


class VTCell(NamedTuple):
    """One terminal cell with colours already normalised to ints."""

    char: str = " "
    fg: int = DEFAULT_COLOR
    bg: int = DEFAULT_COLOR
    attrs: int = 0


BLANK_CELL = VTCell()


def parse_vt_color(value: str | None) -> int:
    """Normalise a pyte colour string.

    Returns ``DEFAULT_COLOR``, a palette index 0-255, or
    ``TRUECOLOR_FLAG | 0xRRGGBB``.
    """
    if not value or value == "default":
        return DEFAULT_COLOR
    name = value.lower()
    if name in _NAMED:
        return _NAMED[name]
    if name.startswith("bright") and name[6:] in _NAMED:
        return _NAMED[name[6:]] + 8
    if name in _PALETTE_BY_HEX:
        return _PALETTE_BY_HEX[name]
    try:
        return TRUECOLOR_FLAG | (int(name, 16) & 0xFFFFFF)
    except ValueError:
        return DEFAULT_COLOR


def attrs_from_char(char) -> int:
    attrs = 0
    if getattr(char, "bold", False):
        attrs |= ATTR_BOLD
    if getattr(char, "underscore", False):
        attrs |= ATTR_UNDERLINE
    if getattr(char, "reverse", False):
        attrs |= ATTR_REVERSE
    if getattr(char, "blink", False):
        attrs |= ATTR_BLINK
    if getattr(char, "italics", False):
        attrs |= ATTR_ITALIC
    return attrs


def cell_from_pyte(char) -> VTCell:
    """Convert a ``pyte.screens.Char``; NUL becomes a space."""
    data = char.data or " "
    if data == "\x00":
        data = " "
    return VTCell(data, parse_vt_color(char.fg), parse_vt_color(char.bg), attrs_from_char(char))


def in_multiplexer(env: Mapping[str, str] | None = None) -> bool:
    """True inside tmux, zellij or GNU screen."""
    env = os.environ if env is None else env
    return any(env.get(name) for name in MULTIPLEXER_ENV_VARS)


def rgb_to_256(r: int, g: int, b: int) -> int:
    """Nearest index in the 6x6x6 colour cube."""
    return 16 + 36 * (r * 5 // 255) + 6 * (g * 5 // 255) + b * 5 // 255


def split_rgb(value: int) -> tuple[int, int, int]:
    rgb = value & 0xFFFFFF
    return (rgb >> 16) & 0xFF, (rgb >> 8) & 0xFF, rgb & 0xFF


def to_rich_color(value: int, multiplexer: bool = False) -> Color | None:
    if value < 0:
        return None
    if value < PALETTE_SIZE:
        return Color.from_ansi(value)
    r, g, b = split_rgb(value)
    if multiplexer:
        return Color.from_ansi(rgb_to_256(r, g, b))
    return Color.from_rgb(r, g, b)


def parse_background(value: str) -> int:
    """Parse the configured default background (``"235"`` or ``"#1e1e1e"``)."""
    value = (value or "").strip()
    if not value:
        return DEFAULT_COLOR
    if value.isdigit():
        return min(int(value), PALETTE_SIZE - 1)
    return parse_vt_color(value.lstrip("#"))


@lru_cache(maxsize=4096)
def cell_style(
    fg: int,
    bg: int,
    attrs: int,
    default_bg: int = DEFAULT_COLOR,
    multiplexer: bool = False,
) -> Style:
    """Rich style for a cell; an unset background uses ``default_bg``."""
    if bg < 0:
        bg = default_bg
    return Style(
        color=to_rich_color(fg, multiplexer),
        bgcolor=to_rich_color(bg, multiplexer),
        bold=bool(attrs & ATTR_BOLD),
        underline=bool(attrs & ATTR_UNDERLINE),
        reverse=bool(attrs & ATTR_REVERSE),
        blink=bool(attrs & ATTR_BLINK),
        dim=bool(attrs & ATTR_DIM),
        italic=bool(attrs & ATTR_ITALIC),
    )
