"""Cell-grid canvas the layout paints into.

The canvas is the display boundary: panes call :meth:`Canvas.set_cell` and the
textual view turns finished rows into strips of rich segments.
"""

from __future__ import annotations

from typing import Callable, Iterator, NamedTuple, Optional

from rich.color import Color
from rich.segment import Segment
from rich.style import Style

BLANK_STYLE = Style()


def color256(index: int) -> Color:
    """Rich colour for a 256-colour palette index."""
    return Color.from_ansi(index)


def fg(index: int, **attrs) -> Style:
    return Style(color=color256(index), **attrs)


def bg(index: int, **attrs) -> Style:
    return Style(bgcolor=color256(index), **attrs)


class Cell(NamedTuple):
    char: str
    style: Style


class Canvas:
    """Mutable grid of styled cells."""

    def __init__(self, width: int, height: int, on_show: Optional[Callable[["Canvas"], None]] = None) -> None:
        self.width = 0
        self.height = 0
        self._rows: list[list[Cell]] = []
        self._on_show = on_show
        self.frames_shown = 0
        self.resize(width, height)

    def resize(self, width: int, height: int) -> None:
        self.width = max(0, width)
        self.height = max(0, height)
        self.clear()

    def clear(self, style: Style = BLANK_STYLE) -> None:
        blank = Cell(" ", style)
        self._rows = [[blank] * self.width for _ in range(self.height)]

    def set_cell(self, x: int, y: int, char: str, style: Style = BLANK_STYLE) -> None:
        """Write one cell; coordinates outside the grid are ignored."""
        if 0 <= x < self.width and 0 <= y < self.height:
            self._rows[y][x] = Cell(char or " ", style)

    def get_cell(self, x: int, y: int) -> Cell:
        return self._rows[y][x]

    def draw_text(self, x: int, y: int, text: str, style: Style = BLANK_STYLE, max_x: int | None = None) -> int:
        """Write ``text`` left to right and return the column after it."""
        limit = self.width if max_x is None else min(max_x, self.width)
        for char in text:
            if x >= limit:
                break
            self.set_cell(x, y, char, style)
            x += 1
        return x

    def fill(self, x: int, y: int, width: int, height: int, char: str = " ", style: Style = BLANK_STYLE) -> None:
        for row in range(y, y + height):
            for col in range(x, x + width):
                self.set_cell(col, row, char, style)

    def row_text(self, y: int) -> str:
        return "".join(cell.char for cell in self._rows[y])

    def text(self) -> str:
        return "\n".join(self.row_text(y) for y in range(self.height))

    def row_segments(self, y: int) -> Iterator[Segment]:
        """Merge runs of equally styled cells into segments."""
        row = self._rows[y] if 0 <= y < self.height else []
        run: list[str] = []
        run_style: Style | None = None
        for cell in row:
            if run and cell.style != run_style:
                yield Segment("".join(run), run_style)
                run = []
            run.append(cell.char)
            run_style = cell.style
        if run:
            yield Segment("".join(run), run_style)

    def show(self) -> None:
        """Flip the finished frame to the display."""
        self.frames_shown += 1
        if self._on_show is not None:
            self._on_show(self)


def draw_box(canvas: Canvas, x: int, y: int, width: int, height: int, style: Style, double: bool = False) -> None:
    """Draw a single or double line rectangle outline."""
    if width < 2 or height < 2:
        return
    if double:
        tl, tr, bl, br, h, v = "╔", "╗", "╚", "╝", "═", "║"
    else:
        tl, tr, bl, br, h, v = "┌", "┐", "└", "┘", "─", "│"
    right = x + width - 1
    bottom = y + height - 1
    canvas.set_cell(x, y, tl, style)
    canvas.set_cell(right, y, tr, style)
    canvas.set_cell(x, bottom, bl, style)
    canvas.set_cell(right, bottom, br, style)
    for col in range(x + 1, right):
        canvas.set_cell(col, y, h, style)
        canvas.set_cell(col, bottom, h, style)
    for row in range(y + 1, bottom):
        canvas.set_cell(x, row, v, style)
        canvas.set_cell(right, row, v, style)


def draw_centered(canvas: Canvas, x: int, width: int, y: int, text: str, style: Style) -> None:
    start = x + max(0, (width - len(text)) // 2)
    canvas.draw_text(start, y, text, style, max_x=x + width)
