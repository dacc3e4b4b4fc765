"""Row-0 bar listing the panes and their Alt toggles."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable

from rich.style import Style

from paneweave.display import Canvas, bg
from paneweave.layout import shortcuts
from paneweave.layout.region import Region, VisibilityState

ALT_LABEL = " ALT+ "
ALT_STYLE = Style(color="color(250)", bgcolor="color(236)")
VISIBLE_STYLE = Style(color="color(226)", bgcolor="color(0)")
HIDDEN_STYLE = Style(color="color(240)", bgcolor="color(0)")
BAR_STYLE = bg(0)
STATUS_STYLE = Style(color="color(250)", bgcolor="color(0)")
ERROR_STYLE = Style(color="color(196)", bgcolor="color(0)")
ENTRY_GAP = 4


@dataclass(frozen=True)
class _ClickRegion:
    start: int
    end: int
    key: str


def pane_entries(visibility: VisibilityState) -> list[tuple[str, str, bool]]:
    """``(key, label, visible)`` for each pane in bar order."""
    return [
        (shortcuts.PANE_TREE, "Files", visibility.tree),
        (shortcuts.PANE_SOURCE_CONTROL, "Git", visibility.source_control),
        (shortcuts.PANE_EDITOR, "Editor", visibility.editor),
        (shortcuts.PANE_TERMINAL_1, "Term", visibility.terminals[0]),
        (shortcuts.PANE_TERMINAL_2, "Term", visibility.terminals[1]),
        (shortcuts.PANE_TERMINAL_3, "Term", visibility.terminals[2]),
    ]


class NavBar:
    """Pane toggles on the left, transient status text on the right."""

    def __init__(self, status_timeout_s: float = 4.0, clock: Callable[[], float] = time.monotonic) -> None:
        self.region = Region()
        self.status_timeout_s = status_timeout_s
        self._clock = clock
        self._status = ""
        self._status_error = False
        self._status_until = 0.0
        self._click_regions: list[_ClickRegion] = []

    def set_status(self, text: str, error: bool = False) -> None:
        self._status = text
        self._status_error = error
        self._status_until = self._clock() + self.status_timeout_s

    @property
    def status(self) -> str:
        if self._status and self._clock() < self._status_until:
            return self._status
        return ""

    def contains(self, x: int, y: int) -> bool:
        return self.region.contains(x, y)

    def clicked_pane(self, x: int, y: int) -> str | None:
        """Pane key under the pointer, if any."""
        if y != self.region.y:
            return None
        for click in self._click_regions:
            if click.start <= x < click.end:
                return click.key
        return None

    def render(self, canvas: Canvas, visibility: VisibilityState) -> None:
        region = self.region
        if region.is_empty:
            return
        canvas.fill(region.x, region.y, region.width, 1, " ", BAR_STYLE)
        x = canvas.draw_text(region.x, region.y, ALT_LABEL, ALT_STYLE, max_x=region.right) + 1
        self._click_regions = []
        for key, label, visible in pane_entries(visibility):
            style = VISIBLE_STYLE if visible else HIDDEN_STYLE
            start = x
            x = canvas.draw_text(x, region.y, f"{key} {label}", style, max_x=region.right)
            self._click_regions.append(_ClickRegion(start, x, key))
            x += ENTRY_GAP
        status = self.status
        if status:
            text = status[: max(0, region.right - x - 1)]
            if text:
                style = ERROR_STYLE if self._status_error else STATUS_STYLE
                canvas.draw_text(region.right - len(text) - 1, region.y, text, style, max_x=region.right)
