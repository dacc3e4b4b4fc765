"""Modal that asks which assistant tool a new terminal should run."""

from __future__ import annotations

from typing import Callable, Optional

from rich.style import Style

from paneweave.display import Canvas, draw_centered
from paneweave.events import KeyEvent
from paneweave.layout.modals import (
    ACCENT_STYLE,
    HINT_STYLE,
    Modal,
    TEAL_STYLE,
    TEXT_STYLE,
)
from paneweave.layout.region import Region
from paneweave.tools import SHELL_TOOL, AssistantTool, available_tools, installable_tools

SELECTOR_WIDTH = 48
HINT = "↑/↓:Navigate  Enter:Select  Esc:Shell"
NOT_INSTALLED_HEADER = "── Not Installed ──"
INSTALL_SUFFIX = " [Install]"

SELECTED_STYLE = Style(color="black", bgcolor="color(205)", bold=True)

# callback(tool, install)
ToolCallback = Callable[[AssistantTool, bool], None]


class ToolSelector(Modal):
    """Pick a tool for terminal slot ``slot``; Esc falls back to the shell."""

    name = "tool_selector"

    def __init__(
        self,
        list_available: Callable[[], list[AssistantTool]] = available_tools,
        list_installable: Callable[[], list[AssistantTool]] = installable_tools,
    ) -> None:
        super().__init__()
        self._list_available = list_available
        self._list_installable = list_installable
        self.available: list[AssistantTool] = []
        self.installable: list[AssistantTool] = []
        self.selected = 0
        self.slot = 0
        self.area = Region()
        self._callback: Optional[ToolCallback] = None

    def show(
        self,
        slot: int,
        screen_w: int,
        screen_h: int,
        callback: ToolCallback,
        area: Region | None = None,
    ) -> None:
        """Open over ``area`` (the terminal columns), or the whole screen."""
        self.area = area if area is not None and not area.is_empty else Region(0, 0, screen_w, screen_h)
        self.available = self._list_available()
        self.installable = self._list_installable()
        self.selected = 0
        self.slot = slot
        self._callback = callback
        self.open(screen_w, screen_h)

    def hide(self) -> None:
        super().hide()
        self._callback = None

    @property
    def item_count(self) -> int:
        return len(self.available) + len(self.installable)

    def selection(self) -> tuple[AssistantTool, bool]:
        """Selected tool and whether it still needs installing."""
        if self.selected < len(self.available):
            return self.available[self.selected], False
        index = self.selected - len(self.available)
        if 0 <= index < len(self.installable):
            return self.installable[index], True
        return SHELL_TOOL, False

    def _finish(self, tool: AssistantTool, install: bool) -> None:
        callback = self._callback
        self.hide()
        if callback is not None:
            callback(tool, install)

    def on_key(self, event: KeyEvent) -> None:
        count = self.item_count
        if event.key == "escape":
            self._finish(SHELL_TOOL, False)
        elif event.key == "enter":
            self._finish(*self.selection())
        elif count and (event.key in ("up", "k") or event.combo == "shift+tab"):
            self.selected = (self.selected - 1) % count
        elif count and event.key in ("down", "j", "tab"):
            self.selected = (self.selected + 1) % count

    def _rows(self) -> list[tuple[str, int]]:
        """Display rows as ``(text, item index)``; headers use index -1."""
        rows = [(tool.name, i) for i, tool in enumerate(self.available)]
        if self.installable:
            rows.append(("", -1))
            rows.append((NOT_INSTALLED_HEADER, -1))
            offset = len(self.available)
            rows.extend((tool.name + INSTALL_SUFFIX, offset + i) for i, tool in enumerate(self.installable))
        return rows

    def render(self, canvas: Canvas) -> None:
        if not self.active:
            return
        rows = self._rows()
        x, y, w, h = self._frame(
            canvas,
            SELECTOR_WIDTH,
            len(rows) + 6,
            ACCENT_STYLE,
            region_x=self.area.x,
            region_w=self.area.width,
        )
        draw_centered(canvas, x, w, y + 1, f"Terminal {self.slot}: choose a tool", ACCENT_STYLE + Style(bold=True))
        row_y = y + 3
        for text, index in rows:
            if row_y >= y + h - 2:
                break
            if index < 0:
                draw_centered(canvas, x, w, row_y, text, HINT_STYLE)
            elif index == self.selected:
                canvas.fill(x + 1, row_y, w - 2, 1, " ", SELECTED_STYLE)
                canvas.draw_text(x + 3, row_y, text, SELECTED_STYLE, max_x=x + w - 1)
            else:
                style = TEAL_STYLE if index >= len(self.available) else TEXT_STYLE
                canvas.draw_text(x + 3, row_y, text, style, max_x=x + w - 1)
            row_y += 1
        draw_centered(canvas, x, w, y + h - 2, HINT, HINT_STYLE)
