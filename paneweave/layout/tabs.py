"""Editor tab strip with preview and pinned tabs."""

from __future__ import annotations

import os
from dataclasses import dataclass

from rich.style import Style

from paneweave.display import Canvas, bg, fg
from paneweave.layout.region import Region

MAX_TAB_NAME_LEN = 20
UNTITLED = "Untitled"
MODIFIED_MARK = "● "
CLOSE_BUTTON = "[x] "

ACTIVE_STYLE = Style(color="black", bgcolor="color(205)")
INACTIVE_STYLE = Style(color="white", bgcolor="color(240)")
OVERFLOW_STYLE = fg(243)
SEPARATOR_STYLE = fg(243)
BACKGROUND_STYLE = bg(0)


def truncate_name(name: str) -> str:
    if len(name) <= MAX_TAB_NAME_LEN:
        return name
    return name[: MAX_TAB_NAME_LEN - 1] + "…"


def display_name(path: str) -> str:
    base = os.path.basename(path) if path else ""
    return truncate_name(base) if base and base != "." else UNTITLED


@dataclass
class Tab:
    """One open editor buffer."""

    buffer_id: str
    name: str
    path: str = ""
    preview: bool = False
    modified: bool = False


@dataclass(frozen=True)
class TabHit:
    """What a click on the strip landed on."""

    kind: str  # "tab", "close", "scroll_left", "scroll_right", "bar"
    index: int = -1


@dataclass
class _Placed:
    start: int
    end: int
    close_x: int


class TabStrip:
    """Ordered tabs, the active index and horizontal overflow scrolling."""

    def __init__(self) -> None:
        self.tabs: list[Tab] = []
        self.active_index = 0
        self.scroll_offset = 0
        self.region = Region()
        self.focused = False
        self._placed: list[_Placed] = []
        self._left_overflow_x = -1
        self._right_overflow_x = -1

    def __len__(self) -> int:
        return len(self.tabs)

    # -- tab list ----------------------------------------------------------

    @property
    def active(self) -> Tab | None:
        if 0 <= self.active_index < len(self.tabs):
            return self.tabs[self.active_index]
        return None

    @property
    def preview_index(self) -> int:
        for i, tab in enumerate(self.tabs):
            if tab.preview:
                return i
        return -1

    def find_tab_by_path(self, path: str) -> int:
        if not path:
            return -1
        for i, tab in enumerate(self.tabs):
            if tab.path == path:
                return i
        return -1

    def find_tab_by_buffer(self, buffer_id: str) -> int:
        for i, tab in enumerate(self.tabs):
            if tab.buffer_id == buffer_id:
                return i
        return -1

    def add_tab(self, buffer_id: str, path: str = "") -> int:
        """Open a pinned tab (or activate the existing one) and return its index."""
        existing = self.find_tab_by_path(path)
        if existing >= 0:
            self.active_index = existing
            return existing
        self.tabs.append(Tab(buffer_id, display_name(path), path))
        self.active_index = len(self.tabs) - 1
        return self.active_index

    def add_preview_tab(self, buffer_id: str, path: str) -> tuple[int, str | None]:
        """Show ``path`` in the preview slot.

        Returns the tab index and the buffer id of a replaced preview, which the
        caller should close. An already open path is just activated.
        """
        existing = self.find_tab_by_path(path)
        if existing >= 0:
            self.active_index = existing
            return existing, None
        preview = self.preview_index
        tab = Tab(buffer_id, display_name(path), path, preview=True)
        if preview >= 0:
            replaced = self.tabs[preview].buffer_id
            self.tabs[preview] = tab
            self.active_index = preview
            return preview, replaced
        self.tabs.append(tab)
        self.active_index = len(self.tabs) - 1
        return self.active_index, None

    def pin_tab(self, index: int | None = None) -> bool:
        index = self.active_index if index is None else index
        if 0 <= index < len(self.tabs) and self.tabs[index].preview:
            self.tabs[index].preview = False
            return True
        return False

    def set_active(self, index: int) -> bool:
        if 0 <= index < len(self.tabs) and index != self.active_index:
            self.active_index = index
            return True
        return False

    def close_tab(self, index: int) -> Tab | None:
        """Remove a tab and keep the active index pointing at a neighbour."""
        if not 0 <= index < len(self.tabs):
            return None
        tab = self.tabs.pop(index)
        if not self.tabs:
            self.active_index = 0
        elif self.active_index >= len(self.tabs):
            self.active_index = len(self.tabs) - 1
        elif index < self.active_index:
            self.active_index -= 1
        self.scroll_offset = min(self.scroll_offset, max(0, len(self.tabs) - 1))
        return tab

    def can_close(self, index: int) -> bool:
        """The lone Untitled tab stays open."""
        if not 0 <= index < len(self.tabs):
            return False
        return not (len(self.tabs) == 1 and self.tabs[index].name == UNTITLED)

    def next_tab(self) -> bool:
        if len(self.tabs) < 2:
            return False
        self.active_index = (self.active_index + 1) % len(self.tabs)
        return True

    def prev_tab(self) -> bool:
        if len(self.tabs) < 2:
            return False
        self.active_index = (self.active_index - 1) % len(self.tabs)
        return True

    def rename_path(self, old: str, new: str) -> None:
        for tab in self.tabs:
            if tab.path == old:
                tab.path = new
                tab.name = display_name(new)

    def retitle(self, index: int, path: str) -> None:
        """Point a tab at a new path, e.g. after Save As."""
        if 0 <= index < len(self.tabs):
            self.tabs[index].path = path
            self.tabs[index].name = display_name(path)

    def sync_modified(self, is_modified) -> None:
        """Refresh modified flags; editing a preview tab pins it."""
        for tab in self.tabs:
            tab.modified = bool(is_modified(tab.buffer_id))
            if tab.modified and tab.preview:
                tab.preview = False

    # -- geometry ----------------------------------------------------------

    def _show_close(self, tab: Tab) -> bool:
        return not (len(self.tabs) == 1 and tab.name == UNTITLED)

    def tab_width(self, tab: Tab) -> int:
        width = 1 + len(tab.name)
        if tab.modified:
            width += len(MODIFIED_MARK)
        width += 1 + len(CLOSE_BUTTON) if self._show_close(tab) else 1
        return width

    def ensure_active_visible(self) -> None:
        if not self.tabs:
            self.scroll_offset = 0
            return
        self.active_index = max(0, min(self.active_index, len(self.tabs) - 1))
        if self.active_index < self.scroll_offset:
            self.scroll_offset = self.active_index
            return
        available = self.region.width - 3
        used = self.tab_width(self.tabs[self.active_index])
        target = self.active_index
        for i in range(self.active_index - 1, -1, -1):
            extra = 2 if i > 0 and target == self.active_index else 0
            width = self.tab_width(self.tabs[i]) + 1 + extra
            if used + width > available:
                break
            used += width
            target = i
        if target > self.scroll_offset:
            self.scroll_offset = target

    def scroll_left(self) -> None:
        if self.scroll_offset > 0:
            self.scroll_offset -= 1

    def scroll_right(self) -> None:
        if self.scroll_offset < len(self.tabs) - 1:
            self.scroll_offset += 1

    def contains(self, x: int, y: int) -> bool:
        """Tab row plus the separator below it."""
        return self.region.x <= x < self.region.right and self.region.y <= y <= self.region.y + 1

    def hit_test(self, x: int, y: int) -> TabHit | None:
        if not self.contains(x, y):
            return None
        if y == self.region.y:
            if x == self._left_overflow_x:
                return TabHit("scroll_left")
            if x == self._right_overflow_x:
                return TabHit("scroll_right")
            for offset, placed in enumerate(self._placed):
                index = self.scroll_offset + offset
                if x == placed.close_x:
                    return TabHit("close", index)
                if placed.start <= x < placed.end:
                    return TabHit("tab", index)
        return TabHit("bar")

    # -- drawing -----------------------------------------------------------

    def render(self, canvas: Canvas) -> None:
        region = self.region
        self._placed = []
        self._left_overflow_x = -1
        self._right_overflow_x = -1
        if region.width < 10:
            return
        canvas.fill(region.x, region.y, region.width, 1, " ", BACKGROUND_STYLE)
        for x in range(region.x, region.right):
            canvas.set_cell(x, region.y + 1, "─", SEPARATOR_STYLE)
        if not self.tabs:
            return
        self.ensure_active_visible()

        x = region.x + 1
        right_edge = region.right - 2
        if self.scroll_offset > 0:
            self._left_overflow_x = x
            canvas.set_cell(x, region.y, "‹", OVERFLOW_STYLE)
            x += 2
        for index in range(self.scroll_offset, len(self.tabs)):
            if x >= right_edge:
                self._right_overflow_x = region.right - 2
                break
            tab = self.tabs[index]
            width = self.tab_width(tab)
            active = index == self.active_index
            if active and x + width > right_edge:
                self._right_overflow_x = region.right - 2
                break
            style = ACTIVE_STYLE if active and self.focused else INACTIVE_STYLE
            if tab.preview:
                style = style + Style(italic=True)
            end = self._draw_tab(canvas, x, tab, style, right_edge)
            close_x = end - 3 if self._show_close(tab) and end - 3 < right_edge else -1
            self._placed.append(_Placed(x, end, close_x))
            if x + width > right_edge:
                if index < len(self.tabs) - 1:
                    self._right_overflow_x = region.right - 2
                break
            x = end + 1
        if self._right_overflow_x >= 0:
            canvas.set_cell(self._right_overflow_x, region.y, "›", OVERFLOW_STYLE)

    def _draw_tab(self, canvas: Canvas, x: int, tab: Tab, style: Style, limit: int) -> int:
        text = " " + (MODIFIED_MARK if tab.modified else "") + tab.name + " "
        end = canvas.draw_text(x, self.region.y, text, style, max_x=limit)
        if self._show_close(tab):
            end = canvas.draw_text(end, self.region.y, CLOSE_BUTTON, style + Style(color="white"), max_x=limit)
        return end
