"""Terminal pane: draws a session's screen and forwards input to it."""

from __future__ import annotations

import threading
import time
from typing import Callable, Optional

from loguru import logger
from rich.style import Style

from paneweave.display import Canvas, draw_box, fg
from paneweave.events import InputEvent, KeyEvent, MouseEvent, PasteEvent
from paneweave.layout.region import Region
from paneweave.terminal.colors import DEFAULT_COLOR, VTCell, cell_style, in_multiplexer
from paneweave.terminal.keys import encode_key
from paneweave.terminal.session import TerminalSession

SPINNER_FRAMES = "⠋⠙⠹⠸⠼⠴⠦⠧⠇⠏"
SPINNER_INTERVAL_S = 0.08
STARTING_MESSAGE = " Starting..."

MIN_CONTENT_COLS = 10
MIN_CONTENT_ROWS = 5

BORDER_PASSTHROUGH = fg(208)
BORDER_FOCUSED = fg(205)
BORDER_UNFOCUSED = fg(240)
SPINNER_STYLE = fg(245)
INDICATOR_STYLE = fg(226, bold=True)


def content_size(region: Region) -> tuple[int, int]:
    """Columns and rows inside the border, never below the minimum."""
    return max(MIN_CONTENT_COLS, region.width - 2), max(MIN_CONTENT_ROWS, region.height - 2)


def spinner_frame(now: float | None = None, interval_s: float = SPINNER_INTERVAL_S) -> str:
    now = time.monotonic() if now is None else now
    return SPINNER_FRAMES[int(now / interval_s) % len(SPINNER_FRAMES)]


class TerminalPanel:
    """Renderable wrapper around one :class:`TerminalSession`."""

    def __init__(
        self,
        session: TerminalSession,
        region: Region,
        title: str = "Terminal",
        default_background: int = DEFAULT_COLOR,
        scroll_wheel_lines: int = 3,
        multiplexer: bool | None = None,
        spinner_interval_s: float = SPINNER_INTERVAL_S,
    ) -> None:
        self.session = session
        self.region = region
        self.title = title
        self.focus = False
        self.passthrough = False
        self.scroll_offset = 0
        self.default_background = default_background
        self.scroll_wheel_lines = scroll_wheel_lines
        self.spinner_interval_s = spinner_interval_s
        self.multiplexer = in_multiplexer() if multiplexer is None else multiplexer
        self.auto_respawn = False
        self.on_redraw: Optional[Callable[[], None]] = None
        self._spinner_stop = threading.Event()
        self._spinner_thread: Optional[threading.Thread] = None

    # -- lifecycle -------------------------------------------------------

    def start(self) -> None:
        """Start the session and the startup spinner ticker."""
        self.session.start()
        self.start_spinner()

    def start_spinner(self) -> None:
        self._spinner_stop.clear()
        if self._spinner_thread is not None and self._spinner_thread.is_alive():
            return
        self._spinner_thread = threading.Thread(
            target=self._spin,
            args=(self.spinner_interval_s,),
            name="terminal-spinner",
            daemon=True,
        )
        self._spinner_thread.start()

    def _spin(self, interval_s: float) -> None:
        while not self._spinner_stop.wait(interval_s):
            if self.session.has_received_output:
                break
            self._request_redraw()
        self._request_redraw()

    def _request_redraw(self) -> None:
        callback = self.on_redraw
        if callback is not None:
            callback()

    def replace_session(self, session: TerminalSession) -> None:
        """Swap in a fresh session, dropping history and scroll state."""
        old = self.session
        self.session = session
        old.close()
        self.scroll_offset = 0
        self.passthrough = False
        cols, rows = content_size(self.region)
        session.resize(cols, rows)
        session.start()
        self.start_spinner()

    def close(self) -> None:
        self._spinner_stop.set()
        self.session.close()

    # -- geometry --------------------------------------------------------

    def resize(self, region: Region) -> bool:
        """Move to ``region``; the VT reflows only if the content size changed."""
        self.region = region
        cols, rows = content_size(region)
        changed = self.session.resize(cols, rows)
        if changed:
            self.scroll_offset = min(self.scroll_offset, len(self.session.scrollback))
            logger.debug(f"[terminal] Resized {self.title} to {cols}x{rows}")
        return changed

    # -- scrolling -------------------------------------------------------

    @property
    def is_scrolled(self) -> bool:
        return self.scroll_offset > 0

    def scroll_up(self, lines: int) -> None:
        if self.session.alternate_screen:
            return
        self.scroll_offset = min(self.scroll_offset + lines, len(self.session.scrollback))

    def scroll_down(self, lines: int) -> None:
        self.scroll_offset = max(0, self.scroll_offset - lines)

    def scroll_to_bottom(self) -> bool:
        if self.scroll_offset == 0:
            return False
        self.scroll_offset = 0
        return True

    # -- input -----------------------------------------------------------

    def write(self, data: str) -> bool:
        return self.session.write(data)

    def handle_event(self, event: InputEvent) -> bool:
        if isinstance(event, PasteEvent):
            self.scroll_to_bottom()
            return self.write(event.text)
        if isinstance(event, MouseEvent):
            return self._handle_mouse(event)
        if isinstance(event, KeyEvent):
            return self._handle_key(event)
        return False

    def _handle_mouse(self, event: MouseEvent) -> bool:
        if event.button == "wheel_up":
            self.scroll_up(self.scroll_wheel_lines)
            return True
        if event.button == "wheel_down":
            self.scroll_down(self.scroll_wheel_lines)
            return True
        return self.region.contains(event.x, event.y)

    def _handle_key(self, event: KeyEvent) -> bool:
        if not self.passthrough and event.shift and event.key in ("pageup", "pagedown"):
            step = max(1, content_size(self.region)[1] - 1)
            if event.key == "pageup":
                self.scroll_up(step)
            else:
                self.scroll_down(step)
            return True
        data = encode_key(event)
        if data is None:
            return False
        self.scroll_to_bottom()
        self.write(data)
        return True

    # -- rendering -------------------------------------------------------

    def _style(self, cell: VTCell) -> Style:
        return cell_style(cell.fg, cell.bg, cell.attrs, self.default_background, self.multiplexer)

    def _blank_style(self) -> Style:
        return cell_style(DEFAULT_COLOR, DEFAULT_COLOR, 0, self.default_background, self.multiplexer)

    def render(self, canvas: Canvas) -> None:
        """Draw the content area; the border is drawn by :meth:`render_border`."""
        inner = self.region.inset(1)
        if inner.is_empty:
            return
        if not self.session.has_received_output:
            self._render_spinner(canvas, inner)
            return
        grid, cursor, alternate = self.session.snapshot()
        if self.scroll_offset > 0 and not alternate:
            self._render_scrolled(canvas, inner, grid)
        else:
            self._render_live(canvas, inner, grid)
            self._render_cursor(canvas, inner, grid, cursor)

    def _render_spinner(self, canvas: Canvas, inner: Region) -> None:
        blank = self._blank_style()
        canvas.fill(inner.x, inner.y, inner.width, inner.height, " ", blank)
        message = spinner_frame(interval_s=self.spinner_interval_s) + STARTING_MESSAGE
        x = inner.x + max(0, (inner.width - len(message)) // 2)
        y = inner.y + inner.height // 2
        canvas.draw_text(x, y, message, SPINNER_STYLE + blank, max_x=inner.right)

    def _draw_row(self, canvas: Canvas, inner: Region, y: int, cells: list[VTCell] | tuple[VTCell, ...]) -> None:
        blank = self._blank_style()
        for x in range(inner.width):
            if x < len(cells):
                cell = cells[x]
                canvas.set_cell(inner.x + x, inner.y + y, cell.char or " ", self._style(cell))
            else:
                canvas.set_cell(inner.x + x, inner.y + y, " ", blank)

    def _render_live(self, canvas: Canvas, inner: Region, grid: list[list[VTCell]]) -> None:
        for y in range(inner.height):
            self._draw_row(canvas, inner, y, grid[y] if y < len(grid) else ())

    def _render_scrolled(self, canvas: Canvas, inner: Region, grid: list[list[VTCell]]) -> None:
        history = self.session.scrollback
        count = len(history)
        for y in range(inner.height):
            line_index = count - self.scroll_offset + y
            if line_index < 0:
                cells: list[VTCell] | tuple[VTCell, ...] = ()
            elif line_index < count:
                cells = history.get(line_index)
            else:
                live_y = line_index - count
                cells = grid[live_y] if live_y < len(grid) else ()
            self._draw_row(canvas, inner, y, cells)

    def _render_cursor(
        self,
        canvas: Canvas,
        inner: Region,
        grid: list[list[VTCell]],
        cursor: tuple[int, int, bool],
    ) -> None:
        cx, cy, visible = cursor
        if not (self.focus and visible and self.scroll_offset == 0):
            return
        if not (0 <= cx < inner.width and 0 <= cy < inner.height):
            return
        cell = grid[cy][cx] if cy < len(grid) and cx < len(grid[cy]) else VTCell()
        canvas.set_cell(inner.x + cx, inner.y + cy, cell.char or " ", self._style(cell) + Style(reverse=True))

    def border_style(self) -> tuple[Style, bool]:
        """Colour and double-line flag: passthrough, then focused, then idle."""
        if self.passthrough:
            return BORDER_PASSTHROUGH, True
        if self.focus:
            return BORDER_FOCUSED, True
        return BORDER_UNFOCUSED, False

    def render_border(self, canvas: Canvas) -> None:
        region = self.region
        if region.width < 2 or region.height < 2:
            return
        style, double = self.border_style()
        draw_box(canvas, region.x, region.y, region.width, region.height, style, double=double)
        label = f" {self.title} "
        if self.passthrough:
            label = f" {self.title} [PASSTHROUGH] "
        canvas.draw_text(region.x + 2, region.y, label, style, max_x=region.right - 1)
        if self.scroll_offset > 0 and not self.session.alternate_screen:
            indicator = f"[+{self.scroll_offset}]"
            x = region.right - 2 - len(indicator)
            if x > region.x + 1:
                canvas.draw_text(x, region.y, indicator, INDICATOR_STYLE)

