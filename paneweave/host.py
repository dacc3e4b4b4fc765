"""Host editor contract and a small in-memory implementation.

The layout manager only needs to open, switch, close and save buffers and to
hand the editor its drawing rectangle. :class:`BufferHost` provides just enough
editing to make the workspace usable on its own.
"""

from __future__ import annotations

import itertools
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Protocol

from loguru import logger
from rich.style import Style

from paneweave.display import Canvas, fg
from paneweave.events import InputEvent, KeyEvent, MouseEvent, PasteEvent
from paneweave.layout.region import Region

UNTITLED = "Untitled"


class HostEditor(Protocol):
    """What the layout manager needs from the text editor."""

    def open_file(self, path: str, preview: bool = False) -> str:
        """Open ``path`` (or reuse its buffer) and return the buffer id."""

    def new_buffer(self) -> str:
        """Create an empty untitled buffer."""

    def switch_to(self, buffer_id: str) -> None:
        """Make ``buffer_id`` the buffer shown in the editor pane."""

    def close_buffer(self, buffer_id: str) -> None:
        """Discard a buffer."""

    def current_buffer(self) -> Optional[str]:
        """Buffer shown in the editor pane."""

    def buffer_name(self, buffer_id: str) -> str:
        """Display name (file name or ``Untitled``)."""

    def buffer_path(self, buffer_id: str) -> str:
        """Absolute path, empty for untitled buffers."""

    def is_modified(self, buffer_id: str) -> bool:
        """True when the buffer has unsaved changes."""

    def modified_buffers(self) -> list[str]:
        """Ids of every buffer with unsaved changes."""

    def save(self, buffer_id: str) -> None:
        """Write the buffer to disk; raises OSError on failure."""

    def save_as(self, buffer_id: str, path: str) -> str:
        """Give an untitled buffer a path and save it; returns the absolute path."""

    def set_region(self, region: Region) -> None:
        """Constrain drawing to ``region``."""

    def render(self, canvas: Canvas, focused: bool) -> None:
        """Draw the current buffer into its region."""

    def handle_event(self, event: InputEvent) -> bool:
        """Process an event the layout did not consume."""


@dataclass
class TextBuffer:
    """Lines of one open document."""

    buffer_id: str
    path: str = ""
    lines: list[str] = field(default_factory=lambda: [""])
    modified: bool = False
    row: int = 0
    col: int = 0
    top: int = 0

    @property
    def name(self) -> str:
        return os.path.basename(self.path) if self.path else UNTITLED

    @property
    def text(self) -> str:
        return "\n".join(self.lines)


GUTTER_STYLE = fg(240)
TEXT_STYLE = Style()
CURSOR_STYLE = Style(reverse=True)


class BufferHost:
    """Minimal line editor backing the editor pane."""

    def __init__(self) -> None:
        self._buffers: dict[str, TextBuffer] = {}
        self._ids = itertools.count(1)
        self._current: Optional[str] = None
        self.region = Region()

    # -- buffer management ---------------------------------------------

    def _new_id(self) -> str:
        return f"buf-{next(self._ids)}"

    def open_file(self, path: str, preview: bool = False) -> str:
        abs_path = str(Path(path).expanduser().resolve())
        for buf in self._buffers.values():
            if buf.path == abs_path:
                self._current = buf.buffer_id
                return buf.buffer_id
        file_path = Path(abs_path)
        if file_path.exists():
            content = file_path.read_text(encoding="utf-8", errors="replace")
            lines = content.split("\n") if content else [""]
        else:
            lines = [""]
        buf = TextBuffer(self._new_id(), abs_path, lines)
        self._buffers[buf.buffer_id] = buf
        self._current = buf.buffer_id
        logger.debug(f"[editor] Opened {abs_path} as {buf.buffer_id}")
        return buf.buffer_id

    def new_buffer(self) -> str:
        buf = TextBuffer(self._new_id())
        self._buffers[buf.buffer_id] = buf
        self._current = buf.buffer_id
        return buf.buffer_id

    def switch_to(self, buffer_id: str) -> None:
        if buffer_id in self._buffers:
            self._current = buffer_id

    def close_buffer(self, buffer_id: str) -> None:
        self._buffers.pop(buffer_id, None)
        if self._current == buffer_id:
            self._current = next(iter(self._buffers), None)

    def current_buffer(self) -> Optional[str]:
        return self._current

    def buffer(self, buffer_id: str) -> TextBuffer:
        return self._buffers[buffer_id]

    def buffer_ids(self) -> list[str]:
        return list(self._buffers)

    def buffer_name(self, buffer_id: str) -> str:
        buf = self._buffers.get(buffer_id)
        return buf.name if buf else UNTITLED

    def buffer_path(self, buffer_id: str) -> str:
        buf = self._buffers.get(buffer_id)
        return buf.path if buf else ""

    def is_modified(self, buffer_id: str) -> bool:
        buf = self._buffers.get(buffer_id)
        return bool(buf and buf.modified)

    def modified_buffers(self) -> list[str]:
        return [buf.buffer_id for buf in self._buffers.values() if buf.modified]

    def save(self, buffer_id: str) -> None:
        buf = self._buffers[buffer_id]
        if not buf.path:
            raise OSError("Buffer has no file name")
        Path(buf.path).write_text(buf.text, encoding="utf-8")
        buf.modified = False
        logger.info(f"[editor] Saved {buf.path}")

    def save_as(self, buffer_id: str, path: str) -> str:
        buf = self._buffers[buffer_id]
        buf.path = str(Path(path).expanduser().resolve())
        self.save(buffer_id)
        return buf.path

    def rename_path(self, old: str, new: str) -> None:
        """Follow a file rename done outside the editor."""
        for buf in self._buffers.values():
            if buf.path == old:
                buf.path = new

    # -- drawing ---------------------------------------------------------

    def set_region(self, region: Region) -> None:
        self.region = region

    def _gutter_width(self, buf: TextBuffer) -> int:
        return len(str(len(buf.lines))) + 2

    def render(self, canvas: Canvas, focused: bool) -> None:
        region = self.region
        canvas.fill(region.x, region.y, region.width, region.height)
        buf = self._buffers.get(self._current or "")
        if buf is None or region.is_empty:
            return
        self._scroll_to_cursor(buf)
        gutter = self._gutter_width(buf)
        for y in range(region.height):
            index = buf.top + y
            if index >= len(buf.lines):
                break
            number = str(index + 1).rjust(gutter - 1) + " "
            canvas.draw_text(region.x, region.y + y, number, GUTTER_STYLE, max_x=region.right)
            canvas.draw_text(region.x + gutter, region.y + y, buf.lines[index], TEXT_STYLE, max_x=region.right)
        if focused:
            cx = region.x + gutter + buf.col
            cy = region.y + buf.row - buf.top
            if region.contains(cx, cy):
                line = buf.lines[buf.row]
                char = line[buf.col] if buf.col < len(line) else " "
                canvas.set_cell(cx, cy, char, CURSOR_STYLE)

    def _scroll_to_cursor(self, buf: TextBuffer) -> None:
        height = max(1, self.region.height)
        if buf.row < buf.top:
            buf.top = buf.row
        elif buf.row >= buf.top + height:
            buf.top = buf.row - height + 1

    # -- editing ---------------------------------------------------------

    def handle_event(self, event: InputEvent) -> bool:
        buf = self._buffers.get(self._current or "")
        if buf is None:
            return False
        if isinstance(event, PasteEvent):
            self._insert(buf, event.text)
            return True
        if isinstance(event, MouseEvent):
            return self._click(buf, event)
        if isinstance(event, KeyEvent):
            return self._key(buf, event)
        return False

    def _click(self, buf: TextBuffer, event: MouseEvent) -> bool:
        if event.button == "wheel_up":
            buf.row = max(0, buf.row - 3)
            buf.col = min(buf.col, len(buf.lines[buf.row]))
            return True
        if event.button == "wheel_down":
            buf.row = min(len(buf.lines) - 1, buf.row + 3)
            buf.col = min(buf.col, len(buf.lines[buf.row]))
            return True
        if not self.region.contains(event.x, event.y):
            return False
        buf.row = min(len(buf.lines) - 1, buf.top + event.y - self.region.y)
        col = event.x - self.region.x - self._gutter_width(buf)
        buf.col = max(0, min(col, len(buf.lines[buf.row])))
        return True

    def _insert(self, buf: TextBuffer, text: str) -> None:
        for chunk_index, chunk in enumerate(text.replace("\r\n", "\n").split("\n")):
            if chunk_index:
                self._newline(buf)
            line = buf.lines[buf.row]
            buf.lines[buf.row] = line[: buf.col] + chunk + line[buf.col:]
            buf.col += len(chunk)
        buf.modified = True

    def _newline(self, buf: TextBuffer) -> None:
        line = buf.lines[buf.row]
        buf.lines[buf.row] = line[: buf.col]
        buf.lines.insert(buf.row + 1, line[buf.col:])
        buf.row += 1
        buf.col = 0
        buf.modified = True

    def _key(self, buf: TextBuffer, event: KeyEvent) -> bool:
        key = event.key
        if event.is_printable:
            self._insert(buf, event.char)
            return True
        if event.ctrl or event.alt:
            return False
        if key == "enter":
            self._newline(buf)
        elif key == "tab":
            self._insert(buf, "    ")
        elif key == "backspace":
            if buf.col > 0:
                line = buf.lines[buf.row]
                buf.lines[buf.row] = line[: buf.col - 1] + line[buf.col:]
                buf.col -= 1
                buf.modified = True
            elif buf.row > 0:
                prev = buf.lines[buf.row - 1]
                buf.lines[buf.row - 1] = prev + buf.lines.pop(buf.row)
                buf.row -= 1
                buf.col = len(prev)
                buf.modified = True
        elif key == "delete":
            line = buf.lines[buf.row]
            if buf.col < len(line):
                buf.lines[buf.row] = line[: buf.col] + line[buf.col + 1:]
                buf.modified = True
            elif buf.row < len(buf.lines) - 1:
                buf.lines[buf.row] = line + buf.lines.pop(buf.row + 1)
                buf.modified = True
        elif key == "left":
            if buf.col > 0:
                buf.col -= 1
            elif buf.row > 0:
                buf.row -= 1
                buf.col = len(buf.lines[buf.row])
        elif key == "right":
            if buf.col < len(buf.lines[buf.row]):
                buf.col += 1
            elif buf.row < len(buf.lines) - 1:
                buf.row += 1
                buf.col = 0
        elif key in ("up", "down", "pageup", "pagedown"):
            step = max(1, self.region.height - 1) if key.startswith("page") else 1
            delta = -step if key in ("up", "pageup") else step
            buf.row = max(0, min(len(buf.lines) - 1, buf.row + delta))
            buf.col = min(buf.col, len(buf.lines[buf.row]))
        elif key == "home":
            buf.col = 0
        elif key == "end":
            buf.col = len(buf.lines[buf.row])
        else:
            return False
        return True
