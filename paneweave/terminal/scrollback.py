"""Bounded history of lines that scrolled off a terminal screen."""

from __future__ import annotations

import threading
from collections import deque
from typing import Sequence

from paneweave.terminal.colors import VTCell

DEFAULT_SCROLLBACK_LINES = 10_000

ScrollbackLine = tuple[VTCell, ...]


class ScrollbackBuffer:
    """Append-only ring of lines, index 0 being the oldest kept line."""

    def __init__(self, capacity: int = DEFAULT_SCROLLBACK_LINES) -> None:
        self.capacity = max(0, capacity)
        self._lines: deque[ScrollbackLine] = deque(maxlen=self.capacity)
        self._lock = threading.Lock()

    def push(self, line: Sequence[VTCell]) -> None:
        if self.capacity == 0:
            return
        with self._lock:
            self._lines.append(tuple(line))

    def get(self, index: int) -> ScrollbackLine:
        """Return a line by age; out of range indexes give an empty line."""
        with self._lock:
            if 0 <= index < len(self._lines):
                return self._lines[index]
        return ()

    def clear(self) -> None:
        with self._lock:
            self._lines.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._lines)

    def text(self, index: int) -> str:
        return "".join(cell.char for cell in self.get(index)).rstrip()
