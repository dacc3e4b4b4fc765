"""Quick find: fuzzy file search over the project."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from rich.style import Style

from paneweave.display import Canvas, draw_centered
from paneweave.events import KeyEvent
from paneweave.layout.modals import ACCENT_STYLE, HINT_STYLE, Modal, TEXT_STYLE

MAX_INDEXED_FILES = 2000
QUICK_FIND_WIDTH = 70
QUICK_FIND_HEIGHT = 18
LIST_HEIGHT = 10
IGNORED_DIRS = frozenset({".git", "node_modules", "__pycache__", ".venv", "venv", ".mypy_cache", ".pytest_cache"})

SELECTED_STYLE = Style(color="black", bgcolor="color(205)")
MATCH_STYLE = Style(color="color(226)", bgcolor="color(0)", bold=True)
QUERY_STYLE = Style(color="white", bgcolor="color(236)")


def index_files(root: str | Path, limit: int = MAX_INDEXED_FILES) -> list[str]:
    """Relative paths of project files, skipping hidden and vendored dirs."""
    root = Path(root)
    found: list[str] = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if d not in IGNORED_DIRS and not d.startswith("."))
        for filename in sorted(filenames):
            if filename.startswith("."):
                continue
            found.append(os.path.relpath(os.path.join(dirpath, filename), root))
            if len(found) >= limit:
                return found
    return found


def fuzzy_match(query: str, candidate: str) -> Optional[tuple[int, list[int]]]:
    """Score ``candidate`` if ``query`` is a case-insensitive subsequence of it.

    Higher is better. Consecutive runs and hits in the file name score extra.
    Returns ``(score, matched positions)`` or None.
    """
    if not query:
        return 0, []
    lowered = candidate.lower()
    base_start = lowered.rfind("/") + 1
    positions: list[int] = []
    score = 0
    pos = 0
    previous = -2
    for char in query.lower():
        found = lowered.find(char, pos)
        if found < 0:
            return None
        score += 1
        if found == previous + 1:
            score += 5
        if found >= base_start:
            score += 2
        if found == base_start or (found > 0 and lowered[found - 1] in "/_-. "):
            score += 3
        positions.append(found)
        previous = found
        pos = found + 1
    score -= len(candidate) // 10
    return score, positions


@dataclass(frozen=True)
class QuickFindResult:
    path: str
    score: int
    positions: tuple[int, ...]


def search(query: str, files: list[str], limit: int = 100) -> list[QuickFindResult]:
    results = []
    for path in files:
        match = fuzzy_match(query, path)
        if match is not None:
            results.append(QuickFindResult(path, match[0], tuple(match[1])))
    results.sort(key=lambda r: (-r.score, len(r.path), r.path))
    return results[:limit]


class QuickFind(Modal):
    """Type to filter, arrows to choose, Enter opens the file."""

    name = "quick_find"

    def __init__(self) -> None:
        super().__init__()
        self.root = ""
        self.files: list[str] = []
        self.query = ""
        self.cursor = 0
        self.results: list[QuickFindResult] = []
        self.selected = 0
        self.top = 0
        self._callback: Optional[Callable[[str], None]] = None

    def show(self, root: str, screen_w: int, screen_h: int, callback: Callable[[str], None]) -> None:
        """``callback`` receives the absolute path of the chosen file."""
        self.root = root
        self.files = index_files(root)
        self.query = ""
        self.cursor = 0
        self._callback = callback
        self._update()
        self.open(screen_w, screen_h)

    def hide(self) -> None:
        super().hide()
        self._callback = None
        self.results = []
        self.query = ""

    def _update(self) -> None:
        self.results = search(self.query, self.files)
        self.selected = 0
        self.top = 0

    def _ensure_visible(self) -> None:
        if self.selected < self.top:
            self.top = self.selected
        elif self.selected >= self.top + LIST_HEIGHT:
            self.top = self.selected - LIST_HEIGHT + 1

    def on_key(self, event: KeyEvent) -> None:
        key = event.key
        if key == "escape":
            self.hide()
        elif key == "enter":
            if self.results:
                callback = self._callback
                path = os.path.join(self.root, self.results[self.selected].path)
                self.hide()
                if callback is not None:
                    callback(path)
        elif key in ("up", "down", "pageup", "pagedown"):
            step = LIST_HEIGHT if key.startswith("page") else 1
            delta = -step if key in ("up", "pageup") else step
            self.selected = max(0, min(len(self.results) - 1, self.selected + delta))
            self._ensure_visible()
        elif key == "backspace":
            if self.cursor > 0:
                self.query = self.query[: self.cursor - 1] + self.query[self.cursor:]
                self.cursor -= 1
                self._update()
        elif key == "delete":
            if self.cursor < len(self.query):
                self.query = self.query[: self.cursor] + self.query[self.cursor + 1:]
                self._update()
        elif key == "left":
            self.cursor = max(0, self.cursor - 1)
        elif key == "right":
            self.cursor = min(len(self.query), self.cursor + 1)
        elif key == "home" or event.combo == "ctrl+a":
            self.cursor = 0
        elif key == "end" or event.combo == "ctrl+e":
            self.cursor = len(self.query)
        elif event.combo == "ctrl+u":
            self.query = ""
            self.cursor = 0
            self._update()
        elif event.is_printable:
            self.query = self.query[: self.cursor] + event.char + self.query[self.cursor:]
            self.cursor += 1
            self._update()

    def render(self, canvas: Canvas) -> None:
        if not self.active:
            return
        x, y, w, h = self._frame(canvas, QUICK_FIND_WIDTH, QUICK_FIND_HEIGHT, ACCENT_STYLE)
        draw_centered(canvas, x, w, y + 1, "Quick Find", ACCENT_STYLE + Style(bold=True))
        canvas.fill(x + 2, y + 3, w - 4, 1, " ", QUERY_STYLE)
        canvas.draw_text(x + 2, y + 3, "> " + self.query, QUERY_STYLE, max_x=x + w - 2)
        canvas.set_cell(x + 4 + self.cursor, y + 3, " " if self.cursor >= len(self.query) else self.query[self.cursor], Style(reverse=True))
        list_y = y + 5
        rows = min(LIST_HEIGHT, h - 8)
        for row in range(rows):
            index = self.top + row
            if index >= len(self.results):
                break
            result = self.results[index]
            selected = index == self.selected
            base = SELECTED_STYLE if selected else TEXT_STYLE
            if selected:
                canvas.fill(x + 1, list_y + row, w - 2, 1, " ", base)
            hits = set(result.positions)
            for offset, char in enumerate(result.path[: w - 6]):
                style = base if selected or offset not in hits else MATCH_STYLE
                canvas.set_cell(x + 3 + offset, list_y + row, char, style)
        if not self.results:
            draw_centered(canvas, x, w, list_y, "No matching files", HINT_STYLE)
        summary = f"{len(self.results)} of {len(self.files)} files"
        draw_centered(canvas, x, w, y + h - 2, f"↑/↓:Select  Enter:Open  Esc:Close  ({summary})", HINT_STYLE)
