"""Source control pane fed by ``git status --porcelain``."""

from __future__ import annotations

import os
import subprocess
from dataclasses import dataclass
from typing import Callable, Optional

from loguru import logger
from rich.style import Style

from paneweave.display import Canvas, draw_box, fg
from paneweave.events import InputEvent, KeyEvent, MouseEvent
from paneweave.layout.region import Region
from paneweave.panes.poller import Poller

HEADER_STYLE = fg(39, bold=True)
SECTION_STYLE = fg(243, bold=True)
PATH_STYLE = Style(color="white")
SELECTED_FOCUSED = Style(color="white", bgcolor="color(205)")
SELECTED_UNFOCUSED = Style(color="white", bgcolor="color(236)")
BORDER_FOCUSED = fg(205)
BORDER_UNFOCUSED = fg(240)
STATUS_COLORS = {"M": 214, "A": 46, "D": 196, "R": 39, "C": 39, "U": 201, "?": 245}


@dataclass(frozen=True)
class StatusEntry:
    """One changed path; ``staged`` distinguishes index from worktree changes."""

    path: str
    status: str
    staged: bool


def parse_porcelain(output: str) -> list[StatusEntry]:
    """Staged entries first, then unstaged and untracked ones."""
    staged: list[StatusEntry] = []
    unstaged: list[StatusEntry] = []
    for line in output.splitlines():
        if len(line) < 4:
            continue
        index_status, tree_status = line[0], line[1]
        path = line[3:].strip()
        if " -> " in path:
            path = path.split(" -> ", 1)[1]
        path = path.strip('"')
        if index_status not in (" ", "?"):
            staged.append(StatusEntry(path, index_status, True))
        if tree_status != " ":
            unstaged.append(StatusEntry(path, tree_status, False))
    return staged + unstaged


def git_status(repo: str, timeout_s: float = 5.0) -> list[StatusEntry]:
    """Run git in ``repo``; raises OSError or subprocess errors on failure."""
    completed = subprocess.run(
        ["git", "status", "--porcelain", "-uall"],
        cwd=repo,
        capture_output=True,
        text=True,
        encoding="utf-8",
        errors="ignore",
        timeout=timeout_s,
        check=True,
    )
    return parse_porcelain(completed.stdout or "")


class GitPoller(Poller):
    """Refresh git status on an interval and hand results to ``on_result``."""

    name = "git-poller"

    def __init__(
        self,
        repo: str,
        on_result: Callable[[list[StatusEntry], str], None],
        interval_s: float = 5.0,
        runner: Callable[[str], list[StatusEntry]] = git_status,
    ) -> None:
        super().__init__(interval_s)
        self.repo = repo
        self.on_result = on_result
        self._runner = runner
        self._last: list[StatusEntry] | None = None
        self._failing = False

    def reset(self, repo: str) -> None:
        """Point at a new repository and report its first result unconditionally."""
        self.repo = repo
        self._last = None
        self._failing = False

    def poll(self) -> None:
        try:
            entries = self._runner(self.repo)
        except (OSError, subprocess.SubprocessError) as exc:
            logger.debug(f"[git] Status failed in {self.repo}: {exc}")
            if not self._failing:
                self._failing = True
                self._last = None
                self.on_result([], str(exc) or "git status failed")
            return
        self._failing = False
        if entries != self._last:
            self._last = entries
            self.on_result(entries, "")


class SourceControl:
    """List of changed files; Enter opens the selected one."""

    def __init__(self, repo: str) -> None:
        self.repo = os.path.abspath(repo)
        self.region = Region()
        self.entries: list[StatusEntry] = []
        self.error = ""
        self.selected = 0
        self.top = 0
        self.on_open: Optional[Callable[[str], None]] = None

    def update(self, entries: list[StatusEntry], error: str = "") -> None:
        self.entries = list(entries)
        self.error = error
        self.selected = max(0, min(self.selected, len(self.entries) - 1))

    @property
    def selected_entry(self) -> StatusEntry | None:
        if 0 <= self.selected < len(self.entries):
            return self.entries[self.selected]
        return None

    def _rows(self) -> list[tuple[str, int]]:
        """Display rows as ``(section header, -1)`` or ``("", entry index)``."""
        rows: list[tuple[str, int]] = []
        for staged, title in ((True, "STAGED"), (False, "CHANGES")):
            indexes = [i for i, e in enumerate(self.entries) if e.staged == staged]
            if indexes:
                rows.append((f"{title} ({len(indexes)})", -1))
                rows.extend(("", i) for i in indexes)
        return rows

    def _visible_rows(self) -> int:
        return max(1, self.region.height - 4)

    def handle_event(self, event: InputEvent) -> bool:
        if isinstance(event, MouseEvent):
            if not self.region.contains(event.x, event.y):
                return False
            row = self.top + event.y - self.region.y - 3
            rows = self._rows()
            if 0 <= row < len(rows) and rows[row][1] >= 0:
                self.selected = rows[row][1]
            return True
        if not isinstance(event, KeyEvent) or event.ctrl or event.alt:
            return False
        key = event.char if event.is_printable else event.key
        if key in ("up", "k"):
            self.selected = max(0, self.selected - 1)
            return True
        if key in ("down", "j"):
            self.selected = max(0, min(len(self.entries) - 1, self.selected + 1))
            return True
        if key == "enter":
            entry = self.selected_entry
            if entry is not None and self.on_open is not None:
                self.on_open(os.path.join(self.repo, entry.path))
            return entry is not None
        return False

    def render(self, canvas: Canvas, focused: bool) -> None:
        region = self.region
        if region.is_empty:
            return
        canvas.fill(region.x, region.y, region.width, region.height)
        border = BORDER_FOCUSED if focused else BORDER_UNFOCUSED
        draw_box(canvas, region.x, region.y, region.width, region.height, border, double=focused)
        inner_x = region.x + 1
        inner_right = region.right - 1
        canvas.draw_text(inner_x, region.y + 1, " Source Control", HEADER_STYLE, max_x=inner_right)
        y0 = region.y + 3
        if self.error:
            canvas.draw_text(inner_x + 1, y0, "Not a git repository", SECTION_STYLE, max_x=inner_right)
            return
        if not self.entries:
            canvas.draw_text(inner_x + 1, y0, "No changes", SECTION_STYLE, max_x=inner_right)
            return
        rows = self._rows()
        selected_row = next((r for r, (_, i) in enumerate(rows) if i == self.selected), 0)
        visible = self._visible_rows()
        if selected_row < self.top:
            self.top = selected_row
        elif selected_row >= self.top + visible:
            self.top = selected_row - visible + 1
        for offset, (header, index) in enumerate(rows[self.top: self.top + visible]):
            y = y0 + offset
            if y >= region.bottom - 1:
                break
            if index < 0:
                canvas.draw_text(inner_x + 1, y, header, SECTION_STYLE, max_x=inner_right)
                continue
            entry = self.entries[index]
            status_style = fg(STATUS_COLORS.get(entry.status, 250), bold=True)
            path_style = PATH_STYLE
            if index == self.selected:
                sel = SELECTED_FOCUSED if focused else SELECTED_UNFOCUSED
                canvas.fill(inner_x, y, region.width - 2, 1, " ", sel)
                status_style = status_style + Style(bgcolor=sel.bgcolor)
                path_style = sel
            canvas.draw_text(inner_x + 1, y, entry.status, status_style, max_x=inner_right)
            canvas.draw_text(inner_x + 3, y, entry.path, path_style, max_x=inner_right)
