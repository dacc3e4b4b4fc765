"""Project picker: choose a new root folder for the file tree."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Callable, Optional

from rich.style import Style

from paneweave.display import Canvas, draw_centered
from paneweave.events import KeyEvent
from paneweave.layout.modals import ACCENT_STYLE, HINT_STYLE, Modal

PICKER_WIDTH = 60
PICKER_HEIGHT = 20
LIST_HEIGHT = 12
HINT = "Tab:Open folder  Enter:Select  Esc:Cancel"

SELECTED_STYLE = Style(color="black", bgcolor="color(205)")
INPUT_STYLE = Style(color="white", bgcolor="color(236)")
FOLDER_STYLE = Style(color="color(39)", bgcolor="color(0)")


def expand_tilde(path: str) -> str:
    return os.path.expanduser(path)


def collapse_tilde(path: str) -> str:
    home = str(Path.home())
    if path == home or path.startswith(home + os.sep):
        return "~" + path[len(home):]
    return path


def list_directories(path: str) -> list[str]:
    """Visible sub-directory names of ``path``, sorted case-insensitively."""
    try:
        with os.scandir(path) as entries:
            names = [e.name for e in entries if e.is_dir() and not e.name.startswith(".")]
    except OSError:
        return []
    return sorted(names, key=str.lower)


class ProjectPicker(Modal):
    """Path input above a filtered folder listing."""

    name = "project_picker"

    def __init__(self) -> None:
        super().__init__()
        self.input_path = ""
        self.cursor = 0
        self.current_dir = ""
        self.entries: list[str] = []
        self.filtered: list[str] = []
        self.selected = 0
        self.top = 0
        self._callback: Optional[Callable[[str], None]] = None

    def show(self, root: str, screen_w: int, screen_h: int, callback: Callable[[str], None]) -> None:
        """Start in the parent of ``root`` so sibling projects are listed."""
        parent = os.path.dirname(os.path.abspath(root)) or os.sep
        self._callback = callback
        self._load(parent)
        self.open(screen_w, screen_h)

    def hide(self) -> None:
        super().hide()
        self._callback = None

    def _load(self, directory: str) -> None:
        self.current_dir = directory
        self.input_path = collapse_tilde(directory).rstrip(os.sep) + os.sep
        self.cursor = len(self.input_path)
        self.entries = list_directories(directory)
        self._filter()

    def _filter(self) -> None:
        needle = self.input_path.rsplit(os.sep, 1)[-1].lower()
        self.filtered = [name for name in self.entries if needle in name.lower()]
        self.selected = 0
        self.top = 0

    def _finish(self, path: str) -> None:
        callback = self._callback
        self.hide()
        if callback is not None:
            callback(path)

    def on_key(self, event: KeyEvent) -> None:
        key = event.key
        if key == "escape":
            self.hide()
        elif key == "enter":
            if self.filtered:
                self._finish(os.path.join(self.current_dir, self.filtered[self.selected]))
            else:
                typed = expand_tilde(self.input_path)
                if os.path.isdir(typed):
                    self._finish(os.path.abspath(typed))
        elif key == "tab":
            self._drill_in()
        elif key == "up":
            if self.filtered:
                self.selected = max(0, self.selected - 1)
                self.top = min(self.top, self.selected)
        elif key == "down":
            if self.filtered:
                self.selected = min(len(self.filtered) - 1, self.selected + 1)
                if self.selected >= self.top + LIST_HEIGHT:
                    self.top = self.selected - LIST_HEIGHT + 1
        elif key == "left":
            self.cursor = max(0, self.cursor - 1)
        elif key == "right":
            self.cursor = min(len(self.input_path), self.cursor + 1)
        elif key == "home":
            self.cursor = 0
        elif key == "end":
            self.cursor = len(self.input_path)
        elif key == "backspace":
            self._backspace()
        elif key == "delete":
            if self.cursor < len(self.input_path):
                self.input_path = self.input_path[: self.cursor] + self.input_path[self.cursor + 1:]
                self._filter()
        elif event.is_printable:
            self.input_path = self.input_path[: self.cursor] + event.char + self.input_path[self.cursor:]
            self.cursor += 1
            self._filter()

    def _drill_in(self) -> None:
        if self.filtered:
            self._load(os.path.join(self.current_dir, self.filtered[self.selected]))
            return
        typed = expand_tilde(self.input_path)
        if os.path.isdir(typed):
            self._load(os.path.abspath(typed))

    def _backspace(self) -> None:
        if self.cursor <= 0:
            return
        if self.input_path[self.cursor - 1] == os.sep:
            current = expand_tilde(self.input_path[: self.cursor - 1]) or os.sep
            parent = os.path.dirname(current)
            if parent and parent != current:
                self._load(parent)
                return
        self.input_path = self.input_path[: self.cursor - 1] + self.input_path[self.cursor:]
        self.cursor -= 1
        self._filter()

    def render(self, canvas: Canvas) -> None:
        if not self.active:
            return
        x, y, w, h = self._frame(canvas, PICKER_WIDTH, PICKER_HEIGHT, ACCENT_STYLE)
        draw_centered(canvas, x, w, y + 1, "Open Project", ACCENT_STYLE + Style(bold=True))
        field_w = w - 4
        offset = max(0, self.cursor - field_w + 1)
        canvas.fill(x + 2, y + 3, field_w, 1, " ", INPUT_STYLE)
        canvas.draw_text(x + 2, y + 3, self.input_path[offset: offset + field_w], INPUT_STYLE, max_x=x + w - 2)
        under = self.input_path[self.cursor] if self.cursor < len(self.input_path) else " "
        canvas.set_cell(x + 2 + self.cursor - offset, y + 3, under, Style(reverse=True))
        list_y = y + 5
        rows = min(LIST_HEIGHT, h - 8)
        for row in range(rows):
            index = self.top + row
            if index >= len(self.filtered):
                break
            name = self.filtered[index] + os.sep
            if len(name) > w - 8:
                name = name[: w - 11] + "..."
            if index == self.selected:
                canvas.fill(x + 1, list_y + row, w - 2, 1, " ", SELECTED_STYLE)
                canvas.draw_text(x + 4, list_y + row, name, SELECTED_STYLE, max_x=x + w - 1)
            else:
                canvas.draw_text(x + 4, list_y + row, name, FOLDER_STYLE, max_x=x + w - 1)
        if not self.filtered:
            draw_centered(canvas, x, w, list_y, "No folders", HINT_STYLE)
        draw_centered(canvas, x, w, y + h - 2, HINT, HINT_STYLE)
