"""File tree pane."""

from __future__ import annotations

import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from loguru import logger
from rich.style import Style

from paneweave.display import Canvas, draw_box, fg
from paneweave.events import InputEvent, KeyEvent, MouseEvent
from paneweave.layout.region import Region
from paneweave.panes.poller import Poller

HIDDEN_NAMES = frozenset({".git", "node_modules", "__pycache__"})
HEADER_ROWS = 2

DIRECTORY_STYLE = fg(39)
FILE_STYLE = Style(color="white")
DIVIDER_STYLE = fg(240)
SELECTED_FOCUSED = Style(color="white", bgcolor="color(205)")
SELECTED_UNFOCUSED = Style(color="white", bgcolor="color(236)")
BORDER_FOCUSED = fg(205)
BORDER_UNFOCUSED = fg(240)


@dataclass(frozen=True)
class TreeNode:
    path: str
    name: str
    is_dir: bool
    depth: int
    parent: int = -1


def is_hidden(name: str) -> bool:
    return name.startswith(".") or name in HIDDEN_NAMES


def list_children(path: str) -> list[tuple[str, bool]]:
    """``(name, is_dir)`` pairs, directories first."""
    try:
        with os.scandir(path) as entries:
            children = [(e.name, e.is_dir()) for e in entries if not is_hidden(e.name)]
    except OSError as exc:
        logger.debug(f"[tree] Cannot list {path}: {exc}")
        return []
    return sorted(children, key=lambda item: (not item[1], item[0].lower()))


def validate_name(name: str) -> str:
    name = name.strip()
    if not name or name in (".", "..") or "/" in name or os.sep in name:
        raise OSError(f"Invalid name: {name!r}")
    return name


class FileTree:
    """Expandable directory listing rooted at the project folder."""

    def __init__(self, root: str) -> None:
        self.root = os.path.abspath(root)
        self.region = Region()
        self.expanded: set[str] = set()
        self.nodes: list[TreeNode] = []
        self.selected = 0
        self.top = 0
        self.on_preview: Optional[Callable[[str], None]] = None
        self.on_open: Optional[Callable[[str], None]] = None
        self.refresh()

    # -- tree state ------------------------------------------------------

    def set_root(self, root: str) -> None:
        self.root = os.path.abspath(root)
        self.expanded.clear()
        self.selected = 0
        self.top = 0
        self.refresh()
        logger.info(f"[tree] Root set to {self.root}")

    def refresh(self) -> None:
        """Rebuild the visible node list from disk, keeping the selection's path."""
        current = self.selected_node
        self.expanded = {p for p in self.expanded if os.path.isdir(p)}
        nodes: list[TreeNode] = []
        self._collect(self.root, 0, -1, nodes)
        self.nodes = nodes
        if current is not None:
            self.select_path(current.path)
        self.selected = max(0, min(self.selected, len(self.nodes) - 1))

    def _collect(self, directory: str, depth: int, parent: int, out: list[TreeNode]) -> None:
        for name, is_dir in list_children(directory):
            path = os.path.join(directory, name)
            out.append(TreeNode(path, name, is_dir, depth, parent))
            if is_dir and path in self.expanded:
                self._collect(path, depth + 1, len(out) - 1, out)

    def signature(self) -> tuple:
        """Cheap change detector over the root and expanded directories."""
        rows = []
        for directory in sorted({self.root, *tuple(self.expanded)}):
            try:
                rows.append((directory, os.stat(directory).st_mtime_ns))
            except OSError:
                rows.append((directory, 0))
        return tuple(rows)

    @property
    def selected_node(self) -> TreeNode | None:
        if 0 <= self.selected < len(self.nodes):
            return self.nodes[self.selected]
        return None

    def select_path(self, path: str) -> bool:
        for i, node in enumerate(self.nodes):
            if node.path == path:
                self.selected = i
                self._ensure_visible()
                return True
        return False

    def target_dir(self) -> str:
        """Folder new entries go into: the selected folder or the file's parent."""
        node = self.selected_node
        if node is None:
            return self.root
        return node.path if node.is_dir else os.path.dirname(node.path)

    # -- file operations ---------------------------------------------------

    def create_file(self, name: str) -> str:
        path = os.path.join(self.target_dir(), validate_name(name))
        if os.path.exists(path):
            raise FileExistsError(f"{path} already exists")
        Path(path).touch()
        self._reveal(path)
        logger.info(f"[tree] Created file {path}")
        return path

    def create_folder(self, name: str) -> str:
        path = os.path.join(self.target_dir(), validate_name(name))
        os.mkdir(path)
        self._reveal(path)
        logger.info(f"[tree] Created folder {path}")
        return path

    def rename_selected(self, new_name: str) -> tuple[str, str]:
        node = self.selected_node
        if node is None:
            raise OSError("Nothing selected")
        new_path = os.path.join(os.path.dirname(node.path), validate_name(new_name))
        if os.path.exists(new_path):
            raise FileExistsError(f"{new_path} already exists")
        os.rename(node.path, new_path)
        if node.path in self.expanded:
            self.expanded.discard(node.path)
            self.expanded.add(new_path)
        self._reveal(new_path)
        logger.info(f"[tree] Renamed {node.path} -> {new_path}")
        return node.path, new_path

    def delete_selected(self) -> str:
        node = self.selected_node
        if node is None:
            raise OSError("Nothing selected")
        if node.is_dir:
            shutil.rmtree(node.path)
        else:
            os.remove(node.path)
        if self.selected >= len(self.nodes) - 1 and self.selected > 0:
            self.selected -= 1
        self.refresh()
        logger.info(f"[tree] Deleted {node.path}")
        return node.path

    def _reveal(self, path: str) -> None:
        parent = os.path.dirname(path)
        while parent.startswith(self.root) and parent != self.root:
            self.expanded.add(parent)
            parent = os.path.dirname(parent)
        self.refresh()
        self.select_path(path)

    # -- input -------------------------------------------------------------

    def _visible_rows(self) -> int:
        return max(1, self.region.height - 2 - HEADER_ROWS)

    def _ensure_visible(self) -> None:
        rows = self._visible_rows()
        if self.selected < self.top:
            self.top = self.selected
        elif self.selected >= self.top + rows:
            self.top = self.selected - rows + 1

    def _move(self, delta: int) -> bool:
        if not self.nodes:
            return False
        target = max(0, min(len(self.nodes) - 1, self.selected + delta))
        if target == self.selected:
            return False
        self.selected = target
        self._ensure_visible()
        self._preview()
        return True

    def _preview(self) -> None:
        node = self.selected_node
        if node is not None and not node.is_dir and self.on_preview is not None:
            self.on_preview(node.path)

    def expand_selected(self) -> bool:
        node = self.selected_node
        if node is None or not node.is_dir:
            return False
        if node.path in self.expanded:
            return self._move(1)
        self.expanded.add(node.path)
        self.refresh()
        return True

    def collapse_selected(self) -> bool:
        node = self.selected_node
        if node is None:
            return False
        if node.is_dir and node.path in self.expanded:
            self.expanded.discard(node.path)
            self.refresh()
            return True
        if node.parent >= 0:
            self.selected = node.parent
            self._ensure_visible()
            return True
        return False

    def open_selected(self) -> bool:
        node = self.selected_node
        if node is None:
            return False
        if node.is_dir:
            if node.path in self.expanded:
                self.expanded.discard(node.path)
            else:
                self.expanded.add(node.path)
            self.refresh()
        elif self.on_open is not None:
            self.on_open(node.path)
        return True

    def handle_event(self, event: InputEvent) -> bool:
        if isinstance(event, MouseEvent):
            return self._handle_mouse(event)
        if not isinstance(event, KeyEvent) or event.ctrl or event.alt:
            return False
        key = event.char if event.is_printable else event.key
        page = self._visible_rows()
        if key in ("up", "k"):
            return self._move(-1)
        if key in ("down", "j"):
            return self._move(1)
        if key in ("left", "h"):
            return self.collapse_selected()
        if key in ("right", "l"):
            return self.expand_selected()
        if key == "enter":
            return self.open_selected()
        if key == "pageup":
            return self._move(-page)
        if key == "pagedown":
            return self._move(page)
        if key in ("home", "g"):
            return self._move(-len(self.nodes))
        if key in ("end", "G"):
            return self._move(len(self.nodes))
        if key == "r":
            self.refresh()
            return True
        return False

    def _handle_mouse(self, event: MouseEvent) -> bool:
        if event.button == "wheel_up":
            self.top = max(0, self.top - 3)
            return True
        if event.button == "wheel_down":
            self.top = max(0, min(len(self.nodes) - self._visible_rows(), self.top + 3))
            return True
        if not self.region.contains(event.x, event.y):
            return False
        row = event.y - self.region.y - 1 - HEADER_ROWS
        index = self.top + row
        if row >= 0 and index < len(self.nodes):
            if index == self.selected:
                return self.open_selected()
            self.selected = index
            self._preview()
        return True

    # -- rendering ---------------------------------------------------------

    def render(self, canvas: Canvas, focused: bool) -> None:
        region = self.region
        if region.is_empty:
            return
        canvas.fill(region.x, region.y, region.width, region.height)
        border = BORDER_FOCUSED if focused else BORDER_UNFOCUSED
        draw_box(canvas, region.x, region.y, region.width, region.height, border, double=focused)
        inner_x = region.x + 1
        inner_right = region.right - 1
        title = " " + (os.path.basename(self.root) or self.root)
        canvas.draw_text(inner_x, region.y + 1, title, DIRECTORY_STYLE + Style(bold=True), max_x=inner_right)
        canvas.draw_text(inner_x, region.y + 2, "─" * (region.width - 2), DIVIDER_STYLE, max_x=inner_right)
        first_row = region.y + 1 + HEADER_ROWS
        for row in range(self._visible_rows()):
            index = self.top + row
            if index >= len(self.nodes) or first_row + row >= region.bottom - 1:
                break
            node = self.nodes[index]
            y = first_row + row
            if node.is_dir:
                marker = "▾ " if node.path in self.expanded else "▸ "
                style = DIRECTORY_STYLE
            else:
                marker = "  "
                style = FILE_STYLE
            if index == self.selected:
                style = SELECTED_FOCUSED if focused else SELECTED_UNFOCUSED
                canvas.fill(inner_x, y, region.width - 2, 1, " ", style)
            text = "  " * node.depth + marker + node.name + ("/" if node.is_dir else "")
            canvas.draw_text(inner_x, y, text, style, max_x=inner_right)


class TreeWatcher(Poller):
    """Report when the tree's directories change on disk."""

    name = "tree-watcher"

    def __init__(self, tree: FileTree, on_change: Callable[[], None], interval_s: float = 2.0) -> None:
        super().__init__(interval_s)
        self.tree = tree
        self.on_change = on_change
        self._last: tuple | None = None

    def poll(self) -> None:
        current = self.tree.signature()
        if self._last is not None and current != self._last:
            logger.debug("[tree] Change detected on disk")
            self.on_change()
        self._last = current
