"""One interactive child process plus its emulated screen."""

from __future__ import annotations

import threading
from typing import Callable, Mapping, Optional

import pyte
from loguru import logger
from pyte.screens import Margins

from paneweave.errors import SpawnError
from paneweave.terminal.backend import PTYBackend, build_backend
from paneweave.terminal.colors import VTCell, cell_from_pyte
from paneweave.terminal.process import foreground_process_name
from paneweave.terminal.scrollback import DEFAULT_SCROLLBACK_LINES, ScrollbackBuffer

ALT_SCREEN_MODES = (47, 1047, 1049)

BackendFactory = Callable[..., PTYBackend]


class ScrollbackScreen(pyte.Screen):
    """pyte screen that keeps scrolled-off rows and an alternate buffer."""

    def __init__(self, columns: int, lines: int, scrollback: ScrollbackBuffer) -> None:
        self.scrollback = scrollback
        self._saved_main: Optional[tuple[list[list], int, int]] = None
        super().__init__(columns, lines)
        self.set_mode(pyte.modes.LNM)

    @property
    def alternate(self) -> bool:
        return any((mode << 5) in self.mode for mode in ALT_SCREEN_MODES)

    def row_cells(self, y: int) -> list[VTCell]:
        line = self.buffer[y]
        return [cell_from_pyte(line[x]) for x in range(self.columns)]

    def index(self) -> None:
        top, bottom = self.margins or Margins(0, self.lines - 1)
        if self.cursor.y == bottom and top == 0 and not self.alternate:
            self.scrollback.push(self.row_cells(top))
        super().index()

    def set_mode(self, *modes, **kwargs) -> None:
        entering = (
            kwargs.get("private")
            and any(m in ALT_SCREEN_MODES for m in modes)
            and not self.alternate
        )
        if entering:
            self._saved_main = (
                [[self.buffer[y][x] for x in range(self.columns)] for y in range(self.lines)],
                self.cursor.x,
                self.cursor.y,
            )
        super().set_mode(*modes, **kwargs)
        if entering:
            self.erase_in_display(2)

    def reset_mode(self, *modes, **kwargs) -> None:
        leaving = (
            kwargs.get("private")
            and any(m in ALT_SCREEN_MODES for m in modes)
            and self.alternate
        )
        super().reset_mode(*modes, **kwargs)
        if leaving and self._saved_main is not None and not self.alternate:
            rows, cx, cy = self._saved_main
            self._saved_main = None
            self.erase_in_display(2)
            for y, row in enumerate(rows[: self.lines]):
                for x, char in enumerate(row[: self.columns]):
                    self.buffer[y][x] = char
            self.cursor.x = min(cx, self.columns - 1)
            self.cursor.y = min(cy, self.lines - 1)
            self.dirty.update(range(self.lines))


class TerminalSession:
    """Manage one PTY-backed process and feed its output into a screen."""

    def __init__(
        self,
        command: str,
        cols: int = 80,
        rows: int = 24,
        cwd: str | None = None,
        scrollback_lines: int = DEFAULT_SCROLLBACK_LINES,
        backend_factory: BackendFactory = build_backend,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self.command = command
        self.cwd = cwd
        self.cols = max(1, cols)
        self.rows = max(1, rows)
        self.env = env
        self.scrollback = ScrollbackBuffer(scrollback_lines)
        self.screen = ScrollbackScreen(self.cols, self.rows, self.scrollback)
        self.stream = pyte.Stream(self.screen)

        self.on_output: Optional[Callable[[], None]] = None
        self.on_exit: Optional[Callable[["TerminalSession"], None]] = None

        self._backend_factory = backend_factory
        self._backend: Optional[PTYBackend] = None
        self._screen_lock = threading.Lock()
        self._reader_thread: Optional[threading.Thread] = None
        self._running = False
        self._closed = False
        self._received_output = threading.Event()

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def has_received_output(self) -> bool:
        return self._received_output.is_set()

    @property
    def backend(self) -> Optional[PTYBackend]:
        return self._backend

    def start(self) -> None:
        """Spawn the process and the reader thread; raises SpawnError."""
        if self._running:
            return
        try:
            self._backend = self._backend_factory(
                self.command,
                cols=self.cols,
                rows=self.rows,
                cwd=self.cwd,
                env=self.env,
            )
        except Exception as exc:
            raise SpawnError(self.command, exc) from exc
        self._running = True
        self._reader_thread = threading.Thread(
            target=self._read_loop,
            name=f"pty-reader-{self.command[:20]}",
            daemon=True,
        )
        self._reader_thread.start()

    def _read_loop(self) -> None:
        while self._running:
            backend = self._backend
            if backend is None:
                break
            try:
                data = backend.read()
            except OSError as exc:
                logger.debug(f"[terminal] Read failed for {self.command[:40]}: {exc}")
                break
            if data:
                self.feed(data)
            elif not backend.is_alive():
                break
        self._running = False
        if not self._closed:
            logger.info(f"[terminal] Process exited: {self.command[:60]}")
            callback = self.on_exit
            if callback is not None:
                callback(self)

    def feed(self, data: str) -> None:
        """Push process output through the VT parser."""
        with self._screen_lock:
            try:
                self.stream.feed(data)
            except Exception as exc:
                # Malformed sequences must not kill the reader.
                logger.debug(f"[terminal] VT parse error: {exc}")
        self._received_output.set()
        callback = self.on_output
        if callback is not None:
            callback()

    def reset_output_flag(self) -> None:
        self._received_output.clear()

    def write(self, data: str) -> bool:
        backend = self._backend
        if backend is None or not self._running or not data:
            return False
        try:
            backend.write(data)
        except OSError as exc:
            logger.warning(f"[terminal] Write failed: {exc}")
            return False
        return True

    def resize(self, cols: int, rows: int) -> bool:
        """Resize screen and pty; returns False when the size is unchanged."""
        cols = max(1, cols)
        rows = max(1, rows)
        if cols == self.cols and rows == self.rows:
            return False
        with self._screen_lock:
            self.screen.resize(lines=rows, columns=cols)
            self.cols = cols
            self.rows = rows
        backend = self._backend
        if backend is not None:
            try:
                backend.resize(cols, rows)
            except OSError as exc:
                logger.debug(f"[terminal] PTY resize failed: {exc}")
        return True

    def close(self) -> None:
        """Stop the reader and kill the process; no exit callback fires."""
        self._closed = True
        self._running = False
        backend = self._backend
        if backend is not None:
            try:
                backend.close()
            except OSError as exc:
                logger.debug(f"[terminal] Close failed: {exc}")

    def snapshot(self) -> tuple[list[list[VTCell]], tuple[int, int, bool], bool]:
        """Copy of the grid, cursor ``(x, y, visible)`` and alternate flag."""
        with self._screen_lock:
            grid = [self.screen.row_cells(y) for y in range(self.screen.lines)]
            cursor = self.screen.cursor
            return grid, (cursor.x, cursor.y, not cursor.hidden), self.screen.alternate

    def live_row(self, y: int) -> list[VTCell]:
        with self._screen_lock:
            if 0 <= y < self.screen.lines:
                return self.screen.row_cells(y)
        return []

    @property
    def alternate_screen(self) -> bool:
        with self._screen_lock:
            return self.screen.alternate

    def foreground_process(self) -> str:
        """Name of whatever runs in the foreground of this pty."""
        backend = self._backend
        if backend is None:
            return ""
        return foreground_process_name(backend.fileno(), backend.pid)

    def display_text(self) -> str:
        """Plain text of the live screen, for tests and debugging."""
        with self._screen_lock:
            return "\n".join(line.rstrip() for line in self.screen.display)
