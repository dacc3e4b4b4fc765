"""Textual front end: one full-screen widget painting the layout canvas."""

from __future__ import annotations

import time
from typing import Optional

from loguru import logger
from textual import events
from textual.app import App, ComposeResult
from textual.message import Message
from textual.strip import Strip
from textual.widget import Widget

from paneweave.config.schema import Config
from paneweave.display import Canvas
from paneweave.events import InputEvent, KeyEvent, MouseEvent, PasteEvent, ResizeEvent
from paneweave.host import BufferHost
from paneweave.layout.coordinator import LayoutManager

# Textual key names that differ from ours.
TEXTUAL_KEY_ALIASES = {
    "ctrl+at": "ctrl+space",
    "ctrl+backslash": "ctrl+\\",
    "ctrl+right_square_bracket": "ctrl+]",
    "ctrl+left_square_bracket": "ctrl+[",
    "ctrl+underscore": "ctrl+_",
    "ctrl+slash": "ctrl+/",
}

MOUSE_BUTTONS = {1: "left", 2: "middle", 3: "right"}


def convert_key(event: events.Key) -> KeyEvent:
    """Translate a textual key press into a :class:`KeyEvent`."""
    key = TEXTUAL_KEY_ALIASES.get(event.key, event.key)
    char = event.character if event.is_printable else None
    return KeyEvent.parse(key, char=char)


class WorkspaceView(Widget, can_focus=True):
    """Forward input to the layout manager and draw its canvas."""

    DEFAULT_CSS = """
    WorkspaceView {
        width: 1fr;
        height: 1fr;
    }
    """

    class Wake(Message):
        """A worker thread posted something for the layout manager."""

    def __init__(self, manager: LayoutManager, redraw_throttle_ms: int = 16) -> None:
        super().__init__()
        self.manager = manager
        self.canvas = Canvas(0, 0)
        self._throttle_s = redraw_throttle_ms / 1000.0
        self._last_redraw = 0.0
        self._redraw_pending = False
        manager.wake = self._wake_from_thread

    def _wake_from_thread(self) -> None:
        # post_message is safe to call from any thread.
        self.post_message(self.Wake())

    def on_mount(self) -> None:
        self.set_interval(1.0, self.schedule_redraw)

    def on_workspace_view_wake(self, _message: Wake) -> None:
        self.schedule_redraw()

    # -- input -------------------------------------------------------------

    def _dispatch(self, event: InputEvent) -> None:
        if not self.manager.handle_event(event):
            self.manager.host.handle_event(event)
        self.schedule_redraw()

    def on_key(self, event: events.Key) -> None:
        event.stop()
        event.prevent_default()
        self._dispatch(convert_key(event))

    def on_paste(self, event: events.Paste) -> None:
        event.stop()
        self._dispatch(PasteEvent(event.text))

    def on_mouse_down(self, event: events.MouseDown) -> None:
        event.stop()
        self._dispatch(MouseEvent(event.x, event.y, MOUSE_BUTTONS.get(event.button, "left")))

    def on_mouse_scroll_up(self, event: events.MouseScrollUp) -> None:
        event.stop()
        self._dispatch(MouseEvent(event.x, event.y, "wheel_up"))

    def on_mouse_scroll_down(self, event: events.MouseScrollDown) -> None:
        event.stop()
        self._dispatch(MouseEvent(event.x, event.y, "wheel_down"))

    def on_resize(self, event: events.Resize) -> None:
        width, height = event.size.width, event.size.height
        self.canvas.resize(width, height)
        self.manager.handle_event(ResizeEvent(width, height))
        self.schedule_redraw()

    # -- drawing -------------------------------------------------------------

    def schedule_redraw(self) -> None:
        """Redraw at most once per throttle window."""
        if self._redraw_pending:
            return
        self._redraw_pending = True
        delay = self._throttle_s - (time.monotonic() - self._last_redraw)
        self.set_timer(max(0.0, delay), self._redraw)

    def _redraw(self) -> None:
        self._redraw_pending = False
        self._last_redraw = time.monotonic()
        self.manager.drain_messages()
        if self.manager.should_quit:
            self.app.exit()
            return
        self.manager.render(self.canvas)
        self.canvas.show()
        self.refresh()

    def render_line(self, y: int) -> Strip:
        if y >= self.canvas.height:
            return Strip.blank(self.size.width)
        return Strip(list(self.canvas.row_segments(y)), self.canvas.width)


class WorkspaceApp(App):
    """Full-screen workspace; every key goes to the layout manager."""

    inherit_bindings = False
    ENABLE_COMMAND_PALETTE = False
    BINDINGS = []

    def __init__(self, root: str, config: Config, tool: str = "") -> None:
        super().__init__()
        self.config = config
        self.host = BufferHost()
        self.manager = LayoutManager(root, self.host, config=config, preselected_tool=tool)
        self.view: Optional[WorkspaceView] = None

    def compose(self) -> ComposeResult:
        self.view = WorkspaceView(self.manager, self.config.ui.redraw_throttle_ms)
        yield self.view

    def on_mount(self) -> None:
        if self.view is not None:
            self.view.focus()
        self.manager.resize(self.size.width, self.size.height)
        self.manager.start()

    def on_unmount(self) -> None:
        logger.info("[layout] Shutting down workspace")
        self.manager.close()


def run_workspace(root: str, config: Config, tool: str = "") -> None:
    WorkspaceApp(root, config, tool=tool).run()
