"""Pane coordinator: geometry, focus, input routing and terminal lifecycle.

:class:`LayoutManager` is the only object that mutates workspace state. Worker
threads (session creation, pty readers, quit inspection, pollers) talk to it
through the message queue and the ``wake`` callback, and touch the terminal
slots only under :attr:`LayoutManager.slots_lock`.
"""

from __future__ import annotations

import os
import queue
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

from loguru import logger
from rich.style import Style

from paneweave.config.schema import Config
from paneweave.display import Canvas, draw_box, draw_centered, fg
from paneweave.errors import SpawnError
from paneweave.events import InputEvent, KeyEvent, MouseEvent, PasteEvent, RawEvent, ResizeEvent
from paneweave.host import HostEditor
from paneweave.layout import shortcuts
from paneweave.layout.geometry import compute_geometry, is_eligible, next_focus, placeholder_boxes
from paneweave.layout.idle import IdleWatcher
from paneweave.layout.messages import (
    GitStatusUpdated,
    LayoutMessage,
    QuitInspected,
    Redraw,
    SessionEnded,
    StatusMessage,
    TerminalCreated,
    TreeChanged,
    WorkInProgress,
)
from paneweave.layout.modals import (
    ConfirmModal,
    InputModal,
    LoadingOverlay,
    ModalStack,
    ShortcutsModal,
    YesNoModal,
)
from paneweave.layout.nav_bar import NavBar
from paneweave.layout.project_picker import ProjectPicker
from paneweave.layout.quick_find import QuickFind
from paneweave.layout.region import (
    TERMINAL_SLOTS,
    FocusSlot,
    Region,
    RegionSet,
    VisibilityState,
)
from paneweave.layout.tabs import TabStrip
from paneweave.layout.tool_selector import ToolSelector
from paneweave.panes.file_tree import FileTree, TreeWatcher
from paneweave.panes.source_control import GitPoller, SourceControl
from paneweave.terminal.backend import build_backend
from paneweave.terminal.colors import parse_background
from paneweave.terminal.panel import TerminalPanel, content_size, spinner_frame
from paneweave.terminal.process import is_shell
from paneweave.terminal.session import TerminalSession
from paneweave.tools import AssistantTool, default_shell, get_tool, tool_for_command, tool_for_process
from paneweave.utils.locks import ReadWriteLock

EDITOR_BORDER_FOCUSED = fg(205)
EDITOR_BORDER_UNFOCUSED = fg(240)
PLACEHOLDER_STYLE = fg(240)
PLACEHOLDER_KEY_STYLE = fg(243)
PENDING_STYLE = fg(245)
HINT_BAR_STYLE = Style(color="color(250)", bgcolor="color(236)")
HINT_KEY_STYLE = Style(color="color(226)", bgcolor="color(236)", bold=True)
PASSTHROUGH_HINT_STYLE = Style(color="color(0)", bgcolor="color(208)")
PASSTHROUGH_HINT = "  PASSTHROUGH MODE - Press Ctrl+\\ Ctrl+\\ to exit"

QUICK_COMMAND_HINTS = (
    ("q", "Quit"),
    ("w", "Close tab"),
    ("space", "Next pane"),
    ("s", "Save"),
    ("n", "New file"),
    ("f", "New folder"),
    ("d", "Delete"),
    ("r", "Rename"),
    ("p", "Passthrough"),
    ("esc", "Cancel"),
)

SessionFactory = Callable[[str, int, int, str], TerminalSession]
AtRiskPredicate = Callable[[TerminalSession], Optional[str]]
Runner = Callable[[Callable[[], None]], None]


def default_at_risk(session: TerminalSession) -> str | None:
    """Name of the assistant running in the foreground, None for shells."""
    name = session.foreground_process()
    if not name or is_shell(name):
        return None
    tool = tool_for_process(name)
    return tool.name if tool is not None else None


def run_in_thread(target: Callable[[], None]) -> None:
    threading.Thread(target=target, name="layout-worker", daemon=True).start()


@dataclass
class TerminalSlot:
    """Handle and bookkeeping for one terminal column."""

    panel: Optional[TerminalPanel] = None
    initialized: bool = False
    pending: bool = False
    command: str = ""
    generation: int = 0
    focus_on_ready: bool = False
    pending_input: str = ""


class LayoutManager:
    """Own the panes and route every input event to one of them."""

    def __init__(
        self,
        root: str,
        host: HostEditor,
        config: Config | None = None,
        session_factory: SessionFactory | None = None,
        is_at_risk_session: AtRiskPredicate = default_at_risk,
        runner: Runner = run_in_thread,
        tool_selector: ToolSelector | None = None,
        preselected_tool: str = "",
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = config or Config()
        self.root = os.path.abspath(root)
        self.host = host
        self.is_at_risk_session = is_at_risk_session
        self.wake: Optional[Callable[[], None]] = None
        self.should_quit = False

        self._session_factory = session_factory or self._default_session_factory
        self._runner = runner
        self._clock = clock
        self._messages: "queue.Queue[LayoutMessage]" = queue.Queue()
        self._quitting = False
        self._prefix_pending = False
        self._last_prefix_at: Optional[float] = None

        self.shell = default_shell(self.config.terminal.shell)
        tool_key = preselected_tool or self.config.terminal.default_tool
        self.preselected_command = self._command_for_key(tool_key) if tool_key else ""

        layout = self.config.layout
        self.visibility = VisibilityState(terminals=[layout.start_with_terminal, False, False])
        self.focus = FocusSlot.EDITOR
        self.width = 0
        self.height = 0
        self.regions = compute_geometry(0, 0, self.visibility, self.focus, layout)

        self.slots_lock = ReadWriteLock()
        self._slots = [TerminalSlot() for _ in range(TERMINAL_SLOTS)]

        self.nav_bar = NavBar(self.config.ui.status_timeout_s)
        self.tabs = TabStrip()
        self.tabs.focused = self.focus == FocusSlot.EDITOR
        self.file_tree = FileTree(self.root)
        self.file_tree.on_preview = self.preview_file
        self.file_tree.on_open = self.open_file
        self.source_control = SourceControl(self.root)
        self.source_control.on_open = self.open_file

        self.tree_watcher = TreeWatcher(self.file_tree, lambda: self._post(TreeChanged()))
        self.git_poller = GitPoller(
            self.root,
            lambda entries, error: self._post(GitStatusUpdated(tuple(entries), error)),
            interval_s=self.config.ui.git_poll_interval_s,
        )
        self.idle = IdleWatcher(
            timeout_s=self.config.idle.timeout_s,
            check_interval_s=self.config.idle.check_interval_s,
            on_idle=self._on_idle,
            on_resume=self._on_resume,
            clock=clock,
        )

        self.confirm = ConfirmModal()
        self.input = InputModal()
        self.yes_no = YesNoModal()
        self.project_picker = ProjectPicker()
        self.quick_find = QuickFind()
        self.tool_selector = tool_selector or ToolSelector()
        self.shortcuts_help = ShortcutsModal()
        self.modals = ModalStack(
            [
                self.confirm,
                self.input,
                self.yes_no,
                self.project_picker,
                self.quick_find,
                self.tool_selector,
                self.shortcuts_help,
            ]
        )
        self.loading = LoadingOverlay()

        self._sync_tabs_from_host()

    # -- setup -----------------------------------------------------------

    def _command_for_key(self, key: str) -> str:
        try:
            tool = get_tool(key)
        except ValueError as exc:
            logger.warning(f"[layout] {exc}")
            return ""
        return tool.command_line().strip() or self.shell

    def _default_session_factory(self, command: str, cols: int, rows: int, cwd: str) -> TerminalSession:
        return TerminalSession(
            command,
            cols=cols,
            rows=rows,
            cwd=cwd,
            scrollback_lines=self.config.terminal.scrollback_lines,
            backend_factory=build_backend,
        )

    def _sync_tabs_from_host(self) -> None:
        current = self.host.current_buffer()
        if current is None:
            current = self.host.new_buffer()
        self.tabs.add_tab(current, self.host.buffer_path(current))

    def start(self) -> None:
        """Start background watchers and the first terminal."""
        self.idle.start()
        self.tree_watcher.start()
        if self.visibility.terminals[0]:
            if self.preselected_command:
                self.ensure_preloaded(self.preselected_command)
            else:
                self.visibility.terminals[0] = False
                self.toggle_terminal(1)
        logger.info(f"[layout] Workspace started in {self.root}")

    def close(self) -> None:
        """Stop watchers and close every terminal."""
        self.idle.stop()
        self.tree_watcher.stop()
        self.git_poller.stop()
        with self.slots_lock.write():
            panels = [slot.panel for slot in self._slots if slot.panel is not None]
            for slot in self._slots:
                slot.panel = None
                slot.generation += 1
        for panel in panels:
            panel.close()

    # -- messaging ---------------------------------------------------------

    def _post(self, message: LayoutMessage) -> None:
        """Thread-safe: queue ``message`` and wake the main loop."""
        self._messages.put(message)
        self._wake()

    def _wake(self) -> None:
        callback = self.wake
        if callback is not None:
            callback()

    def drain_messages(self) -> int:
        """Apply queued worker results on the main loop; returns how many."""
        count = 0
        while True:
            try:
                message = self._messages.get_nowait()
            except queue.Empty:
                break
            count += 1
            self._apply(message)
        if count:
            self._validate_focus()
        return count

    def _apply(self, message: LayoutMessage) -> None:
        if isinstance(message, TerminalCreated):
            self._on_terminal_created(message)
        elif isinstance(message, SessionEnded):
            self._on_session_ended(message)
        elif isinstance(message, QuitInspected):
            self._on_quit_inspected(message.work)
        elif isinstance(message, StatusMessage):
            self.nav_bar.set_status(message.text, message.error)
        elif isinstance(message, TreeChanged):
            self.file_tree.refresh()
        elif isinstance(message, GitStatusUpdated):
            self.source_control.update(list(message.entries), message.error)
        elif isinstance(message, Redraw):
            pass

    def _status(self, text: str, error: bool = False) -> None:
        self.nav_bar.set_status(text, error)

    # -- terminal slots ------------------------------------------------------

    def terminal(self, index: int) -> TerminalPanel | None:
        with self.slots_lock.read():
            return self._slots[index].panel

    def has_session(self, index: int) -> bool:
        return self.terminal(index) is not None

    def is_initialized(self, index: int) -> bool:
        with self.slots_lock.read():
            return self._slots[index].initialized

    def slot_command(self, index: int) -> str:
        with self.slots_lock.read():
            return self._slots[index].command

    def _panels(self) -> list[tuple[int, TerminalPanel]]:
        with self.slots_lock.read():
            return [(i, slot.panel) for i, slot in enumerate(self._slots) if slot.panel is not None]

    def focused_terminal(self) -> TerminalPanel | None:
        index = FocusSlot(self.focus).terminal_index
        return self.terminal(index) if index is not None else None

    def _title(self, index: int, command: str) -> str:
        tool = tool_for_command(command)
        if tool is not None:
            return tool.name
        return f"Terminal {index + 1}"

    def create_terminal_for_slot(
        self,
        n: int,
        command: str = "",
        pending_input: str = "",
        focus: bool = True,
    ) -> None:
        """Start a session for slot ``n`` (1-based) on a worker thread."""
        index = n - 1
        slot_focus = FocusSlot.for_terminal(index)
        command = command or self.shell
        self.visibility.terminals[index] = True
        # Size against the layout the slot will have once it holds focus.
        regions = compute_geometry(
            self.width,
            self.height,
            self.visibility,
            slot_focus if focus else self.focus,
            self.config.layout,
        )
        region = regions.terminals[index]
        cols, rows = content_size(region)
        with self.slots_lock.write():
            slot = self._slots[index]
            slot.generation += 1
            generation = slot.generation
            slot.pending = True
            slot.command = command
            slot.focus_on_ready = focus
            slot.pending_input = pending_input
        logger.info(f"[layout] Creating terminal {n}: {command[:60]} ({cols}x{rows})")
        self._relayout()
        self._runner(lambda: self._spawn(index, generation, command, region, cols, rows))

    def _spawn(self, index: int, generation: int, command: str, region: Region, cols: int, rows: int) -> None:
        """Worker thread: start the session, then publish it."""
        try:
            session = self._session_factory(command, cols, rows, self.root)
            panel = TerminalPanel(
                session,
                region,
                title=self._title(index, command),
                default_background=parse_background(self.config.terminal.default_background),
                scroll_wheel_lines=self.config.terminal.scroll_wheel_lines,
                spinner_interval_s=self.config.terminal.spinner_interval_ms / 1000.0,
            )
            panel.auto_respawn = self.config.terminal.auto_respawn and tool_for_command(command) is not None
            self._wire(index, panel, session)
            panel.start()
        except SpawnError as exc:
            logger.exception(f"[layout] Terminal {index + 1} failed to start")
            with self.slots_lock.write():
                slot = self._slots[index]
                if slot.generation == generation:
                    slot.pending = False
            self._post(TerminalCreated(index, None, command, str(exc)))
            return

        with self.slots_lock.write():
            slot = self._slots[index]
            published = slot.panel is None and slot.generation == generation
            if published:
                slot.panel = panel
                slot.initialized = True
                slot.pending = False
        if not published:
            logger.info(f"[layout] Terminal {index + 1} already taken, closing duplicate")
            panel.close()
            return
        self._post(TerminalCreated(index, panel, command))

    def _wire(self, index: int, panel: TerminalPanel, session: TerminalSession) -> None:
        panel.on_redraw = self._wake
        session.on_output = self._wake
        session.on_exit = lambda ended: self._post(SessionEnded(index, panel, ended))

    def _on_terminal_created(self, message: TerminalCreated) -> None:
        index = message.slot
        if message.panel is None:
            self._status(f"Failed to start {message.command}: {message.error}", error=True)
            if not self.has_session(index):
                self.visibility.terminals[index] = False
            self._relayout()
            return
        with self.slots_lock.write():
            slot = self._slots[index]
            if slot.panel is not message.panel:
                return
            focus = slot.focus_on_ready
            pending_input = slot.pending_input
            slot.focus_on_ready = False
            slot.pending_input = ""
        if focus and self.visibility.terminals[index]:
            self.set_focus(FocusSlot.for_terminal(index))
        else:
            self._relayout()
        if pending_input:
            message.panel.write(pending_input + "\n")
        if not message.panel.session.is_running:
            # The exit may have been drained before the slot was published.
            self._on_session_ended(SessionEnded(index, message.panel, message.panel.session))

    def preload_terminal(self, command: str) -> None:
        """Start slot 1 without moving focus."""
        self.create_terminal_for_slot(1, command, focus=False)

    def ensure_preloaded(self, command: str) -> None:
        """Keep a matching slot 1 session, replace a mismatched one."""
        with self.slots_lock.read():
            slot = self._slots[0]
            matches = slot.command == command and (slot.panel is not None or slot.pending)
        if matches:
            self.visibility.terminals[0] = True
            self._relayout()
            return
        self.close_terminal(0, hide=False)
        self.preload_terminal(command)

    def close_terminal(self, index: int, hide: bool = True) -> None:
        with self.slots_lock.write():
            slot = self._slots[index]
            panel = slot.panel
            slot.panel = None
            slot.initialized = False
            slot.pending = False
            slot.generation += 1
        if panel is not None:
            panel.close()
            logger.info(f"[layout] Closed terminal {index + 1}")
        if hide:
            self.visibility.terminals[index] = False
        self._validate_focus()
        self._relayout()

    def _on_session_ended(self, message: SessionEnded) -> None:
        index = message.slot
        panel = message.panel
        if self.terminal(index) is not panel or panel.session is not message.session:
            return
        if panel.auto_respawn:
            try:
                self._respawn(index, panel)
                return
            except SpawnError:
                logger.exception(f"[layout] Respawn of terminal {index + 1} failed")
        logger.info(f"[layout] Session in terminal {index + 1} ended")
        self.close_terminal(index)

    def _respawn(self, index: int, panel: TerminalPanel) -> None:
        """Replace a finished assistant with a shell, dropping its history."""
        cols, rows = content_size(panel.region)
        session = self._session_factory(self.shell, cols, rows, self.root)
        self._wire(index, panel, session)
        panel.auto_respawn = False
        panel.title = self._title(index, self.shell)
        panel.replace_session(session)
        with self.slots_lock.write():
            self._slots[index].command = self.shell
        logger.info(f"[layout] Terminal {index + 1} respawned as {self.shell}")

    # -- geometry and focus ----------------------------------------------------

    def resize(self, width: int, height: int) -> None:
        self.width = max(0, width)
        self.height = max(0, height)
        self._relayout()

    def _relayout(self) -> None:
        self.regions = compute_geometry(self.width, self.height, self.visibility, self.focus, self.config.layout)
        regions = self.regions
        self.nav_bar.region = Region(0, 0, self.width, min(1, self.height))
        self.file_tree.region = regions.left
        self.source_control.region = regions.left
        editor = regions.editor
        if editor.is_empty:
            self.tabs.region = Region()
            self.host.set_region(Region())
        else:
            self.tabs.region = Region(editor.x + 1, editor.y + 1, max(0, editor.width - 2), 1)
            self.host.set_region(
                Region(editor.x + 1, editor.y + 3, max(0, editor.width - 2), max(0, editor.height - 4))
            )
        for index, panel in self._panels():
            if self.visibility.terminals[index]:
                panel.resize(regions.terminals[index])

    def _eligible(self, slot: int) -> bool:
        return is_eligible(slot, self.visibility, self.has_session)

    def _validate_focus(self) -> None:
        if not self._eligible(self.focus):
            self._reassign_focus()

    def _reassign_focus(self) -> None:
        target = next_focus(self.focus, self.visibility, self.has_session)
        self._apply_focus(FocusSlot(target))

    def set_focus(self, slot: FocusSlot) -> bool:
        if not self._eligible(slot):
            return False
        self._apply_focus(FocusSlot(slot))
        return True

    def _apply_focus(self, slot: FocusSlot) -> None:
        previous = self.focus
        self.focus = slot
        focused_index = slot.terminal_index
        for index, panel in self._panels():
            panel.focus = index == focused_index
        self.tabs.focused = slot == FocusSlot.EDITOR
        if slot == FocusSlot.EDITOR and previous != FocusSlot.EDITOR:
            self.tabs.pin_tab()
        if previous != slot:
            logger.debug(f"[layout] Focus {previous.name} -> {slot.name}")
        self._relayout()

    def cycle_focus(self) -> None:
        self._apply_focus(FocusSlot(next_focus(self.focus, self.visibility, self.has_session)))

    # -- visibility --------------------------------------------------------

    def toggle_pane(self, key: str) -> None:
        if key == shortcuts.PANE_TREE:
            self.toggle_tree()
        elif key == shortcuts.PANE_SOURCE_CONTROL:
            self.toggle_source_control()
        elif key == shortcuts.PANE_EDITOR:
            self.toggle_editor()
        elif key == shortcuts.PANE_TERMINAL_1:
            self.toggle_terminal(1)
        elif key == shortcuts.PANE_TERMINAL_2:
            self.toggle_terminal(2)
        elif key == shortcuts.PANE_TERMINAL_3:
            self.toggle_terminal(3)

    def toggle_tree(self) -> None:
        if not self.visibility.tree:
            self.visibility.tree = True
            self._hide_source_control()
            self.tree_watcher.resume()
            self.file_tree.refresh()
            self._apply_focus(FocusSlot.LEFT)
            return
        self.visibility.tree = False
        self._after_hide(FocusSlot.LEFT)

    def toggle_source_control(self) -> None:
        if not self.visibility.source_control:
            self.visibility.source_control = True
            self.visibility.tree = False
            self.git_poller.start()
            self.git_poller.resume()
            self._apply_focus(FocusSlot.LEFT)
            return
        self._hide_source_control()
        self._after_hide(FocusSlot.LEFT)

    def _hide_source_control(self) -> None:
        self.visibility.source_control = False
        self.git_poller.suspend()

    def toggle_editor(self) -> None:
        self.visibility.editor = not self.visibility.editor
        if self.visibility.editor:
            self._relayout()
        else:
            self._after_hide(FocusSlot.EDITOR)

    def toggle_terminal(self, n: int) -> None:
        index = n - 1
        slot_focus = FocusSlot.for_terminal(index)
        if not self.visibility.terminals[index]:
            self.visibility.terminals[index] = True
            with self.slots_lock.read():
                slot = self._slots[index]
                initialized = slot.initialized and slot.panel is not None
                pending = slot.pending
            if initialized:
                self._apply_focus(slot_focus)
            elif pending:
                self._relayout()
            elif n == 1 and self.preselected_command:
                self.create_terminal_for_slot(n, self.preselected_command)
            else:
                self._relayout()
                self._show_tool_selector(n)
            return
        if self.focus == slot_focus or not self._eligible(slot_focus):
            self.visibility.terminals[index] = False
            if self.tool_selector.active and self.tool_selector.slot == n:
                self.tool_selector.hide()
            self._after_hide(slot_focus)
        else:
            self._apply_focus(slot_focus)

    def _after_hide(self, slot: FocusSlot) -> None:
        if self.focus == slot:
            self._reassign_focus()
        else:
            self._relayout()

    def _terminal_area(self) -> Region:
        visible = [r for i, r in enumerate(self.regions.terminals) if self.visibility.terminals[i] and not r.is_empty]
        if not visible:
            return Region()
        return Region(visible[0].x, visible[0].y, visible[-1].right - visible[0].x, visible[0].height)

    def _show_tool_selector(self, n: int) -> None:
        def chosen(tool: AssistantTool, install: bool) -> None:
            if install:
                self.create_terminal_for_slot(n, self.shell, pending_input=tool.install_command)
            else:
                self.create_terminal_for_slot(n, tool.command_line().strip() or self.shell)

        self.tool_selector.show(n, self.width, self.height, chosen, area=self._terminal_area())

    # -- tabs and files --------------------------------------------------------

    def _activate_tab(self, index: int) -> None:
        self.tabs.set_active(index)
        tab = self.tabs.active
        if tab is None:
            return
        self.host.switch_to(tab.buffer_id)
        if tab.path:
            self.file_tree.select_path(tab.path)
        self.tabs.ensure_active_visible()

    def preview_file(self, path: str) -> None:
        """Show ``path`` in the preview tab without moving focus."""
        if os.path.isdir(path):
            return
        existing = self.tabs.find_tab_by_path(path)
        if existing >= 0:
            self._activate_tab(existing)
            return
        try:
            buffer_id = self.host.open_file(path, preview=True)
        except OSError as exc:
            self._status(f"Cannot open {os.path.basename(path)}: {exc}", error=True)
            return
        index, replaced = self.tabs.add_preview_tab(buffer_id, path)
        if replaced is not None and replaced != buffer_id:
            self.host.close_buffer(replaced)
        self._activate_tab(index)

    def open_file(self, path: str) -> None:
        """Open ``path`` in a pinned tab and focus the editor."""
        if os.path.isdir(path):
            return
        try:
            buffer_id = self.host.open_file(path)
        except OSError as exc:
            self._status(f"Cannot open {os.path.basename(path)}: {exc}", error=True)
            return
        index = self.tabs.add_tab(buffer_id, path)
        self.tabs.pin_tab(index)
        self._activate_tab(index)
        if not self.visibility.editor:
            self.visibility.editor = True
        self._apply_focus(FocusSlot.EDITOR)

    def next_tab(self) -> None:
        if self.tabs.next_tab():
            self._activate_tab(self.tabs.active_index)

    def prev_tab(self) -> None:
        if self.tabs.prev_tab():
            self._activate_tab(self.tabs.active_index)

    def close_tab(self, index: int | None = None) -> None:
        index = self.tabs.active_index if index is None else index
        if not self.tabs.can_close(index):
            return
        tab = self.tabs.tabs[index]
        if self.host.is_modified(tab.buffer_id):

            def answered(yes: bool, canceled: bool) -> None:
                if yes and not canceled:
                    self._do_close_tab(tab.buffer_id)

            self.yes_no.show(
                "Unsaved Changes",
                f"Discard changes to {tab.name}?",
                "(y)es  (n)o  (esc)ape",
                self.width,
                self.height,
                answered,
            )
            return
        self._do_close_tab(tab.buffer_id)

    def _do_close_tab(self, buffer_id: str) -> None:
        index = self.tabs.find_tab_by_buffer(buffer_id)
        if index < 0:
            return
        self.tabs.close_tab(index)
        self.host.close_buffer(buffer_id)
        if not self.tabs.tabs:
            new_id = self.host.new_buffer()
            self.tabs.add_tab(new_id)
        self._activate_tab(self.tabs.active_index)

    def save(self) -> None:
        tab = self.tabs.active
        if tab is None:
            return
        if not self.host.buffer_path(tab.buffer_id):

            def named(value: str, canceled: bool) -> None:
                if canceled or not value.strip():
                    return
                target = os.path.join(self.root, os.path.expanduser(value.strip()))
                try:
                    path = self.host.save_as(tab.buffer_id, target)
                except OSError as exc:
                    self._status(f"Save failed: {exc}", error=True)
                    return
                index = self.tabs.find_tab_by_buffer(tab.buffer_id)
                self.tabs.retitle(index, path)
                self.file_tree.refresh()
                self._status(f"Saved {os.path.basename(path)}")

            self.input.show("Save File", "Enter filename:", "", self.width, self.height, named)
            return
        try:
            self.host.save(tab.buffer_id)
        except OSError as exc:
            self._status(f"Save failed: {exc}", error=True)
            return
        self._status(f"Saved {tab.name}")

    def new_file(self) -> None:
        def named(value: str, canceled: bool) -> None:
            if canceled or not value.strip():
                return
            try:
                path = self.file_tree.create_file(value)
            except (OSError, ValueError) as exc:
                self._status(f"Create failed: {exc}", error=True)
                return
            self.open_file(path)

        self.input.show("New File", "Enter file name:", "", self.width, self.height, named)

    def new_folder(self) -> None:
        def named(value: str, canceled: bool) -> None:
            if canceled or not value.strip():
                return
            try:
                path = self.file_tree.create_folder(value)
            except (OSError, ValueError) as exc:
                self._status(f"Create failed: {exc}", error=True)
                return
            self._status(f"Created {os.path.basename(path)}")

        self.input.show("New Folder", "Enter folder name:", "", self.width, self.height, named)

    def rename_selected(self) -> None:
        node = self.file_tree.selected_node
        if node is None:
            return

        def named(value: str, canceled: bool) -> None:
            if canceled or not value.strip() or value.strip() == node.name:
                return
            try:
                old, new = self.file_tree.rename_selected(value)
            except (OSError, ValueError) as exc:
                self._status(f"Rename failed: {exc}", error=True)
                return
            self.host.rename_path(old, new)
            self.tabs.rename_path(old, new)
            self._status(f"Renamed to {os.path.basename(new)}")

        self.input.show("Rename", "Enter new name:", node.name, self.width, self.height, named)

    def delete_selected(self) -> None:
        node = self.file_tree.selected_node
        if node is None:
            return

        def confirmed(ok: bool) -> None:
            if not ok:
                return
            try:
                path = self.file_tree.delete_selected()
            except OSError as exc:
                self._status(f"Delete failed: {exc}", error=True)
                return
            self._close_tabs_under(path)
            self._status(f"Deleted {os.path.basename(path)}")

        kind = "folder" if node.is_dir else "file"
        self.confirm.show(
            "Delete?",
            f"Delete {kind} {node.name}?",
            "This cannot be undone!",
            self.width,
            self.height,
            confirmed,
        )

    def _close_tabs_under(self, path: str) -> None:
        prefix = path.rstrip(os.sep) + os.sep
        doomed = [tab.buffer_id for tab in self.tabs.tabs if tab.path == path or tab.path.startswith(prefix)]
        for buffer_id in doomed:
            self._do_close_tab(buffer_id)

    def open_quick_find(self) -> None:
        self.quick_find.show(self.root, self.width, self.height, self.open_file)

    def open_project_picker(self) -> None:
        self.project_picker.show(self.root, self.width, self.height, self.set_project_root)

    def set_project_root(self, path: str) -> None:
        self.root = os.path.abspath(path)
        self.file_tree.set_root(self.root)
        self.source_control.repo = self.root
        self.source_control.update([], "")
        self.git_poller.reset(self.root)
        self._status(f"Project: {self.root}")

    def show_help(self) -> None:
        self.shortcuts_help.show(self.width, self.height)

    # -- quit ----------------------------------------------------------------

    def request_quit(self) -> None:
        """Inspect unsaved work on a worker thread before quitting."""
        if self._quitting:
            return
        self._quitting = True
        self.loading.show("Quitting...")
        logger.info("[quit] Inspecting work in progress")
        self._runner(self._inspect_work)

    def _inspect_work(self) -> None:
        modified: list[str] = []
        sessions: list[str] = []
        incomplete = False
        try:
            modified = [self.host.buffer_name(buffer_id) for buffer_id in self.host.modified_buffers()]
            for index, panel in self._panels():
                try:
                    name = self.is_at_risk_session(panel.session)
                except OSError as exc:
                    logger.debug(f"[quit] Foreground lookup failed: {exc}")
                    continue
                except Exception:
                    # Treated as not at risk so quitting stays possible.
                    logger.exception(f"[quit] At-risk check failed for terminal {index + 1}")
                    continue
                if name:
                    sessions.append(name)
        except Exception:
            logger.exception("[quit] Inspecting work in progress failed")
            incomplete = True
        self._post(QuitInspected(WorkInProgress(modified, sessions, incomplete)))

    def _on_quit_inspected(self, work: WorkInProgress) -> None:
        self._quitting = False
        self.loading.hide()
        if not work.at_risk:
            logger.info("[quit] Nothing at risk, quitting")
            self.should_quit = True
            return

        def confirmed(ok: bool) -> None:
            if ok:
                logger.info("[quit] Quit confirmed")
                self.should_quit = True

        self.confirm.show(
            "Exit?",
            work.describe(),
            "All changes will be lost!",
            self.width,
            self.height,
            confirmed,
        )

    # -- idle ----------------------------------------------------------------

    def _on_idle(self) -> None:
        self.git_poller.suspend()
        self.tree_watcher.suspend()

    def _on_resume(self) -> None:
        if self.visibility.source_control:
            self.git_poller.resume()
        self.tree_watcher.resume()
        self._post(TreeChanged())

    # -- input routing ---------------------------------------------------------

    def handle_event(self, event: InputEvent) -> bool:
        """Route one event; False means the host editor should handle it."""
        self.idle.touch()
        if isinstance(event, ResizeEvent):
            self.resize(event.width, event.height)
            return True
        if self.loading.active:
            return True
        if self.modals.any_active():
            return self._handle_modal_event(event)
        if self._prefix_pending and isinstance(event, KeyEvent):
            self._prefix_pending = False
            self._run_prefix_command(event)
            return True
        if isinstance(event, RawEvent):
            target = shortcuts.RAW_TOGGLE_SEQUENCES.get(event.sequence)
            if target is not None:
                self.toggle_pane(target)
                return True
            return False
        if isinstance(event, KeyEvent) and event.char in shortcuts.MAC_OPTION_TOGGLES and not event.ctrl:
            self.toggle_pane(shortcuts.MAC_OPTION_TOGGLES[event.char])
            return True

        panel = self.focused_terminal()
        if panel is not None and self._route_to_terminal(panel, event):
            return True

        if isinstance(event, MouseEvent):
            return self._handle_mouse(event)
        if isinstance(event, PasteEvent):
            return self._focused_pane_event(event)
        if not isinstance(event, KeyEvent):
            return False
        if self._handle_global(event):
            return True
        if self._handle_focus_switch(event):
            return True
        return self._focused_pane_event(event)

    def _handle_modal_event(self, event: InputEvent) -> bool:
        modal = self.modals.active()
        if isinstance(event, PasteEvent) and modal is not None and hasattr(modal, "insert"):
            modal.insert(event.text)
            return True
        return self.modals.handle_event(event)

    def _route_to_terminal(self, panel: TerminalPanel, event: InputEvent) -> bool:
        if panel.passthrough:
            return self._route_passthrough(panel, event)
        if isinstance(event, KeyEvent):
            if shortcuts.is_terminal_global(event):
                return False
            panel.handle_event(event)
            return True
        if isinstance(event, PasteEvent):
            panel.handle_event(event)
            return True
        if isinstance(event, MouseEvent) and event.is_wheel and panel.region.contains(event.x, event.y):
            panel.handle_event(event)
            return True
        return False

    def _route_passthrough(self, panel: TerminalPanel, event: InputEvent) -> bool:
        if isinstance(event, KeyEvent) and event.combo == shortcuts.COMMAND_PREFIX:
            now = self._clock()
            last = self._last_prefix_at
            timeout = self.config.terminal.passthrough_timeout_ms / 1000.0
            if last is not None and now - last < timeout:
                self._last_prefix_at = None
                panel.passthrough = False
                logger.info("[terminal] Passthrough off")
                return True
            # A lone Ctrl+\ still reaches the program (SIGQUIT).
            self._last_prefix_at = now
            panel.handle_event(event)
            return True
        if isinstance(event, (KeyEvent, PasteEvent)):
            panel.handle_event(event)
            return True
        if isinstance(event, MouseEvent) and event.is_wheel:
            panel.handle_event(event)
            return True
        return False

    def toggle_passthrough(self) -> None:
        panel = self.focused_terminal()
        if panel is None:
            return
        panel.passthrough = not panel.passthrough
        self._last_prefix_at = None
        logger.info(f"[terminal] Passthrough {'on' if panel.passthrough else 'off'}")

    def _run_prefix_command(self, event: KeyEvent) -> None:
        command = shortcuts.PREFIX_COMMANDS.get(event.combo)
        if command is None:
            return
        focus = self.focus
        if command == "quit":
            self.request_quit()
        elif command == "cycle_focus":
            self.cycle_focus()
        elif command == "passthrough":
            self.toggle_passthrough()
        elif command == "close_tab":
            if focus == FocusSlot.EDITOR:
                self.close_tab()
        elif command == "save":
            if focus == FocusSlot.EDITOR:
                self.save()
        elif focus == FocusSlot.LEFT and self.visibility.tree:
            if command == "new_file":
                self.new_file()
            elif command == "new_folder":
                self.new_folder()
            elif command == "delete":
                self.delete_selected()
            elif command == "rename":
                self.rename_selected()

    def _handle_global(self, event: KeyEvent) -> bool:
        combo = event.combo
        target = shortcuts.toggle_target(event)
        if target is not None:
            self.toggle_pane(target)
        elif combo == shortcuts.QUIT:
            self.request_quit()
        elif combo == shortcuts.COMMAND_PREFIX:
            self._prefix_pending = True
        elif combo == shortcuts.SAVE:
            self.save()
        elif combo == shortcuts.QUICK_FIND:
            self.open_quick_find()
        elif combo == shortcuts.PROJECT_PICKER:
            self.open_project_picker()
        elif combo == shortcuts.NEW_FILE:
            self.new_file()
        elif combo == shortcuts.NEW_FOLDER:
            self.new_folder()
        elif combo == shortcuts.DELETE:
            self.delete_selected()
        elif combo == shortcuts.RENAME:
            self.rename_selected()
        elif combo in shortcuts.NEXT_TAB:
            self.next_tab()
        elif combo in shortcuts.PREV_TAB:
            self.prev_tab()
        elif combo == shortcuts.CLOSE_TAB:
            self.close_tab()
        elif combo == shortcuts.NEW_TERMINAL:
            self._open_next_terminal()
        elif combo in shortcuts.SHORTCUTS_HELP or (event.char == "?" and self.focus != FocusSlot.EDITOR):
            self.show_help()
        else:
            return False
        return True

    def _open_next_terminal(self) -> None:
        for index, visible in enumerate(self.visibility.terminals):
            if not visible:
                self.toggle_terminal(index + 1)
                return

    def _handle_focus_switch(self, event: KeyEvent) -> bool:
        combo = event.combo
        if combo == "tab" and self.focus == FocusSlot.LEFT and self.visibility.editor:
            self._apply_focus(FocusSlot.EDITOR)
            return True
        if combo == "shift+tab" and self.focus == FocusSlot.EDITOR and self.visibility.left:
            self._apply_focus(FocusSlot.LEFT)
            return True
        if combo == shortcuts.CYCLE_FOCUS:
            self.cycle_focus()
            return True
        return False

    def _focused_pane_event(self, event: InputEvent) -> bool:
        if self.focus == FocusSlot.LEFT:
            if self.visibility.source_control:
                return self.source_control.handle_event(event)
            return self.file_tree.handle_event(event)
        if self.focus == FocusSlot.EDITOR:
            return False
        panel = self.focused_terminal()
        return panel.handle_event(event) if panel is not None else False

    def _handle_mouse(self, event: MouseEvent) -> bool:
        if event.button == "left":
            if self.nav_bar.contains(event.x, event.y):
                key = self.nav_bar.clicked_pane(event.x, event.y)
                if key is not None:
                    self.toggle_pane(key)
                return True
            if self.visibility.editor and self.tabs.contains(event.x, event.y):
                self._click_tabs(event)
                return True
        slot = self._slot_at(event.x, event.y)
        if slot is None:
            return False
        if event.button == "left" and slot != self.focus:
            self.set_focus(slot)
        if slot == FocusSlot.LEFT:
            if self.visibility.source_control:
                return self.source_control.handle_event(event)
            return self.file_tree.handle_event(event)
        if slot == FocusSlot.EDITOR:
            return False
        panel = self.terminal(slot.terminal_index)
        return panel.handle_event(event) if panel is not None else True

    def _click_tabs(self, event: MouseEvent) -> None:
        hit = self.tabs.hit_test(event.x, event.y)
        if hit is None:
            return
        if hit.kind == "scroll_left":
            self.tabs.scroll_left()
        elif hit.kind == "scroll_right":
            self.tabs.scroll_right()
        elif hit.kind == "close":
            self.close_tab(hit.index)
        elif hit.kind == "tab":
            self._activate_tab(hit.index)
            if self.focus != FocusSlot.EDITOR:
                self._apply_focus(FocusSlot.EDITOR)

    def _slot_at(self, x: int, y: int) -> FocusSlot | None:
        for slot in FocusSlot:
            if self.regions.slot_region(slot).contains(x, y):
                return slot
        return None

    # -- rendering -----------------------------------------------------------

    def render_frame(self, canvas: Canvas) -> None:
        """Draw pane contents; borders and modals come from :meth:`render_overlay`."""
        self._validate_focus()
        self.tabs.sync_modified(self.host.is_modified)
        self.nav_bar.render(canvas, self.visibility)
        regions = self.regions
        if self.visibility.source_control:
            self.source_control.render(canvas, self.focus == FocusSlot.LEFT)
        elif self.visibility.tree:
            self.file_tree.render(canvas, self.focus == FocusSlot.LEFT)
        if self.visibility.editor:
            self.host.render(canvas, self.focus == FocusSlot.EDITOR)
        panels = dict(self._panels())
        for index, region in enumerate(regions.terminals):
            if not self.visibility.terminals[index] or region.is_empty:
                continue
            panel = panels.get(index)
            if panel is not None:
                panel.render(canvas)
            else:
                self._render_pending_terminal(canvas, index, region)
        if regions.placeholder is not None:
            self._render_placeholder(canvas, regions)

    def _render_pending_terminal(self, canvas: Canvas, index: int, region: Region) -> None:
        canvas.fill(region.x, region.y, region.width, region.height)
        with self.slots_lock.read():
            pending = self._slots[index].pending
        if pending:
            interval_s = self.config.terminal.spinner_interval_ms / 1000.0
            text = spinner_frame(interval_s=interval_s) + " Starting..."
            draw_centered(canvas, region.x, region.width, region.y + region.height // 2, text, PENDING_STYLE)

    def _render_placeholder(self, canvas: Canvas, regions: RegionSet) -> None:
        area = regions.placeholder
        canvas.fill(area.x, area.y, area.width, area.height)
        boxes = placeholder_boxes(area, self.config.layout.placeholder_width)
        labels = (("Editor", "Alt+2 to show"), ("Terminal", "Alt+3 to show"))
        for box, (title, hint) in zip(boxes, labels):
            if box.width < 2:
                continue
            draw_box(canvas, box.x, box.y, box.width, box.height, PLACEHOLDER_STYLE)
            draw_centered(canvas, box.x, box.width, box.y + 1, title, PLACEHOLDER_STYLE)
            draw_centered(canvas, box.x, box.width, box.y + 3, hint, PLACEHOLDER_KEY_STYLE)

    def render_overlay(self, canvas: Canvas) -> None:
        """Borders, the tab strip, overlays and modals on top of the frame."""
        editor = self.regions.editor
        if self.visibility.editor and not editor.is_empty:
            focused = self.focus == FocusSlot.EDITOR
            style = EDITOR_BORDER_FOCUSED if focused else EDITOR_BORDER_UNFOCUSED
            draw_box(canvas, editor.x, editor.y, editor.width, editor.height, style, double=focused)
            self.tabs.render(canvas)
        for index, panel in self._panels():
            if self.visibility.terminals[index]:
                panel.render_border(canvas)
        for index, region in enumerate(self.regions.terminals):
            if self.visibility.terminals[index] and not self.has_session(index) and not region.is_empty:
                draw_box(canvas, region.x, region.y, region.width, region.height, EDITOR_BORDER_UNFOCUSED)
        if self._prefix_pending:
            self._render_quick_command_hints(canvas)
        elif self.is_passthrough_active():
            self._render_passthrough_hint(canvas)
        self.loading.render(canvas)
        self.modals.render(canvas)

    def _render_quick_command_hints(self, canvas: Canvas) -> None:
        y = canvas.height - 1
        if y < 0:
            return
        canvas.fill(0, y, canvas.width, 1, " ", HINT_BAR_STYLE)
        x = canvas.draw_text(1, y, "Ctrl+\\ then:", HINT_BAR_STYLE)
        for key, label in QUICK_COMMAND_HINTS:
            x = canvas.draw_text(x + 2, y, key, HINT_KEY_STYLE)
            x = canvas.draw_text(x + 1, y, label, HINT_BAR_STYLE)

    def is_passthrough_active(self) -> bool:
        panel = self.focused_terminal()
        return panel is not None and panel.passthrough

    def _render_passthrough_hint(self, canvas: Canvas) -> None:
        y = canvas.height - 1
        if y < 0:
            return
        canvas.fill(0, y, canvas.width, 1, " ", PASSTHROUGH_HINT_STYLE)
        canvas.draw_text(0, y, PASSTHROUGH_HINT, PASSTHROUGH_HINT_STYLE)

    def render(self, canvas: Canvas) -> None:
        canvas.clear()
        self.render_frame(canvas)
        self.render_overlay(canvas)
