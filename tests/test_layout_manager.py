"""Tests for paneweave.layout.coordinator.LayoutManager."""

import random

import pytest

from conftest import ManualRunner, wait_for
from paneweave.config.schema import Config, LayoutConfig, TerminalConfig
from paneweave.events import KeyEvent, MouseEvent, PasteEvent, RawEvent
from paneweave.layout.coordinator import run_in_thread
from paneweave.layout.geometry import is_eligible
from paneweave.layout.messages import SessionEnded
from paneweave.layout.region import FocusSlot


class FakeClock:
    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now


def press(manager, combo, char=None):
    """Deliver a key the way the app does, falling back to the editor."""
    event = KeyEvent.parse(combo, char=char)
    if not manager.handle_event(event):
        manager.host.handle_event(event)


def paste(manager, text):
    event = PasteEvent(text)
    if not manager.handle_event(event):
        manager.host.handle_event(event)


def open_terminal(manager, command="/bin/sh", n=1):
    manager.create_terminal_for_slot(n, command)
    manager.drain_messages()
    return manager.terminal(n - 1)


def backend_of(panel):
    return panel.session.backend


class TestToggleTerminal:
    def test_empty_slot_shows_tool_selector(self, manager):
        manager.toggle_terminal(1)
        assert manager.tool_selector.active
        assert manager.tool_selector.slot == 1
        assert manager.visibility.terminals[0]
        assert not manager.has_session(0)
        assert manager.focus == FocusSlot.EDITOR

    def test_selecting_a_tool_starts_it_and_focuses(self, manager, sessions):
        manager.toggle_terminal(1)
        press(manager, "down")
        press(manager, "enter")
        assert not manager.tool_selector.active
        manager.drain_messages()
        panel = manager.terminal(0)
        assert panel is not None
        assert sessions.backends[0].command == "claude"
        assert panel.title == "Claude Code"
        assert manager.focus == FocusSlot.TERMINAL_1
        assert panel.focus

    def test_escape_starts_the_shell(self, manager, sessions):
        manager.toggle_terminal(1)
        press(manager, "escape")
        manager.drain_messages()
        assert sessions.backends[0].command == "/bin/sh"
        assert manager.terminal(0).title == "Terminal 1"

    def test_install_choice_types_install_command(self, manager, sessions):
        manager.toggle_terminal(1)
        press(manager, "down")
        press(manager, "down")
        press(manager, "enter")
        manager.drain_messages()
        backend = sessions.backends[0]
        assert backend.command == "/bin/sh"
        assert backend.typed == "npm install -g @google/gemini-cli\n"

    def test_hiding_focused_terminal_moves_focus_on(self, manager):
        open_terminal(manager)
        assert manager.focus == FocusSlot.TERMINAL_1
        manager.toggle_terminal(1)
        assert not manager.visibility.terminals[0]
        assert manager.focus == FocusSlot.LEFT
        # The session survives being hidden.
        assert manager.has_session(0)

    def test_toggle_focuses_visible_unfocused_terminal(self, manager):
        open_terminal(manager)
        manager.set_focus(FocusSlot.EDITOR)
        manager.toggle_terminal(1)
        assert manager.visibility.terminals[0]
        assert manager.focus == FocusSlot.TERMINAL_1

    def test_reshowing_initialized_terminal_keeps_session(self, manager, sessions):
        panel = open_terminal(manager)
        manager.toggle_terminal(1)
        manager.toggle_terminal(1)
        assert manager.terminal(0) is panel
        assert len(sessions.backends) == 1
        assert manager.focus == FocusSlot.TERMINAL_1
        assert not manager.tool_selector.active

    def test_toggle_hides_slot_waiting_on_selector(self, manager):
        manager.toggle_terminal(1)
        manager.toggle_terminal(1)
        assert not manager.visibility.terminals[0]
        assert not manager.tool_selector.active

    def test_preselected_tool_skips_selector(self, make_manager, sessions):
        manager = make_manager(preselected_tool="claude")
        manager.toggle_terminal(1)
        assert not manager.tool_selector.active
        manager.drain_messages()
        assert sessions.backends[0].command == "claude"

    def test_preselection_only_applies_to_first_slot(self, make_manager):
        manager = make_manager(preselected_tool="claude")
        manager.toggle_terminal(2)
        assert manager.tool_selector.active
        assert manager.tool_selector.slot == 2

    def test_spawn_failure_leaves_slot_empty(self, manager, sessions):
        sessions.fail = True
        manager.toggle_terminal(1)
        press(manager, "escape")
        manager.drain_messages()
        assert not manager.has_session(0)
        assert not manager.visibility.terminals[0]
        assert manager.focus == FocusSlot.EDITOR
        assert manager.nav_bar.status.startswith("Failed to start /bin/sh")

    def test_ctrl_t_opens_first_hidden_terminal(self, manager):
        open_terminal(manager)
        press(manager, "ctrl+t")
        assert manager.visibility.terminals[1]
        assert manager.tool_selector.slot == 2


class TestStart:
    def test_preselected_tool_is_preloaded_without_focus(self, make_manager, sessions):
        config = Config(
            layout=LayoutConfig(start_with_terminal=True),
            terminal=TerminalConfig(shell="/bin/sh"),
        )
        manager = make_manager(config=config, preselected_tool="claude")
        manager.start()
        manager.drain_messages()
        assert manager.slot_command(0) == "claude"
        assert manager.has_session(0)
        assert manager.focus == FocusSlot.EDITOR

    def test_without_preselection_asks_for_a_tool(self, make_manager):
        config = Config(
            layout=LayoutConfig(start_with_terminal=True),
            terminal=TerminalConfig(shell="/bin/sh"),
        )
        manager = make_manager(config=config)
        manager.start()
        assert manager.tool_selector.active
        assert manager.visibility.terminals[0]


class TestRaceSafety:
    @pytest.mark.parametrize("order", [(0, 1), (1, 0)])
    def test_only_latest_create_is_published(self, make_manager, sessions, order):
        runner = ManualRunner()
        manager = make_manager(runner=runner)
        manager.create_terminal_for_slot(1, "sh-one")
        manager.create_terminal_for_slot(1, "sh-two")
        jobs = runner.jobs
        for index in order:
            jobs[index]()
        manager.drain_messages()
        assert manager.terminal(0).session.command == "sh-two"
        by_command = {backend.command: backend for backend in sessions.backends}
        assert by_command["sh-one"].closed
        assert not by_command["sh-two"].closed

    def test_threaded_creates_keep_one_session(self, make_manager, sessions):
        manager = make_manager(runner=run_in_thread)
        manager.create_terminal_for_slot(1, "sh-one")
        manager.create_terminal_for_slot(1, "sh-two")
        assert wait_for(
            lambda: len(sessions.backends) == 2 and sum(not b.closed for b in sessions.backends) == 1
        )
        assert wait_for(lambda: manager.has_session(0))
        live = [b for b in sessions.backends if not b.closed]
        # Whichever worker published first keeps the slot.
        assert manager.terminal(0).session.backend is live[0]

    def test_close_while_pending_discards_newcomer(self, make_manager, sessions):
        runner = ManualRunner()
        manager = make_manager(runner=runner)
        manager.create_terminal_for_slot(1, "sh-one")
        manager.close_terminal(0)
        runner.run_all()
        manager.drain_messages()
        assert not manager.has_session(0)
        assert sessions.backends[0].closed

    def test_ensure_preloaded_keeps_matching_session(self, manager, sessions):
        manager.ensure_preloaded("claude")
        manager.drain_messages()
        manager.ensure_preloaded("claude")
        assert len(sessions.backends) == 1
        assert manager.has_session(0)

    def test_ensure_preloaded_replaces_mismatch(self, manager, sessions):
        manager.ensure_preloaded("claude")
        manager.drain_messages()
        manager.ensure_preloaded("gemini")
        manager.drain_messages()
        assert sessions.backends[0].closed
        assert manager.terminal(0).session.command == "gemini"


class TestSessionEnd:
    def test_shell_exit_closes_slot(self, manager, sessions):
        open_terminal(manager)
        sessions.backends[0].exit()
        assert wait_for(lambda: manager.drain_messages() > 0)
        assert not manager.has_session(0)
        assert not manager.visibility.terminals[0]
        assert manager.focus == FocusSlot.LEFT

    def test_assistant_exit_respawns_shell(self, manager, sessions):
        panel = open_terminal(manager, "claude")
        assert panel.auto_respawn
        sessions.backends[0].emit("".join(f"line {i}\n" for i in range(60)))
        assert wait_for(lambda: len(panel.session.scrollback) > 0)
        sessions.backends[0].exit()
        assert wait_for(lambda: manager.drain_messages() > 0)
        assert manager.terminal(0) is panel
        assert panel.session.command == "/bin/sh"
        assert len(panel.session.scrollback) == 0
        assert not panel.auto_respawn
        assert panel.title == "Terminal 1"
        assert manager.slot_command(0) == "/bin/sh"
        assert sessions.backends[-1].command == "/bin/sh"

    def test_stale_session_end_is_ignored(self, manager, sessions):
        first = open_terminal(manager)
        manager.close_terminal(0, hide=False)
        second = open_terminal(manager)
        manager._post(SessionEnded(0, first, first.session))
        manager.drain_messages()
        assert manager.terminal(0) is second

    def test_exit_drained_before_publish_still_closes_slot(self, manager, sessions):
        make_backend = sessions.backend_factory

        def exited_backend(*args, **kwargs):
            backend = make_backend(*args, **kwargs)
            backend.exit()
            return backend

        def drain_after_start(command, cols, rows, cwd):
            session = sessions(command, cols, rows, cwd)
            start = session.start

            def start_then_drain():
                start()
                # The main loop sees the exit while the slot is still unpublished.
                assert wait_for(lambda: manager.drain_messages() > 0)

            session.start = start_then_drain
            return session

        sessions.backend_factory = exited_backend
        manager._session_factory = drain_after_start
        manager.create_terminal_for_slot(1, "/bin/sh")
        manager.drain_messages()
        assert manager.terminal(0) is None
        assert not manager.is_initialized(0)
        assert not manager.visibility.terminals[0]
        assert manager.focus != FocusSlot.TERMINAL_1
        assert is_eligible(manager.focus, manager.visibility, manager.has_session)

    def test_exit_after_publish_respawns_once(self, make_manager, sessions):
        manager = make_manager(runner=ManualRunner())
        manager.create_terminal_for_slot(1, "claude")
        manager._runner.run_all()
        panel = manager.terminal(0)
        first = panel.session
        sessions.backends[0].exit()
        assert wait_for(lambda: not first.is_running)
        assert wait_for(lambda: manager._messages.qsize() >= 2)
        manager.drain_messages()
        assert manager.terminal(0) is panel
        assert panel.session.command == "/bin/sh"
        assert len(sessions.backends) == 2


class TestFocus:
    def test_exactly_one_pane_holds_focus(self, manager):
        open_terminal(manager)
        open_terminal(manager, n=2)
        focused = [i for i, panel in manager._panels() if panel.focus]
        assert focused == [1]
        assert not manager.tabs.focused
        manager.set_focus(FocusSlot.EDITOR)
        assert [i for i, panel in manager._panels() if panel.focus] == []
        assert manager.tabs.focused

    def test_cannot_focus_hidden_pane(self, manager):
        manager.toggle_editor()
        assert not manager.set_focus(FocusSlot.EDITOR)
        assert not manager.set_focus(FocusSlot.TERMINAL_2)

    def test_hiding_focused_editor_reassigns(self, manager):
        manager.toggle_editor()
        assert manager.focus == FocusSlot.LEFT

    def test_random_toggles_keep_focus_valid(self, manager):
        rng = random.Random(7)
        keys = ["1", "2", "3", "4", "5", "a"]
        for _ in range(60):
            manager.toggle_pane(rng.choice(keys))
            if manager.tool_selector.active:
                press(manager, "escape")
            manager.drain_messages()
            assert is_eligible(manager.focus, manager.visibility, manager.has_session)
            assert manager.regions.total_width == 120

    def test_tab_and_shift_tab_move_between_tree_and_editor(self, manager):
        manager.set_focus(FocusSlot.LEFT)
        press(manager, "tab")
        assert manager.focus == FocusSlot.EDITOR
        press(manager, "shift+tab")
        assert manager.focus == FocusSlot.LEFT

    def test_ctrl_space_cycles(self, manager):
        open_terminal(manager)
        manager.set_focus(FocusSlot.LEFT)
        seen = []
        for _ in range(3):
            press(manager, "ctrl+space")
            seen.append(manager.focus)
        assert seen == [FocusSlot.EDITOR, FocusSlot.TERMINAL_1, FocusSlot.LEFT]

    def test_focusing_editor_pins_preview_tab(self, manager):
        manager.set_focus(FocusSlot.LEFT)
        press(manager, "down")
        assert manager.tabs.active.preview
        manager.set_focus(FocusSlot.EDITOR)
        assert not manager.tabs.active.preview


class TestResize:
    def test_new_terminal_needs_no_resize(self, manager, sessions):
        open_terminal(manager)
        assert sessions.backends[0].resizes == []

    def test_same_size_is_idempotent(self, manager, sessions):
        open_terminal(manager)
        manager.resize(120, 40)
        manager.resize(120, 40)
        assert sessions.backends[0].resizes == []

    def test_new_size_resizes_once(self, manager, sessions):
        open_terminal(manager)
        manager.resize(100, 30)
        manager.resize(100, 30)
        assert len(sessions.backends[0].resizes) == 1


class TestRouting:
    def test_focused_terminal_receives_keys(self, manager):
        backend = backend_of(open_terminal(manager))
        press(manager, "l")
        press(manager, "s")
        press(manager, "enter")
        press(manager, "ctrl+c")
        assert backend.typed == "ls\r\x03"

    def test_allow_listed_keys_stay_global(self, manager):
        backend = backend_of(open_terminal(manager))
        press(manager, "ctrl+p")
        assert manager.quick_find.active
        assert backend.typed == ""

    def test_alt_toggle_from_terminal(self, manager):
        open_terminal(manager)
        press(manager, "alt+1")
        assert not manager.visibility.tree
        assert manager.focus == FocusSlot.TERMINAL_1

    def test_paste_goes_to_terminal(self, manager):
        backend = backend_of(open_terminal(manager))
        paste(manager, "echo hi")
        assert backend.typed == "echo hi"

    def test_raw_escape_toggle(self, manager):
        assert manager.handle_event(RawEvent("\x1b2"))
        assert not manager.visibility.editor

    def test_unknown_raw_sequence_is_not_consumed(self, manager):
        assert not manager.handle_event(RawEvent("\x1b[99~"))

    def test_mac_option_glyph_toggle(self, manager):
        press(manager, "¡")
        assert not manager.visibility.tree

    def test_wheel_scrolls_terminal_history(self, manager):
        panel = open_terminal(manager)
        backend_of(panel).emit("".join(f"line {i}\n" for i in range(100)))
        assert wait_for(lambda: "line 99" in panel.session.display_text())
        region = panel.region
        manager.handle_event(MouseEvent(region.x + 2, region.y + 2, "wheel_up"))
        assert panel.scroll_offset == 3
        manager.handle_event(MouseEvent(region.x + 2, region.y + 2, "wheel_down"))
        assert panel.scroll_offset == 0

    def test_passthrough_forwards_everything(self, make_manager):
        clock = FakeClock()
        manager = make_manager(clock=clock)
        panel = open_terminal(manager)
        backend = backend_of(panel)
        press(manager, "ctrl+\\")
        press(manager, "p")
        assert panel.passthrough
        press(manager, "ctrl+q")
        press(manager, "ctrl+p")
        assert backend.typed == "\x11\x10"
        assert not manager.loading.active
        assert not manager.quick_find.active

    def test_double_prefix_leaves_passthrough(self, make_manager):
        clock = FakeClock()
        manager = make_manager(clock=clock)
        panel = open_terminal(manager)
        backend = backend_of(panel)
        manager.toggle_passthrough()
        press(manager, "ctrl+\\")
        clock.now = 0.2
        press(manager, "ctrl+\\")
        assert not panel.passthrough
        assert backend.typed == "\x1c"

    def test_single_prefix_reaches_program_without_followup(self, make_manager):
        clock = FakeClock()
        manager = make_manager(clock=clock)
        panel = open_terminal(manager)
        backend = backend_of(panel)
        manager.toggle_passthrough()
        press(manager, "ctrl+\\")
        clock.now = 5.0
        assert backend.typed == "\x1c"
        assert panel.passthrough

    def test_late_second_prefix_is_forwarded(self, make_manager):
        clock = FakeClock()
        manager = make_manager(clock=clock)
        panel = open_terminal(manager)
        backend = backend_of(panel)
        manager.toggle_passthrough()
        clock.now = 10.0
        press(manager, "ctrl+\\")
        clock.now = 11.0
        press(manager, "ctrl+\\")
        assert panel.passthrough
        assert backend.typed == "\x1c\x1c"
        press(manager, "x")
        assert backend.typed == "\x1c\x1cx"

    def test_highest_priority_modal_gets_input(self, manager):
        answers = []
        manager.input.show("Name", "Enter:", "", 120, 40, lambda value, canceled: answers.append(value))
        manager.confirm.show("Sure?", "Really?", "", 120, 40, answers.append)
        press(manager, "y")
        assert answers == [True]
        assert manager.input.active
        assert manager.input.value == ""
        press(manager, "y")
        assert manager.input.value == "y"

    def test_modal_swallows_terminal_keys(self, manager):
        backend = backend_of(open_terminal(manager))
        manager.show_help()
        press(manager, "a")
        assert backend.typed == ""
        press(manager, "escape")
        assert not manager.shortcuts_help.active

    def test_editor_keys_fall_through_to_host(self, manager, host):
        assert not manager.handle_event(KeyEvent.parse("a"))
        press(manager, "b")
        assert host.buffer(host.current_buffer()).lines[0] == "b"

    def test_question_mark_opens_help_outside_editor(self, manager):
        press(manager, "?")
        assert not manager.shortcuts_help.active
        manager.set_focus(FocusSlot.LEFT)
        press(manager, "?")
        assert manager.shortcuts_help.active

    def test_nav_bar_click_toggles_pane(self, manager, canvas):
        manager.render(canvas)
        assert manager.handle_event(MouseEvent(8, 0))
        assert not manager.visibility.tree
        manager.render(canvas)
        manager.handle_event(MouseEvent(40, 0))
        assert manager.tool_selector.active

    def test_click_focuses_pane(self, manager):
        manager.handle_event(MouseEvent(5, 30))
        assert manager.focus == FocusSlot.LEFT

    def test_click_on_terminal_without_session_keeps_focus(self, manager):
        manager.toggle_terminal(1)
        manager.tool_selector.hide()
        region = manager.regions.terminals[0]
        manager.handle_event(MouseEvent(region.x + 3, region.y + 3))
        assert manager.focus == FocusSlot.EDITOR


def find_tab_hit(manager, kind, index):
    region = manager.tabs.region
    for x in range(region.x, region.right):
        hit = manager.tabs.hit_test(x, region.y)
        if hit is not None and hit.kind == kind and hit.index == index:
            return x, region.y
    raise AssertionError(f"no {kind} hit for tab {index}")


class TestTabs:
    def test_preview_is_replaced_and_its_buffer_closed(self, manager, host):
        manager.set_focus(FocusSlot.LEFT)
        press(manager, "down")
        readme = manager.tabs.active.buffer_id
        assert manager.tabs.active.name == "README.md"
        press(manager, "up")
        press(manager, "right")
        press(manager, "down")
        assert len(manager.tabs) == 2
        assert manager.tabs.active.name == "main.py"
        assert manager.tabs.active.preview
        assert readme not in host.buffer_ids()
        assert manager.focus == FocusSlot.LEFT

    def test_enter_opens_pinned_and_focuses_editor(self, manager):
        manager.set_focus(FocusSlot.LEFT)
        press(manager, "down")
        press(manager, "enter")
        assert manager.focus == FocusSlot.EDITOR
        assert not manager.tabs.active.preview

    def test_modified_tab_asks_before_closing(self, manager, project):
        manager.open_file(str(project / "README.md"))
        press(manager, "x")
        press(manager, "ctrl+w")
        assert manager.yes_no.active
        assert manager.yes_no.message == "Discard changes to README.md?"
        press(manager, "n")
        assert len(manager.tabs) == 2
        press(manager, "ctrl+w")
        press(manager, "y")
        assert [tab.name for tab in manager.tabs.tabs] == ["Untitled"]

    def test_closing_last_tab_leaves_untitled(self, manager, host, project):
        manager.open_file(str(project / "README.md"))
        manager.close_tab(0)
        manager.close_tab()
        assert len(manager.tabs) == 1
        assert manager.tabs.active.name == "Untitled"
        assert host.current_buffer() == manager.tabs.active.buffer_id

    def test_lone_untitled_tab_stays(self, manager):
        buffer_id = manager.tabs.active.buffer_id
        press(manager, "ctrl+w")
        assert len(manager.tabs) == 1
        assert manager.tabs.active.buffer_id == buffer_id

    def test_next_and_previous_tab_wrap(self, manager, host, project):
        manager.open_file(str(project / "README.md"))
        manager.open_file(str(project / "src" / "main.py"))
        assert manager.tabs.active_index == 2
        press(manager, "ctrl+]")
        assert manager.tabs.active_index == 0
        assert host.current_buffer() == manager.tabs.tabs[0].buffer_id
        press(manager, "ctrl+[")
        assert manager.tabs.active_index == 2

    def test_tab_click_activates_and_close_click_closes(self, manager, canvas, host, project):
        manager.open_file(str(project / "README.md"))
        manager.set_focus(FocusSlot.LEFT)
        manager.render(canvas)
        manager.handle_event(MouseEvent(*find_tab_hit(manager, "tab", 0)))
        assert manager.tabs.active_index == 0
        assert manager.focus == FocusSlot.EDITOR
        manager.render(canvas)
        manager.handle_event(MouseEvent(*find_tab_hit(manager, "close", 1)))
        assert [tab.name for tab in manager.tabs.tabs] == ["Untitled"]

    def test_deleting_folder_closes_its_tabs(self, manager, project):
        manager.open_file(str(project / "src" / "main.py"))
        manager.set_focus(FocusSlot.LEFT)
        assert manager.file_tree.select_path(str(project / "src"))
        press(manager, "ctrl+d")
        assert manager.confirm.active
        assert manager.confirm.message == "Delete folder src?"
        press(manager, "y")
        assert not (project / "src").exists()
        assert [tab.name for tab in manager.tabs.tabs] == ["Untitled"]


class TestSave:
    def test_untitled_buffer_prompts_for_name(self, manager, project):
        paste(manager, "hello")
        press(manager, "ctrl+s")
        assert manager.input.active
        assert manager.input.title == "Save File"
        paste(manager, "notes.txt")
        press(manager, "enter")
        assert (project / "notes.txt").read_text(encoding="utf-8") == "hello"
        assert manager.tabs.active.name == "notes.txt"
        assert manager.nav_bar.status == "Saved notes.txt"

    def test_existing_file_saves_in_place(self, manager, host, project):
        manager.open_file(str(project / "README.md"))
        press(manager, "x")
        press(manager, "ctrl+s")
        assert (project / "README.md").read_text(encoding="utf-8") == "x# demo\n"
        assert not host.is_modified(manager.tabs.active.buffer_id)
        assert manager.nav_bar.status == "Saved README.md"

    def test_prefix_save_needs_editor_focus(self, manager):
        paste(manager, "text")
        manager.set_focus(FocusSlot.LEFT)
        press(manager, "ctrl+\\")
        press(manager, "s")
        assert not manager.input.active
        manager.set_focus(FocusSlot.EDITOR)
        press(manager, "ctrl+\\")
        press(manager, "s")
        assert manager.input.active


class TestFileOps:
    def test_new_file_goes_into_selected_folder(self, manager, project):
        manager.set_focus(FocusSlot.LEFT)
        manager.file_tree.select_path(str(project / "src"))
        press(manager, "ctrl+n")
        assert manager.input.title == "New File"
        paste(manager, "extra.py")
        press(manager, "enter")
        assert (project / "src" / "extra.py").exists()
        assert manager.tabs.active.name == "extra.py"
        assert manager.focus == FocusSlot.EDITOR

    def test_prefix_file_commands_need_tree_focus(self, manager):
        press(manager, "ctrl+\\")
        press(manager, "n")
        assert not manager.input.active
        manager.set_focus(FocusSlot.LEFT)
        press(manager, "ctrl+\\")
        press(manager, "f")
        assert manager.input.title == "New Folder"

    def test_rename_follows_open_tab(self, manager, project):
        manager.open_file(str(project / "README.md"))
        manager.set_focus(FocusSlot.LEFT)
        press(manager, "ctrl+r")
        assert manager.input.value == "README.md"
        for _ in range(len("README.md")):
            press(manager, "backspace")
        paste(manager, "NOTES.md")
        press(manager, "enter")
        assert (project / "NOTES.md").exists()
        assert not (project / "README.md").exists()
        assert manager.tabs.active.name == "NOTES.md"

    def test_invalid_name_reports_failure(self, manager):
        manager.set_focus(FocusSlot.LEFT)
        press(manager, "ctrl+n")
        paste(manager, "a/b")
        press(manager, "enter")
        assert manager.nav_bar.status.startswith("Create failed")


class TestQuit:
    def test_quits_when_nothing_is_at_risk(self, manager):
        press(manager, "ctrl+q")
        manager.drain_messages()
        assert manager.should_quit

    def test_unsaved_files_need_confirmation(self, manager):
        press(manager, "x")
        press(manager, "ctrl+q")
        manager.drain_messages()
        assert manager.confirm.active
        assert manager.confirm.message == "1 file(s) with unsaved changes"
        press(manager, "n")
        assert not manager.should_quit
        press(manager, "ctrl+q")
        manager.drain_messages()
        press(manager, "y")
        assert manager.should_quit

    def test_running_assistant_needs_confirmation(self, make_manager):
        manager = make_manager(
            is_at_risk_session=lambda session: "Claude Code" if session.command == "claude" else None
        )
        open_terminal(manager, "claude")
        press(manager, "ctrl+q")
        manager.drain_messages()
        assert manager.confirm.message == "1 active AI session(s) (Claude Code)"
        assert not manager.should_quit

    def test_loading_overlay_swallows_input(self, make_manager, host):
        runner = ManualRunner()
        manager = make_manager(runner=runner)
        press(manager, "ctrl+q")
        assert manager.loading.active
        assert manager.handle_event(KeyEvent.parse("a"))
        assert not host.is_modified(host.current_buffer())
        runner.run_all()
        manager.drain_messages()
        assert not manager.loading.active
        assert manager.should_quit

    def test_failing_at_risk_check_does_not_block_quit(self, make_manager):
        def broken(session):
            raise RuntimeError("ps exploded")

        manager = make_manager(is_at_risk_session=broken)
        open_terminal(manager)
        press(manager, "ctrl+q")
        manager.drain_messages()
        assert not manager.loading.active
        assert manager.should_quit

    def test_failed_inspection_asks_before_quitting(self, make_manager, host):
        def broken_listing():
            raise RuntimeError("buffer list unavailable")

        manager = make_manager()
        host.modified_buffers = broken_listing
        press(manager, "ctrl+q")
        manager.drain_messages()
        assert not manager.loading.active
        assert manager.confirm.active
        assert manager.confirm.message == "unsaved work could not be checked"
        press(manager, "y")
        assert manager.should_quit

    def test_duplicate_request_is_ignored(self, make_manager):
        runner = ManualRunner()
        manager = make_manager(runner=runner)
        manager.request_quit()
        manager.request_quit()
        assert len(runner.jobs) == 1


class TestIdle:
    def test_idle_suspends_and_input_resumes(self, make_manager):
        clock = FakeClock()
        manager = make_manager(clock=clock)
        clock.now = 61.0
        assert manager.idle.check()
        assert manager.git_poller.suspended
        assert manager.tree_watcher.suspended
        press(manager, "down")
        assert not manager.tree_watcher.suspended
        assert manager.git_poller.suspended
        assert manager.drain_messages() == 1

    def test_source_control_poller_resumes_when_visible(self, make_manager):
        clock = FakeClock()
        manager = make_manager(clock=clock)
        manager.toggle_source_control()
        clock.now = 61.0
        manager.idle.check()
        manager.idle.touch()
        assert not manager.git_poller.suspended


class TestRender:
    def test_nav_bar_on_first_row(self, manager, canvas):
        manager.render(canvas)
        row = canvas.row_text(0)
        assert row.startswith(" ALT+ ")
        assert row.index("1 Files") < row.index("2 Editor") < row.index("3 Term")

    def test_editor_border_shows_focus(self, manager, canvas):
        editor = manager.regions.editor
        manager.render(canvas)
        assert canvas.get_cell(editor.x, editor.y).char == "╔"
        manager.set_focus(FocusSlot.LEFT)
        editor = manager.regions.editor
        manager.render(canvas)
        assert canvas.get_cell(editor.x, editor.y).char == "┌"

    def test_placeholder_when_editor_and_terminals_hidden(self, manager, canvas):
        manager.toggle_editor()
        manager.render(canvas)
        text = canvas.text()
        assert "Alt+2 to show" in text
        assert "Alt+3 to show" in text

    def test_prefix_shows_hint_bar(self, manager, canvas):
        press(manager, "ctrl+\\")
        manager.render(canvas)
        assert "Ctrl+\\ then:" in canvas.row_text(canvas.height - 1)
        press(manager, "escape")
        manager.render(canvas)
        assert "Ctrl+\\ then:" not in canvas.row_text(canvas.height - 1)

    def test_passthrough_shows_hint_bar(self, manager, canvas):
        open_terminal(manager)
        manager.toggle_passthrough()
        manager.render(canvas)
        bottom = canvas.row_text(canvas.height - 1)
        assert "PASSTHROUGH MODE - Press Ctrl+\\ Ctrl+\\ to exit" in bottom
        assert canvas.get_cell(0, canvas.height - 1).style.bgcolor.number == 208
        manager.set_focus(FocusSlot.EDITOR)
        manager.render(canvas)
        assert "PASSTHROUGH MODE" not in canvas.row_text(canvas.height - 1)

    def test_terminal_output_is_drawn(self, manager, canvas):
        panel = open_terminal(manager)
        backend_of(panel).emit("hello")
        assert wait_for(lambda: "hello" in panel.session.display_text())
        manager.render(canvas)
        assert "hello" in canvas.text()
        assert "Terminal 1" in canvas.text()

    def test_tool_selector_is_drawn(self, manager, canvas):
        manager.toggle_terminal(1)
        manager.render(canvas)
        assert "Terminal 1: choose a tool" in canvas.text()

    def test_spinner_interval_comes_from_config(self, make_manager):
        config = Config(
            layout=LayoutConfig(start_with_terminal=False),
            terminal=TerminalConfig(shell="/bin/sh", spinner_interval_ms=250),
        )
        manager = make_manager(config=config)
        panel = open_terminal(manager)
        assert panel.spinner_interval_s == 0.25

    def test_pending_terminal_shows_starting(self, make_manager, canvas):
        manager = make_manager(runner=ManualRunner())
        manager.create_terminal_for_slot(1, "/bin/sh")
        manager.render(canvas)
        assert "Starting..." in canvas.text()
