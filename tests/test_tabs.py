"""Tests for paneweave.layout.tabs."""

from paneweave.display import Canvas
from paneweave.layout.region import Region
from paneweave.layout.tabs import TabStrip, display_name, truncate_name


def strip_with(*paths, width=60):
    strip = TabStrip()
    strip.region = Region(0, 0, width, 1)
    for i, path in enumerate(paths):
        strip.add_tab(f"buf-{i}", path)
    return strip


class TestNames:
    def test_display_name(self):
        assert display_name("/work/src/main.py") == "main.py"
        assert display_name("") == "Untitled"

    def test_long_names_are_truncated(self):
        name = truncate_name("a_really_long_module_name.py")
        assert len(name) == 20
        assert name.endswith("…")


class TestTabList:
    def test_add_existing_path_activates_it(self):
        strip = strip_with("/a.py", "/b.py")
        assert strip.add_tab("buf-9", "/a.py") == 0
        assert len(strip) == 2
        assert strip.active_index == 0

    def test_single_preview_slot(self):
        strip = strip_with("/a.py")
        index, replaced = strip.add_preview_tab("buf-p1", "/b.py")
        assert (index, replaced) == (1, None)
        index, replaced = strip.add_preview_tab("buf-p2", "/c.py")
        assert (index, replaced) == (1, "buf-p1")
        assert [tab.name for tab in strip.tabs] == ["a.py", "c.py"]

    def test_preview_of_open_path_just_activates(self):
        strip = strip_with("/a.py", "/b.py")
        assert strip.add_preview_tab("buf-x", "/a.py") == (0, None)
        assert strip.preview_index == -1

    def test_pin(self):
        strip = strip_with()
        strip.add_preview_tab("buf-p", "/a.py")
        assert strip.pin_tab()
        assert not strip.pin_tab()
        assert strip.preview_index == -1

    def test_editing_pins_preview(self):
        strip = strip_with()
        strip.add_preview_tab("buf-p", "/a.py")
        strip.sync_modified(lambda buffer_id: True)
        assert strip.tabs[0].modified
        assert not strip.tabs[0].preview

    def test_close_keeps_neighbour_active(self):
        strip = strip_with("/a.py", "/b.py", "/c.py")
        strip.set_active(1)
        strip.close_tab(0)
        assert strip.active.name == "b.py"
        strip.close_tab(1)
        assert strip.active.name == "b.py"

    def test_close_last_active_moves_left(self):
        strip = strip_with("/a.py", "/b.py")
        strip.close_tab(1)
        assert strip.active_index == 0

    def test_lone_untitled_cannot_close(self):
        strip = strip_with("")
        assert not strip.can_close(0)
        strip.add_tab("buf-1", "/a.py")
        assert strip.can_close(0)
        assert not strip.can_close(5)

    def test_next_and_prev_wrap(self):
        strip = strip_with("/a.py", "/b.py", "/c.py")
        assert strip.next_tab()
        assert strip.active_index == 0
        assert strip.prev_tab()
        assert strip.active_index == 2

    def test_single_tab_does_not_cycle(self):
        strip = strip_with("/a.py")
        assert not strip.next_tab()

    def test_rename_and_retitle(self):
        strip = strip_with("/a.py", "")
        strip.rename_path("/a.py", "/z.py")
        assert strip.tabs[0].name == "z.py"
        strip.retitle(1, "/notes.txt")
        assert strip.tabs[1].path == "/notes.txt"
        assert strip.tabs[1].name == "notes.txt"


class TestTabRendering:
    def test_active_tab_and_close_hit(self):
        strip = strip_with("/a.py", "/b.py")
        strip.focused = True
        canvas = Canvas(60, 2)
        strip.render(canvas)
        assert " a.py [x]" in canvas.row_text(0)
        assert canvas.row_text(1) == "─" * 60
        kinds = {strip.hit_test(x, 0) for x in range(60)}
        assert any(hit.kind == "close" and hit.index == 1 for hit in kinds)
        assert any(hit.kind == "tab" and hit.index == 0 for hit in kinds)

    def test_modified_marker(self):
        strip = strip_with("/a.py")
        strip.sync_modified(lambda buffer_id: True)
        canvas = Canvas(60, 2)
        strip.render(canvas)
        assert "● a.py" in canvas.row_text(0)

    def test_overflow_scrolls_to_active_tab(self):
        paths = [f"/file_{i}.py" for i in range(10)]
        strip = strip_with(*paths, width=40)
        canvas = Canvas(40, 2)
        strip.render(canvas)
        assert strip.scroll_offset > 0
        assert "file_9.py" in canvas.row_text(0)
        assert "‹" in canvas.row_text(0)
        assert strip.hit_test(1, 0).kind == "scroll_left"

    def test_scroll_buttons(self):
        strip = strip_with("/a.py", "/b.py")
        strip.scroll_right()
        assert strip.scroll_offset == 1
        strip.scroll_right()
        assert strip.scroll_offset == 1
        strip.scroll_left()
        strip.scroll_left()
        assert strip.scroll_offset == 0

    def test_clicks_outside_strip(self):
        strip = strip_with("/a.py")
        assert strip.hit_test(0, 5) is None
        assert strip.hit_test(0, 1).kind == "bar"
