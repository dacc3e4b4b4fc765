"""Tests for fuzzy file search."""

import os
from unittest.mock import MagicMock

from paneweave.display import Canvas
from paneweave.events import KeyEvent
from paneweave.layout.quick_find import QuickFind, fuzzy_match, index_files, search


def type_text(modal, text):
    for char in text:
        modal.handle_event(KeyEvent.parse(char))


class TestIndexFiles:
    def test_skips_hidden_and_vendored(self, project):
        (project / ".git").mkdir()
        (project / ".git" / "HEAD").write_text("ref")
        (project / "node_modules").mkdir()
        (project / "node_modules" / "x.js").write_text("")
        (project / ".env").write_text("")
        files = index_files(project)
        assert files == ["README.md", os.path.join("src", "main.py"), os.path.join("src", "util.py")]

    def test_limit(self, project):
        assert len(index_files(project, limit=2)) == 2


class TestFuzzyMatch:
    def test_subsequence(self):
        score, positions = fuzzy_match("mn", "src/main.py")
        assert positions == [4, 7]
        assert score > 0

    def test_case_insensitive(self):
        assert fuzzy_match("README", "readme.md") is not None

    def test_no_match(self):
        assert fuzzy_match("zz", "src/main.py") is None

    def test_empty_query_matches_everything(self):
        assert fuzzy_match("", "anything") == (0, [])

    def test_file_name_hits_rank_first(self):
        results = search("main", ["docs/domain_notes.md", "src/main.py"])
        assert [r.path for r in results] == ["src/main.py", "docs/domain_notes.md"]

    def test_search_limit(self):
        assert len(search("", [f"f{i}" for i in range(10)], limit=3)) == 3


class TestQuickFindModal:
    def test_enter_opens_absolute_path(self, project):
        callback = MagicMock()
        modal = QuickFind()
        modal.show(str(project), 80, 24, callback)
        assert len(modal.results) == 3
        type_text(modal, "util")
        assert [r.path for r in modal.results] == [os.path.join("src", "util.py")]
        modal.handle_event(KeyEvent.parse("enter"))
        callback.assert_called_once_with(os.path.join(str(project), "src", "util.py"))
        assert not modal.active

    def test_escape_closes_without_callback(self, project):
        callback = MagicMock()
        modal = QuickFind()
        modal.show(str(project), 80, 24, callback)
        modal.handle_event(KeyEvent.parse("escape"))
        callback.assert_not_called()
        assert not modal.active

    def test_selection_is_clamped(self, project):
        modal = QuickFind()
        modal.show(str(project), 80, 24, MagicMock())
        for _ in range(5):
            modal.handle_event(KeyEvent.parse("down"))
        assert modal.selected == 2
        modal.handle_event(KeyEvent.parse("pageup"))
        assert modal.selected == 0

    def test_editing_query(self, project):
        modal = QuickFind()
        modal.show(str(project), 80, 24, MagicMock())
        type_text(modal, "mainx")
        assert modal.results == []
        modal.handle_event(KeyEvent.parse("backspace"))
        assert len(modal.results) == 1
        modal.handle_event(KeyEvent.parse("ctrl+u"))
        assert modal.query == ""
        assert len(modal.results) == 3

    def test_render(self, project):
        modal = QuickFind()
        modal.show(str(project), 80, 24, MagicMock())
        type_text(modal, "zzz")
        canvas = Canvas(80, 24)
        modal.render(canvas)
        text = canvas.text()
        assert "Quick Find" in text
        assert "> zzz" in text
        assert "No matching files" in text
        assert "(0 of 3 files)" in text
