"""Shared fixtures: fake pty backends, a recording canvas and a workspace."""

from __future__ import annotations

import queue
import time

import pytest

from paneweave.config.schema import Config, LayoutConfig, TerminalConfig
from paneweave.display import Canvas
from paneweave.host import BufferHost
from paneweave.layout.coordinator import LayoutManager
from paneweave.layout.tool_selector import ToolSelector
from paneweave.terminal.session import TerminalSession
from paneweave.tools import SHELL_TOOL, TOOLS


class FakeBackend:
    """In-memory stand-in for a pty: tests push output and read what was typed."""

    def __init__(self, command, cols=80, rows=24, cwd=None, env=None):
        self.command = command
        self.cols = cols
        self.rows = rows
        self.cwd = cwd
        self.written: list[str] = []
        self.resizes: list[tuple[int, int]] = []
        self.closed = False
        self._alive = True
        self._chunks: "queue.Queue[str]" = queue.Queue()

    @property
    def pid(self):
        return None

    def fileno(self):
        return None

    def read(self) -> str:
        try:
            return self._chunks.get(timeout=0.02)
        except queue.Empty:
            return ""

    def write(self, data: str) -> None:
        self.written.append(data)

    def resize(self, cols: int, rows: int) -> None:
        self.cols = cols
        self.rows = rows
        self.resizes.append((cols, rows))

    def close(self) -> None:
        self.closed = True
        self._alive = False

    def is_alive(self) -> bool:
        return self._alive or not self._chunks.empty()

    # test helpers

    def emit(self, text: str) -> None:
        self._chunks.put(text)

    def exit(self) -> None:
        self._alive = False

    @property
    def typed(self) -> str:
        return "".join(self.written)


class FakeSessionFactory:
    """Build real :class:`TerminalSession` objects over :class:`FakeBackend`."""

    def __init__(self):
        self.backends: list[FakeBackend] = []
        self.sessions: list[TerminalSession] = []
        self.fail = False

    def backend_factory(self, command, cols=80, rows=24, cwd=None, env=None):
        if self.fail:
            raise OSError("no such command")
        backend = FakeBackend(command, cols, rows, cwd, env)
        self.backends.append(backend)
        return backend

    def __call__(self, command: str, cols: int, rows: int, cwd: str) -> TerminalSession:
        session = TerminalSession(
            command,
            cols=cols,
            rows=rows,
            cwd=cwd,
            scrollback_lines=100,
            backend_factory=self.backend_factory,
        )
        self.sessions.append(session)
        return session


class ManualRunner:
    """Collects worker jobs so a test decides when (and in what order) they run."""

    def __init__(self):
        self.jobs = []

    def __call__(self, job):
        self.jobs.append(job)

    def run_all(self):
        jobs, self.jobs = self.jobs, []
        for job in jobs:
            job()


def run_now(job):
    job()


def wait_for(predicate, timeout: float = 2.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


@pytest.fixture
def canvas():
    return Canvas(120, 40)


@pytest.fixture
def host():
    return BufferHost()


@pytest.fixture
def sessions():
    return FakeSessionFactory()


@pytest.fixture
def project(tmp_path):
    (tmp_path / "README.md").write_text("# demo\n", encoding="utf-8")
    (tmp_path / "src").mkdir()
    (tmp_path / "src" / "main.py").write_text("print('hi')\n", encoding="utf-8")
    (tmp_path / "src" / "util.py").write_text("X = 1\n", encoding="utf-8")
    return tmp_path


@pytest.fixture
def config():
    return Config(
        layout=LayoutConfig(start_with_terminal=False),
        terminal=TerminalConfig(shell="/bin/sh"),
    )


@pytest.fixture
def selector():
    return ToolSelector(
        list_available=lambda: [SHELL_TOOL, TOOLS["claude"]],
        list_installable=lambda: [TOOLS["gemini"]],
    )


@pytest.fixture
def make_manager(project, host, sessions, config, selector):
    created = []

    def factory(runner=run_now, **kwargs):
        kwargs.setdefault("config", config)
        manager = LayoutManager(
            str(project),
            host,
            session_factory=sessions,
            runner=runner,
            tool_selector=selector,
            **kwargs,
        )
        manager.git_poller.start = lambda: None
        manager.resize(120, 40)
        created.append(manager)
        return manager

    yield factory
    for manager in created:
        manager.close()


@pytest.fixture
def manager(make_manager):
    return make_manager()
