"""Messages background threads post to the layout manager.

Worker threads never mutate layout state. They put one of these on the queue
and wake the main loop, which applies them in :meth:`LayoutManager.drain_messages`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Union

from paneweave.terminal.panel import TerminalPanel
from paneweave.terminal.session import TerminalSession


@dataclass(frozen=True)
class Redraw:
    """Something changed on screen; nothing else to apply."""


@dataclass(frozen=True)
class SessionEnded:
    slot: int
    panel: TerminalPanel
    session: TerminalSession


@dataclass(frozen=True)
class TerminalCreated:
    slot: int
    panel: Optional[TerminalPanel]
    command: str
    error: str = ""


@dataclass(frozen=True)
class WorkInProgress:
    """Work that a quit would throw away."""

    modified_files: list[str] = field(default_factory=list)
    active_sessions: list[str] = field(default_factory=list)
    incomplete: bool = False

    @property
    def at_risk(self) -> bool:
        return bool(self.modified_files or self.active_sessions or self.incomplete)

    def describe(self) -> str:
        parts = []
        if self.modified_files:
            parts.append(f"{len(self.modified_files)} file(s) with unsaved changes")
        if self.active_sessions:
            names = ", ".join(self.active_sessions)
            parts.append(f"{len(self.active_sessions)} active AI session(s) ({names})")
        if self.incomplete:
            parts.append("unsaved work could not be checked")
        return ", ".join(parts)


@dataclass(frozen=True)
class QuitInspected:
    work: WorkInProgress


@dataclass(frozen=True)
class StatusMessage:
    text: str
    error: bool = False


@dataclass(frozen=True)
class TreeChanged:
    """The file tree watcher saw a directory change."""


@dataclass(frozen=True)
class GitStatusUpdated:
    entries: tuple = ()
    error: str = ""


LayoutMessage = Union[
    Redraw,
    SessionEnded,
    TerminalCreated,
    QuitInspected,
    StatusMessage,
    TreeChanged,
    GitStatusUpdated,
]
