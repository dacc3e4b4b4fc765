"""Exception types raised by paneweave."""

from __future__ import annotations


class PaneweaveError(Exception):
    """Base class for paneweave errors."""


class SpawnError(PaneweaveError):
    """A terminal session could not be started."""

    def __init__(self, command: str, cause: BaseException | None = None) -> None:
        self.command = command
        message = f"Failed to start '{command}'"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


class ConfigError(PaneweaveError):
    """Configuration file is unreadable or invalid."""
