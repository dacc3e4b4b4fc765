"""PTY backends for terminal panes."""

from __future__ import annotations

import os
import subprocess
from typing import Mapping, Optional, Protocol

from loguru import logger

TERM_ENV = {
    "TERM": "xterm-256color",
    "PANEWEAVE_TERM": "1",
}


class PTYBackend(Protocol):
    """Minimal PTY backend contract."""

    def read(self) -> str:
        """Read a stdout/stderr chunk; empty string when nothing is ready."""

    def write(self, data: str) -> None:
        """Write input data."""

    def resize(self, cols: int, rows: int) -> None:
        """Apply terminal resize."""

    def close(self) -> None:
        """Close process resources."""

    def is_alive(self) -> bool:
        """Return True while the child process runs."""

    @property
    def pid(self) -> Optional[int]:
        """Child process id."""

    def fileno(self) -> Optional[int]:
        """Master pty descriptor, if there is one."""


def child_env(extra: Mapping[str, str] | None = None) -> dict[str, str]:
    env = dict(os.environ)
    env.update(TERM_ENV)
    if extra:
        env.update(extra)
    return env


class UnixPexpectBackend:
    """PTY backend for Unix-like systems via pexpect."""

    def __init__(
        self,
        command: str,
        cols: int = 80,
        rows: int = 24,
        cwd: str | None = None,
        env: Mapping[str, str] | None = None,
    ) -> None:
        import pexpect

        self._pexpect = pexpect
        self._eof = False
        self._proc = pexpect.spawn(
            command,
            encoding="utf-8",
            codec_errors="ignore",
            echo=False,
            dimensions=(rows, cols),
            cwd=cwd,
            env=child_env(env),
        )

    def read(self) -> str:
        if self._eof:
            return ""
        try:
            return self._proc.read_nonblocking(size=4096, timeout=0.1)
        except self._pexpect.TIMEOUT:
            return ""
        except self._pexpect.EOF:
            self._eof = True
            return ""

    def write(self, data: str) -> None:
        self._proc.send(data)

    def resize(self, cols: int, rows: int) -> None:
        self._proc.setwinsize(rows, cols)

    def close(self) -> None:
        if self._proc.isalive():
            self._proc.close(force=True)

    def is_alive(self) -> bool:
        return not self._eof and self._proc.isalive()

    @property
    def pid(self) -> Optional[int]:
        return self._proc.pid

    def fileno(self) -> Optional[int]:
        try:
            return self._proc.child_fd
        except AttributeError:
            return None


class SubprocessFallbackBackend:
    """Fallback backend when PTY is unavailable."""

    def __init__(
        self,
        command: str,
        cols: int = 80,
        rows: int = 24,
        cwd: str | None = None,
        env: Mapping[str, str] | None = None,
    ) -> None:
        del cols, rows
        self._proc = subprocess.Popen(
            command,
            shell=True,
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            encoding="utf-8",
            errors="ignore",
            bufsize=1,
            cwd=cwd,
            env=child_env(env),
        )

    def read(self) -> str:
        if not self._proc.stdout:
            return ""
        chunk = self._proc.stdout.read(1)
        return chunk or ""

    def write(self, data: str) -> None:
        if self._proc.stdin:
            self._proc.stdin.write(data)
            self._proc.stdin.flush()

    def resize(self, cols: int, rows: int) -> None:
        del cols, rows

    def close(self) -> None:
        if self._proc.poll() is None:
            self._proc.terminate()

    def is_alive(self) -> bool:
        return self._proc.poll() is None

    @property
    def pid(self) -> Optional[int]:
        return self._proc.pid

    def fileno(self) -> Optional[int]:
        return None


def build_backend(
    command: str,
    cols: int = 80,
    rows: int = 24,
    cwd: str | None = None,
    env: Mapping[str, str] | None = None,
) -> PTYBackend:
    """Build the best available backend for the current platform."""
    if os.name == "nt":
        backend = SubprocessFallbackBackend(command, cols=cols, rows=rows, cwd=cwd, env=env)
        logger.info(f"[pty] Using SubprocessFallbackBackend for: {command[:60]}")
        return backend
    backend = UnixPexpectBackend(command, cols=cols, rows=rows, cwd=cwd, env=env)
    logger.info(f"[pty] Using UnixPexpectBackend for: {command[:60]}")
    return backend
