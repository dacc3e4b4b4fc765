"""Foreground process inspection for terminal sessions."""

from __future__ import annotations

import os
import subprocess
from pathlib import Path

from loguru import logger

SHELL_NAMES = frozenset({"bash", "zsh", "sh", "fish", "ksh", "csh", "tcsh", "dash"})


def foreground_pgid(fd: int) -> int | None:
    """Process group currently owning the pty, or None if unknown."""
    try:
        pgid = os.tcgetpgrp(fd)
    except OSError:
        return None
    return pgid if pgid > 0 else None


def process_name(pid: int) -> str:
    """Short command name for ``pid``; empty string when it is gone."""
    comm = Path(f"/proc/{pid}/comm")
    try:
        return comm.read_text(encoding="utf-8", errors="ignore").strip()
    except OSError:
        pass
    try:
        result = subprocess.run(
            ["ps", "-o", "comm=", "-p", str(pid)],
            capture_output=True,
            text=True,
            timeout=2,
        )
    except (OSError, subprocess.SubprocessError) as exc:
        logger.debug(f"[process] ps failed for {pid}: {exc}")
        return ""
    return os.path.basename(result.stdout.strip())


def foreground_process_name(fd: int | None, fallback_pid: int | None = None) -> str:
    """Name of the process in the foreground of a pty."""
    pid = foreground_pgid(fd) if fd is not None else None
    if pid is None:
        pid = fallback_pid
    if pid is None:
        return ""
    return process_name(pid)


def is_shell(name: str) -> bool:
    return os.path.basename(name).lstrip("-") in SHELL_NAMES
