"""Background polling thread that can be suspended while the user is idle."""

from __future__ import annotations

import threading
from typing import Optional

from loguru import logger


class Poller:
    """Call :meth:`poll` every ``interval_s`` seconds on a daemon thread."""

    name = "poller"

    def __init__(self, interval_s: float) -> None:
        self.interval_s = interval_s
        self._stop = threading.Event()
        self._resume = threading.Event()
        self._resume.set()
        self._thread: Optional[threading.Thread] = None

    @property
    def suspended(self) -> bool:
        return not self._resume.is_set()

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name=self.name, daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()
        self._resume.set()

    def suspend(self) -> None:
        self._resume.clear()

    def resume(self) -> None:
        self._resume.set()

    def poll(self) -> None:
        """One polling pass."""

    def _run(self) -> None:
        while not self._stop.is_set():
            self._resume.wait()
            if self._stop.is_set():
                break
            try:
                self.poll()
            except Exception as exc:
                logger.warning(f"[{self.name}] Poll failed: {exc}")
            self._stop.wait(self.interval_s)
