"""Idle detection for suspending background polling."""

from __future__ import annotations

import threading
import time
from typing import Callable, Optional

from loguru import logger


class IdleWatcher:
    """Call ``on_idle`` once after ``timeout_s`` without input, ``on_resume`` on the next touch."""

    def __init__(
        self,
        timeout_s: float = 60.0,
        check_interval_s: float = 30.0,
        on_idle: Optional[Callable[[], None]] = None,
        on_resume: Optional[Callable[[], None]] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.timeout_s = timeout_s
        self.check_interval_s = check_interval_s
        self.on_idle = on_idle
        self.on_resume = on_resume
        self._clock = clock
        self._lock = threading.Lock()
        self._last_activity = clock()
        self._idle = False
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def is_idle(self) -> bool:
        with self._lock:
            return self._idle

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="idle-watcher", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()

    def touch(self) -> None:
        """Record user activity."""
        with self._lock:
            self._last_activity = self._clock()
            resumed = self._idle
            self._idle = False
        if resumed:
            logger.debug("[idle] Resumed")
            if self.on_resume is not None:
                self.on_resume()

    def check(self) -> bool:
        """Run one timeout check; returns True if this call went idle."""
        with self._lock:
            if self._idle or self._clock() - self._last_activity < self.timeout_s:
                return False
            self._idle = True
        logger.debug(f"[idle] No input for {self.timeout_s:.0f}s, suspending pollers")
        if self.on_idle is not None:
            self.on_idle()
        return True

    def _run(self) -> None:
        while not self._stop.wait(self.check_interval_s):
            self.check()
