"""Keyed deferred callbacks used to debounce mutation reports."""

from __future__ import annotations

import threading
from typing import Callable, Dict, Protocol


class Scheduler(Protocol):
    """Schedules at most one pending callback per key."""

    def schedule(self, key: str, delay: float, callback: Callable[[], None]) -> None: ...

    def cancel(self, key: str) -> None: ...


class ThreadingScheduler:
    """Run callbacks on daemon ``threading.Timer`` threads, one timer per key."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._timers: Dict[str, threading.Timer] = {}

    def schedule(self, key: str, delay: float, callback: Callable[[], None]) -> None:
        timer = threading.Timer(delay, self._run, args=(key, callback))
        timer.daemon = True
        with self._lock:
            previous = self._timers.pop(key, None)
            if previous is not None:
                previous.cancel()
            self._timers[key] = timer
        timer.start()

    def cancel(self, key: str) -> None:
        with self._lock:
            timer = self._timers.pop(key, None)
        if timer is not None:
            timer.cancel()

    def pending(self) -> list[str]:
        with self._lock:
            return list(self._timers)

    def _run(self, key: str, callback: Callable[[], None]) -> None:
        with self._lock:
            if self._timers.get(key) is threading.current_thread():
                del self._timers[key]
        callback()
