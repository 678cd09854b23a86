"""Thread-safe stopwatch measuring the run duration of a crawl."""

from __future__ import annotations

import threading
import time
from datetime import timedelta
from typing import Any, Callable

TimeSource = Callable[[], float]


class Stopwatch:
    """Accumulates elapsed time across start/stop cycles (e.g. resumed crawls)."""

    def __init__(self, time_source: TimeSource = time.monotonic) -> None:
        self._time_source = time_source
        self._lock = threading.Lock()
        self._start_time: float | None = None
        self._elapsed = timedelta()

    def start(self) -> None:
        with self._lock:
            if self._start_time is not None:
                raise RuntimeError("The stopwatch is already running.")
            self._start_time = self._time_source()

    def stop(self) -> None:
        with self._lock:
            if self._start_time is None:
                raise RuntimeError("The stopwatch is not running.")
            self._elapsed += timedelta(seconds=self._time_source() - self._start_time)
            self._start_time = None

    @property
    def is_running(self) -> bool:
        with self._lock:
            return self._start_time is not None

    @property
    def elapsed(self) -> timedelta:
        with self._lock:
            if self._start_time is None:
                return self._elapsed
            return self._elapsed + timedelta(seconds=self._time_source() - self._start_time)

    def __getstate__(self) -> dict[str, Any]:
        # A running stopwatch is persisted as stopped; monotonic readings do
        # not survive a process restart.
        return {"elapsed": self.elapsed}

    def __setstate__(self, state: dict[str, Any]) -> None:
        self._time_source = time.monotonic
        self._lock = threading.Lock()
        self._start_time = None
        self._elapsed = state.get("elapsed", timedelta())


__all__ = ["Stopwatch", "TimeSource"]
