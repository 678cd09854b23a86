from __future__ import annotations

import pickle
from datetime import timedelta

import pytest

from webcrawl.crawler import Stopwatch


class FakeClock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


def test_elapsed_accumulates_across_runs() -> None:
    clock = FakeClock()
    stopwatch = Stopwatch(clock)

    stopwatch.start()
    clock.now += 5
    assert stopwatch.elapsed == timedelta(seconds=5)
    stopwatch.stop()

    clock.now += 100
    assert stopwatch.elapsed == timedelta(seconds=5)

    stopwatch.start()
    clock.now += 2.5
    stopwatch.stop()
    assert stopwatch.elapsed == timedelta(seconds=7.5)


def test_start_and_stop_are_validated() -> None:
    stopwatch = Stopwatch(FakeClock())

    with pytest.raises(RuntimeError):
        stopwatch.stop()

    stopwatch.start()
    assert stopwatch.is_running
    with pytest.raises(RuntimeError):
        stopwatch.start()


def test_pickled_stopwatch_keeps_elapsed_time_and_is_stopped() -> None:
    clock = FakeClock()
    stopwatch = Stopwatch(clock)
    stopwatch.start()
    clock.now += 42

    restored = pickle.loads(pickle.dumps(stopwatch))

    assert not restored.is_running
    assert restored.elapsed == timedelta(seconds=42)
    restored.start()
    restored.stop()
