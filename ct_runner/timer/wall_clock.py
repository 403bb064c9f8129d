"""Monotonic wall-clock timer."""

from __future__ import annotations

import time

from ct_runner.models.results import Second


class WallClockTimer:
    """Elapsed real time between ``start()`` and ``stop()``."""

    __slots__ = ("_start",)

    def __init__(self, start: float) -> None:
        self._start = start

    @classmethod
    def start(cls) -> "WallClockTimer":
        return cls(time.perf_counter())

    def stop(self) -> Second:
        return max(0.0, time.perf_counter() - self._start)
