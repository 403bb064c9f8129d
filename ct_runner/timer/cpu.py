"""CPU timer contract shared by the platform variants."""

from __future__ import annotations

from abc import ABC, abstractmethod

from ct_runner.models.results import Second


class CPUTimer(ABC):
    """CPU time consumed by one child process between start and stop.

    Each variant has its own way of starting; ``stop()`` must only be called
    once the child has been reaped.
    """

    @abstractmethod
    def stop(self) -> tuple[Second, Second]:
        """Return ``(user, system)`` seconds, both non-negative."""
