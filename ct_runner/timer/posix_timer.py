"""CPU accounting for POSIX hosts via ``getrusage(RUSAGE_CHILDREN)``.

Terminated children are only added to the RUSAGE_CHILDREN counters when they
are reaped, so the snapshot taken by ``stop()`` is only meaningful after the
orchestrator has waited on the child through its own wait path.
"""

from __future__ import annotations

import os
import resource
import subprocess
import sys
from dataclasses import dataclass

from ct_common.errors import TimerError
from ct_runner.models.results import MemUsageMetric, Second
from ct_runner.timer.cpu import CPUTimer

# ru_maxrss is reported in bytes on macOS and in kibibytes elsewhere.
_MAXRSS_SCALE = 1 if sys.platform == "darwin" else 1024


@dataclass(frozen=True)
class CPUTimes:
    user_usec: int
    system_usec: int


def _children_cpu_times() -> CPUTimes:
    try:
        usage = resource.getrusage(resource.RUSAGE_CHILDREN)
    except (OSError, ValueError) as exc:
        raise TimerError("getrusage(RUSAGE_CHILDREN) failed", cause=exc) from exc
    return CPUTimes(
        user_usec=round(usage.ru_utime * 1_000_000),
        system_usec=round(usage.ru_stime * 1_000_000),
    )


class PosixCPUTimer(CPUTimer):
    """Diff of the children rusage counters around one child's lifetime."""

    def __init__(self, start_usage: CPUTimes) -> None:
        self._start_usage = start_usage

    @classmethod
    def start(cls) -> "PosixCPUTimer":
        return cls(_children_cpu_times())

    def stop(self) -> tuple[Second, Second]:
        end_usage = _children_cpu_times()
        user = max(0, end_usage.user_usec - self._start_usage.user_usec)
        system = max(0, end_usage.system_usec - self._start_usage.system_usec)
        return user / 1e6, system / 1e6


def wait4(child: subprocess.Popen) -> tuple[int, MemUsageMetric]:
    """Reap the child and return ``(returncode, peak RSS in bytes)``.

    ``Popen.returncode`` is updated so the Popen object does not try to reap
    the pid a second time.
    """
    _, status, usage = os.wait4(child.pid, 0)
    returncode = os.waitstatus_to_exitcode(status)
    child.returncode = returncode
    return returncode, usage.ru_maxrss * _MAXRSS_SCALE
