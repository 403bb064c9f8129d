"""CPU accounting for Windows hosts.

The child is created suspended so that no instruction runs before the timer
holds a handle on it. Kernel and user times are read from the process object
itself with ``GetProcessTimes``; they keep accumulating in that object, so
no before/after diff is required.
"""

from __future__ import annotations

import ctypes
import subprocess
from ctypes import wintypes

import psutil

from ct_common.errors import TimerError
from ct_runner.models.results import MemUsageMetric, Second
from ct_runner.timer.cpu import CPUTimer

CREATE_SUSPENDED = 0x00000004
PROCESS_QUERY_LIMITED_INFORMATION = 0x1000
PROCESS_VM_READ = 0x0010

# FILETIME ticks are 100 ns.
_TICKS_PER_SECOND = 10_000_000

_kernel32 = ctypes.WinDLL("kernel32", use_last_error=True)
_psapi = ctypes.WinDLL("psapi", use_last_error=True)

_kernel32.OpenProcess.argtypes = [wintypes.DWORD, wintypes.BOOL, wintypes.DWORD]
_kernel32.OpenProcess.restype = wintypes.HANDLE
_kernel32.CloseHandle.argtypes = [wintypes.HANDLE]
_kernel32.CloseHandle.restype = wintypes.BOOL
_kernel32.GetProcessTimes.argtypes = [wintypes.HANDLE] + [ctypes.POINTER(wintypes.FILETIME)] * 4
_kernel32.GetProcessTimes.restype = wintypes.BOOL


class _ProcessMemoryCounters(ctypes.Structure):
    _fields_ = [
        ("cb", wintypes.DWORD),
        ("PageFaultCount", wintypes.DWORD),
        ("PeakWorkingSetSize", ctypes.c_size_t),
        ("WorkingSetSize", ctypes.c_size_t),
        ("QuotaPeakPagedPoolUsage", ctypes.c_size_t),
        ("QuotaPagedPoolUsage", ctypes.c_size_t),
        ("QuotaPeakNonPagedPoolUsage", ctypes.c_size_t),
        ("QuotaNonPagedPoolUsage", ctypes.c_size_t),
        ("PagefileUsage", ctypes.c_size_t),
        ("PeakPagefileUsage", ctypes.c_size_t),
    ]


_psapi.GetProcessMemoryInfo.argtypes = [
    wintypes.HANDLE,
    ctypes.POINTER(_ProcessMemoryCounters),
    wintypes.DWORD,
]
_psapi.GetProcessMemoryInfo.restype = wintypes.BOOL


def _open_process(pid: int, access: int) -> int:
    handle = _kernel32.OpenProcess(access, False, pid)
    if not handle:
        raise ctypes.WinError(ctypes.get_last_error())
    return handle


def _filetime_seconds(value: wintypes.FILETIME) -> Second:
    ticks = (value.dwHighDateTime << 32) | value.dwLowDateTime
    return ticks / _TICKS_PER_SECOND


class WindowsCPUTimer(CPUTimer):
    """Kernel/user times of one child read from its process object."""

    def __init__(self, handle: int) -> None:
        self._handle = handle

    @classmethod
    def start_suspended_process(cls, child: subprocess.Popen) -> "WindowsCPUTimer":
        """Start timing a child created with CREATE_SUSPENDED and resume it."""
        try:
            handle = _open_process(child.pid, PROCESS_QUERY_LIMITED_INFORMATION)
        except OSError as exc:
            raise TimerError(
                "Cannot open the suspended child for CPU accounting",
                context={"pid": child.pid},
                cause=exc,
            ) from exc
        timer = cls(handle)
        try:
            psutil.Process(child.pid).resume()
        except psutil.Error as exc:
            timer._close()
            raise TimerError(
                "Cannot resume the suspended child",
                context={"pid": child.pid},
                cause=exc,
            ) from exc
        return timer

    def stop(self) -> tuple[Second, Second]:
        creation = wintypes.FILETIME()
        exited = wintypes.FILETIME()
        kernel = wintypes.FILETIME()
        user = wintypes.FILETIME()
        try:
            ok = _kernel32.GetProcessTimes(
                self._handle,
                ctypes.byref(creation),
                ctypes.byref(exited),
                ctypes.byref(kernel),
                ctypes.byref(user),
            )
            if not ok:
                raise TimerError(
                    "GetProcessTimes failed",
                    cause=ctypes.WinError(ctypes.get_last_error()),
                )
        finally:
            self._close()
        return _filetime_seconds(user), _filetime_seconds(kernel)

    def _close(self) -> None:
        if self._handle:
            _kernel32.CloseHandle(self._handle)
            self._handle = 0


def wait4(child: subprocess.Popen) -> tuple[int, MemUsageMetric]:
    """Reap the child and return ``(returncode, peak working set in bytes)``.

    ``Popen`` keeps its own handle open after ``wait()``, so the process object
    (and its counters) is still queryable here.
    """
    returncode = child.wait()
    handle = _open_process(child.pid, PROCESS_QUERY_LIMITED_INFORMATION | PROCESS_VM_READ)
    try:
        counters = _ProcessMemoryCounters()
        counters.cb = ctypes.sizeof(counters)
        if not _psapi.GetProcessMemoryInfo(handle, ctypes.byref(counters), counters.cb):
            raise ctypes.WinError(ctypes.get_last_error())
    finally:
        _kernel32.CloseHandle(handle)
    return returncode, counters.PeakWorkingSetSize
