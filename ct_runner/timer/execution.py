"""Spawn one command and measure it."""

from __future__ import annotations

import contextlib
import logging
import subprocess
import sys
from typing import Any, Mapping, Optional

from ct_common.errors import CTError, ReapError, SpawnError, TimerError
from ct_runner.models.command import CommandOutputPolicy, CommandSpec
from ct_runner.models.results import ExitStatus, MemUsageMetric, TimerResult
from ct_runner.timer import output_sink
from ct_runner.timer.cpu import CPUTimer
from ct_runner.timer.wall_clock import WallClockTimer

IS_WINDOWS = sys.platform == "win32"

if IS_WINDOWS:
    from ct_runner.timer import windows_timer as platform_timer
else:
    from ct_runner.timer import posix_timer as platform_timer

logger = logging.getLogger(__name__)


def _with_context(error: CTError, context: Mapping[str, Any]) -> CTError:
    return type(error)(str(error), context={**error.context, **context}, cause=error)


def _kill_and_reap(child: subprocess.Popen) -> None:
    try:
        child.kill()
    except OSError:
        pass
    child.wait()


def execute_and_measure(
    command: CommandSpec,
    output_policy: CommandOutputPolicy,
    collect_mem_usage: bool,
    *,
    attempt: int | None = None,
) -> TimerResult:
    """Execute the given command and return a timing summary.

    Raises SpawnError, TimerError or ReapError; a non-zero exit status is
    recorded in the result, not raised.
    """
    context = {"command": command.display_name(), "attempt": attempt}

    with contextlib.ExitStack() as stack:
        try:
            popen_kwargs = stack.enter_context(command.open_streams())
        except OSError as exc:
            raise SpawnError(
                "Cannot open the output redirection", context=context, cause=exc
            ) from exc

        cpu_timer: Optional[CPUTimer] = None
        if IS_WINDOWS:
            # Create the process suspended so no CPU time is missed between
            # process creation and the CPU timer start.
            popen_kwargs["creationflags"] = platform_timer.CREATE_SUSPENDED
        else:
            try:
                cpu_timer = platform_timer.PosixCPUTimer.start()
            except TimerError as exc:
                raise _with_context(exc, context) from exc

        wallclock_timer = WallClockTimer.start()
        try:
            child = subprocess.Popen(command.argv, **popen_kwargs)
        except (OSError, ValueError) as exc:
            raise SpawnError(
                f"Failed to spawn '{command.argv[0]}'", context=context, cause=exc
            ) from exc

        if cpu_timer is None:
            # Windows: the timer takes the suspended child and resumes it.
            try:
                cpu_timer = platform_timer.WindowsCPUTimer.start_suspended_process(child)
            except TimerError as exc:
                _kill_and_reap(child)
                raise _with_context(exc, context) from exc

        custom_metric = 0.0
        if child.stdout is not None:
            try:
                custom_metric = output_sink.consume(child.stdout, output_policy)
            except OSError as exc:
                child.stdout.close()
                _kill_and_reap(child)
                raise ReapError(
                    "Failed to read the child's stdout", context=context, cause=exc
                ) from exc
            child.stdout.close()

        mem_usage: MemUsageMetric = None
        try:
            if collect_mem_usage:
                returncode, mem_usage = platform_timer.wait4(child)
            else:
                returncode = child.wait()
        except OSError as exc:
            raise ReapError(
                "Failed to wait for the child", context=context, cause=exc
            ) from exc

        time_real = wallclock_timer.stop()
        try:
            time_user, time_system = cpu_timer.stop()
        except TimerError as exc:
            raise _with_context(exc, context) from exc

    result = TimerResult(
        time_real=time_real,
        time_user=time_user,
        time_system=time_system,
        status=ExitStatus.from_returncode(returncode),
        custom_metric=custom_metric,
        mem_usage=mem_usage,
    )
    logger.debug(
        "Measured %s (attempt %s): real=%.6fs user=%.6fs sys=%.6fs %s",
        context["command"],
        attempt,
        result.time_real,
        result.time_user,
        result.time_system,
        result.status,
    )
    return result
