"""Build a BenchmarkResult from per-invocation measurements."""

from __future__ import annotations

import math
from typing import Mapping, Optional, Sequence

import pandas as pd

from ct_runner.models.results import BenchmarkResult, TimerResult


def build_benchmark_result(
    command: str,
    timer_results: Sequence[TimerResult],
    *,
    parameters: Optional[Mapping[str, str]] = None,
    command_with_unused_parameters: Optional[str] = None,
    keep_times: bool = False,
    report_custom_metrics: bool = False,
) -> BenchmarkResult:
    """
    Aggregate the measurements of all invocations of one command.

    Args:
        command: Command line as shown to the user
        timer_results: One TimerResult per invocation, in execution order
        parameters: Parameter values used for this run
        command_with_unused_parameters: Disambiguated command line
        keep_times: Keep every wall-clock time in the result
        report_custom_metrics: The command reported a custom metric on stdout

    Returns:
        BenchmarkResult with sample statistics over the wall-clock times
    """
    if not timer_results:
        raise ValueError("Cannot aggregate zero measurements")

    df = pd.DataFrame(
        {
            "real": [r.time_real for r in timer_results],
            "user": [r.time_user for r in timer_results],
            "system": [r.time_system for r in timer_results],
        }
    )
    times = df["real"]

    stddev: Optional[float] = None
    if len(times) >= 2:
        stddev = float(times.std(ddof=1))
        if math.isnan(stddev):
            stddev = None

    mem_usage = None
    if any(r.mem_usage is not None for r in timer_results):
        mem_usage = [r.mem_usage for r in timer_results]

    return BenchmarkResult(
        command=command,
        command_with_unused_parameters=command_with_unused_parameters or command,
        mean=float(times.mean()),
        stddev=stddev,
        median=float(times.median()),
        user=float(df["user"].mean()),
        system=float(df["system"].mean()),
        min=float(times.min()),
        max=float(times.max()),
        times=[float(t) for t in times] if keep_times else None,
        exit_codes=[r.exit_code for r in timer_results],
        custom_metrics=[r.custom_metric for r in timer_results] if report_custom_metrics else None,
        mem_usage=mem_usage,
        parameters=dict(parameters or {}),
    )
