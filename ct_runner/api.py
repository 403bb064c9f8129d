"""Stable runner API surface."""

from ct_runner.engine.runner import BenchmarkRunner
from ct_runner.models.command import CommandOutputPolicy, CommandSpec, StreamTarget
from ct_runner.models.config import MeasureConfig
from ct_runner.models.results import BenchmarkResult, ExitStatus, TimerResult
from ct_runner.services.aggregation import build_benchmark_result
from ct_runner.services.export import export_csv, export_json
from ct_runner.timer.execution import execute_and_measure

__all__ = [
    "BenchmarkResult",
    "BenchmarkRunner",
    "CommandOutputPolicy",
    "CommandSpec",
    "ExitStatus",
    "MeasureConfig",
    "StreamTarget",
    "TimerResult",
    "build_benchmark_result",
    "execute_and_measure",
    "export_csv",
    "export_json",
]
