"""Runner facade for cmd-timing-lib components.

Re-exports the harness entry point and the result types.
"""

from ct_runner.api import (
    BenchmarkResult,
    BenchmarkRunner,
    CommandOutputPolicy,
    CommandSpec,
    MeasureConfig,
    TimerResult,
    execute_and_measure,
)

__all__ = [
    "BenchmarkResult",
    "BenchmarkRunner",
    "CommandOutputPolicy",
    "CommandSpec",
    "MeasureConfig",
    "TimerResult",
    "execute_and_measure",
]
