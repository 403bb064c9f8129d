"""
Run loop for benchmarking one command.
"""

from __future__ import annotations

import logging
from typing import Callable, Mapping, Optional

from ct_common.errors import CommandFailedError
from ct_common.logging import measurement_context
from ct_runner.models.command import CommandSpec
from ct_runner.models.config import MeasureConfig
from ct_runner.models.results import BenchmarkResult, TimerResult
from ct_runner.services.aggregation import build_benchmark_result
from ct_runner.timer.execution import execute_and_measure

logger = logging.getLogger(__name__)

Executor = Callable[..., TimerResult]


class BenchmarkRunner:
    """Executes a command ``config.runs`` times and aggregates the timings."""

    def __init__(
        self,
        config: MeasureConfig,
        executor: Executor = execute_and_measure,
        on_result: Optional[Callable[[int, TimerResult], None]] = None,
    ):
        self.config = config
        self._execute = executor
        self._on_result = on_result

    def run(
        self,
        command: CommandSpec,
        parameters: Optional[Mapping[str, str]] = None,
        command_with_unused_parameters: Optional[str] = None,
    ) -> BenchmarkResult:
        """
        Benchmark one command.

        Args:
            command: Command to execute
            parameters: Parameter values recorded with the result
            command_with_unused_parameters: Disambiguated command line

        Returns:
            Aggregated BenchmarkResult for all runs
        """
        name = command.display_name()
        logger.info("Benchmarking '%s' with %s runs", name, self.config.runs)

        results: list[TimerResult] = []
        with measurement_context(command=name):
            for run in range(1, self.config.runs + 1):
                with measurement_context(attempt=run):
                    result = self._run_once(command, run)
                results.append(result)
                if self._on_result:
                    self._on_result(run, result)

        return build_benchmark_result(
            name,
            results,
            parameters=parameters,
            command_with_unused_parameters=command_with_unused_parameters,
            keep_times=self.config.keep_times,
            report_custom_metrics=self.config.report_custom_metrics,
        )

    def _run_once(self, command: CommandSpec, run: int) -> TimerResult:
        name = command.display_name()
        result = self._execute(
            command,
            self.config.output_policy,
            self.config.collect_memory_usage,
            attempt=run,
        )
        if not result.status.success:
            if not self.config.ignore_failure:
                raise CommandFailedError(
                    f"Command terminated with {result.status}",
                    context={
                        "command": name,
                        "attempt": run,
                        "exit_code": result.status.code,
                        "signal": result.status.signal,
                    },
                )
            logger.warning("Run %s of '%s' failed: %s", run, name, result.status)
        return result
