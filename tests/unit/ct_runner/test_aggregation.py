"""Tests for BenchmarkResult aggregation."""

from __future__ import annotations

import statistics

import pytest

from ct_runner.models.results import ExitStatus, TimerResult
from ct_runner.services.aggregation import build_benchmark_result


pytestmark = pytest.mark.unit_runner


def _timer(real: float, code: int = 0, metric: float = 0.0, mem=None) -> TimerResult:
    return TimerResult(
        time_real=real,
        time_user=real / 2,
        time_system=real / 4,
        status=ExitStatus.from_returncode(code),
        custom_metric=metric,
        mem_usage=mem,
    )


def test_single_run_has_no_stddev() -> None:
    result = build_benchmark_result("true", [_timer(0.5)])
    assert result.stddev is None
    assert result.mean == result.median == result.min == result.max == 0.5
    assert result.exit_codes == [0]


@pytest.mark.parametrize("runs", [2, 3, 10])
def test_statistics_over_runs(runs: int) -> None:
    reals = [0.1 * (i + 1) for i in range(runs)]
    result = build_benchmark_result("cmd", [_timer(r) for r in reals])
    assert len(result.exit_codes) == runs
    assert result.stddev == pytest.approx(statistics.stdev(reals))
    assert result.mean == pytest.approx(statistics.mean(reals))
    assert result.median == pytest.approx(statistics.median(reals))
    assert result.user == pytest.approx(statistics.mean(reals) / 2)
    assert result.system == pytest.approx(statistics.mean(reals) / 4)
    assert result.min == pytest.approx(min(reals))
    assert result.max == pytest.approx(max(reals))


def test_optional_sequences() -> None:
    timers = [_timer(0.2, metric=1.5, mem=100), _timer(0.3, code=-9, metric=2.5, mem=200)]
    result = build_benchmark_result(
        "cmd",
        timers,
        keep_times=True,
        report_custom_metrics=True,
        parameters={"n": "4"},
        command_with_unused_parameters="cmd (n = 4)",
    )
    assert result.times == [0.2, 0.3]
    assert result.exit_codes == [0, None]
    assert result.custom_metrics == [1.5, 2.5]
    assert result.mem_usage == [100, 200]
    assert result.parameters == {"n": "4"}
    assert result.command_with_unused_parameters == "cmd (n = 4)"


def test_uncollected_sequences_are_absent() -> None:
    result = build_benchmark_result("cmd", [_timer(0.2), _timer(0.4)])
    assert result.times is None
    assert result.custom_metrics is None
    assert result.mem_usage is None
    assert result.command_with_unused_parameters == "cmd"


def test_rejects_empty_input() -> None:
    with pytest.raises(ValueError):
        build_benchmark_result("cmd", [])
