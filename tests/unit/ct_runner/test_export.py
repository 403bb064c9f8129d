"""Tests for JSON and CSV exporters."""

from __future__ import annotations

import csv
import json
from pathlib import Path

import pytest

from ct_common.errors import ResultExportError
from ct_runner.models.command import CommandOutputPolicy, CommandSpec
from ct_runner.models.results import BenchmarkResult, ExitStatus, TimerResult
from ct_runner.services.aggregation import build_benchmark_result
from ct_runner.services.export import export_csv, export_json
from ct_runner.timer.execution import execute_and_measure


pytestmark = pytest.mark.unit_runner


def _result(command: str, parameters=None, **extra) -> BenchmarkResult:
    return BenchmarkResult(
        command=command,
        mean=0.5,
        stddev=0.1,
        median=0.5,
        user=0.2,
        system=0.1,
        min=0.4,
        max=0.6,
        exit_codes=[0, 0],
        parameters=parameters or {},
        **extra,
    )


def test_export_json_wraps_results(tmp_path: Path) -> None:
    path = tmp_path / "results.json"
    export_json([_result("a", mem_usage=[10, 20])], path)
    data = json.loads(path.read_text())
    assert list(data) == ["results"]
    entry = data["results"][0]
    assert entry["command"] == "a"
    assert entry["mem_usage"] == [10, 20]
    assert "times" not in entry
    assert "command_with_unused_parameters" not in entry


def test_export_csv_expands_parameters(tmp_path: Path) -> None:
    path = tmp_path / "results.csv"
    export_csv(
        [
            _result("sleep 1", parameters={"t": "1"}),
            _result("sleep 2", parameters={"t": "2", "mode": "fast"}),
        ],
        path,
    )
    with path.open(newline="") as handle:
        rows = list(csv.DictReader(handle))
    assert list(rows[0]) == [
        "command",
        "mean",
        "stddev",
        "median",
        "user",
        "system",
        "min",
        "max",
        "parameter_mode",
        "parameter_t",
    ]
    assert rows[0]["parameter_t"] == "1"
    assert rows[0]["parameter_mode"] == ""
    assert rows[1]["parameter_mode"] == "fast"
    assert float(rows[1]["mean"]) == 0.5


def test_export_failure_is_typed(tmp_path: Path) -> None:
    with pytest.raises(ResultExportError) as excinfo:
        export_json([_result("a")], tmp_path / "missing" / "out.json")
    assert excinfo.value.context["path"].endswith("out.json")


def _reject_constant(token: str):
    raise ValueError(f"non-standard JSON token {token}")


def test_export_json_writes_null_for_non_finite_metrics(tmp_path: Path, python_argv) -> None:
    spec = CommandSpec.for_policy(python_argv("print('nan')"), CommandOutputPolicy.REPORT)
    timings = [
        execute_and_measure(spec, CommandOutputPolicy.REPORT, False),
        TimerResult(0.1, 0.0, 0.0, ExitStatus(code=0), custom_metric=float("inf")),
    ]
    result = build_benchmark_result(
        spec.display_name(), timings, report_custom_metrics=True
    )
    path = tmp_path / "results.json"
    export_json([result], path)

    data = json.loads(path.read_text(), parse_constant=_reject_constant)
    assert data["results"][0]["custom_metrics"] == [None, None]
