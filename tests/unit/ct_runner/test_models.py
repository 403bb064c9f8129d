"""Tests for command and result models."""

from __future__ import annotations

import contextlib
import subprocess
from pathlib import Path

import pytest
from pydantic import ValidationError

from ct_runner.models.command import CommandOutputPolicy, CommandSpec, StreamTarget, _stream_arg
from ct_runner.models.results import BenchmarkResult, ExitStatus, TimerResult


pytestmark = pytest.mark.unit_runner


def _benchmark(**overrides) -> BenchmarkResult:
    data = dict(
        command="sleep 1",
        command_with_unused_parameters="sleep 1 (size = 3)",
        mean=1.0,
        stddev=None,
        median=1.0,
        user=0.001,
        system=0.002,
        min=1.0,
        max=1.0,
        exit_codes=[0],
    )
    data.update(overrides)
    return BenchmarkResult(**data)


class TestExitStatus:
    def test_normal_exit(self) -> None:
        status = ExitStatus.from_returncode(7)
        assert status.code == 7
        assert status.signal is None
        assert not status.success
        assert str(status) == "exit code 7"

    def test_signal(self) -> None:
        status = ExitStatus.from_returncode(-9)
        assert status.code is None
        assert status.signal == 9
        assert "signal 9" in str(status)


class TestTimerResult:
    def test_defaults(self) -> None:
        result = TimerResult(0.1, 0.01, 0.02, ExitStatus(0))
        assert result.custom_metric == 0.0
        assert result.mem_usage is None
        assert result.exit_code == 0

    def test_rejects_negative_times(self) -> None:
        with pytest.raises(ValueError):
            TimerResult(-0.1, 0.0, 0.0, ExitStatus(0))

    def test_is_immutable(self) -> None:
        result = TimerResult(0.1, 0.01, 0.02, ExitStatus(0))
        with pytest.raises(AttributeError):
            result.time_real = 1.0  # type: ignore[misc]


class TestBenchmarkResult:
    def test_export_omits_uncollected_fields(self) -> None:
        exported = _benchmark().to_export_dict()
        assert "command_with_unused_parameters" not in exported
        assert "times" not in exported
        assert "custom_metrics" not in exported
        assert "mem_usage" not in exported
        assert "parameters" not in exported
        assert exported["stddev"] is None
        assert exported["exit_codes"] == [0]

    def test_export_keeps_collected_fields(self) -> None:
        result = _benchmark(
            times=[1.0],
            custom_metrics=[4.0],
            mem_usage=[1024],
            parameters={"size": "3"},
        )
        exported = result.to_export_dict()
        assert exported["times"] == [1.0]
        assert exported["custom_metrics"] == [4.0]
        assert exported["mem_usage"] == [1024]
        assert exported["parameters"] == {"size": "3"}

    def test_parameters_are_sorted(self) -> None:
        result = _benchmark(parameters={"b": "2", "a": "1"})
        assert result.parameter_items() == [("a", "1"), ("b", "2")]

    def test_lengths_must_match_runs(self) -> None:
        with pytest.raises(ValidationError):
            _benchmark(exit_codes=[0, 0], mem_usage=[1])
        with pytest.raises(ValidationError):
            _benchmark(custom_metrics=[1.0, 2.0])

    def test_is_frozen(self) -> None:
        with pytest.raises(ValidationError):
            _benchmark().mean = 3.0  # type: ignore[misc]


class TestCommandSpec:
    def test_requires_argv(self) -> None:
        with pytest.raises(ValidationError):
            CommandSpec(argv=[])

    def test_file_target_requires_path(self) -> None:
        with pytest.raises(ValidationError):
            CommandSpec(argv=["true"], stdout=StreamTarget.FILE)

    def test_stderr_cannot_be_piped(self) -> None:
        with pytest.raises(ValidationError):
            CommandSpec(argv=["true"], stderr=StreamTarget.PIPE)

    def test_report_policy_forces_pipe(self) -> None:
        spec = CommandSpec.for_policy(
            ["echo", "1"], CommandOutputPolicy.REPORT, stdout=StreamTarget.INHERIT
        )
        assert spec.pipes_stdout

    def test_display_name_quotes_arguments(self) -> None:
        spec = CommandSpec(argv=["echo", "hello world"])
        assert spec.display_name() == "echo 'hello world'"

    def test_open_streams_builds_popen_kwargs(self, tmp_path: Path) -> None:
        target = tmp_path / "out.log"
        spec = CommandSpec(
            argv=["true"],
            stdout=StreamTarget.FILE,
            stdout_path=target,
            stderr=StreamTarget.INHERIT,
            cwd=tmp_path,
            env={"A": "1"},
        )
        with spec.open_streams() as kwargs:
            handle = kwargs["stdout"]
            assert kwargs["stdin"] == subprocess.DEVNULL
            assert kwargs["stderr"] is None
            assert kwargs["cwd"] == tmp_path
            assert kwargs["env"] == {"A": "1"}
            assert not handle.closed
        assert handle.closed
        assert target.exists()


def test_file_stream_without_path_is_rejected() -> None:
    with contextlib.ExitStack() as stack:
        with pytest.raises(ValueError, match="needs a path"):
            _stream_arg(StreamTarget.FILE, None, stack)
