"""Value objects produced by the timing harness and the aggregation layer."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

Second = float
CustomMetric = float
# Peak resident set size in bytes; None when it was not collected.
MemUsageMetric = Optional[int]


def _json_safe(value: Any) -> Any:
    # JSON has no NaN or Infinity; serialize them as null.
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, list):
        return [_json_safe(item) for item in value]
    if isinstance(value, dict):
        return {key: _json_safe(item) for key, item in value.items()}
    return value


@dataclass(frozen=True)
class ExitStatus:
    """Exit status of a reaped child process."""

    code: Optional[int]
    signal: Optional[int] = None

    @classmethod
    def from_returncode(cls, returncode: int) -> "ExitStatus":
        """Map a ``Popen.returncode`` (negative for signals) to an ExitStatus."""
        if returncode < 0:
            return cls(code=None, signal=-returncode)
        return cls(code=returncode)

    @property
    def success(self) -> bool:
        return self.code == 0

    def __str__(self) -> str:
        if self.code is not None:
            return f"exit code {self.code}"
        if self.signal is not None:
            return f"terminated by signal {self.signal}"
        return "unknown exit status"


@dataclass(frozen=True)
class TimerResult:
    """Measurements of exactly one command invocation."""

    time_real: Second
    time_user: Second
    time_system: Second
    status: ExitStatus
    custom_metric: CustomMetric = 0.0
    mem_usage: MemUsageMetric = None

    def __post_init__(self) -> None:
        for name in ("time_real", "time_user", "time_system"):
            if getattr(self, name) < 0:
                raise ValueError(f"TimerResult.{name} must be non-negative")

    @property
    def exit_code(self) -> Optional[int]:
        return self.status.code


class BenchmarkResult(BaseModel):
    """Aggregated outcome of all invocations of one benchmarked command.

    NOTE: the tabular exporter does not go through pydantic serialization
    because of the variable-width ``parameters`` map. Update
    ``ct_runner.services.export`` when adding fields.
    """

    model_config = ConfigDict(frozen=True)

    command: str = Field(description="Full command line of the benchmarked program")
    command_with_unused_parameters: str = Field(
        default="",
        exclude=True,
        description="Command line plus parameters that do not appear in the template",
    )
    mean: Second = Field(description="Average wall-clock time")
    stddev: Optional[Second] = Field(
        default=None,
        description="Standard deviation of wall-clock times; None for a single run",
    )
    median: Second = Field(description="Median wall-clock time")
    user: Second = Field(description="Time spent in user mode")
    system: Second = Field(description="Time spent in kernel mode")
    min: Second = Field(description="Minimum of all measured wall-clock times")
    max: Second = Field(description="Maximum of all measured wall-clock times")
    times: Optional[List[Second]] = Field(default=None, description="All wall-clock measurements")
    exit_codes: List[Optional[int]] = Field(description="Exit codes of all invocations")
    custom_metrics: Optional[List[CustomMetric]] = Field(default=None)
    mem_usage: Optional[List[MemUsageMetric]] = Field(default=None)
    parameters: Dict[str, str] = Field(default_factory=dict)

    @field_validator("parameters")
    @classmethod
    def _sort_parameters(cls, value: Dict[str, str]) -> Dict[str, str]:
        return dict(sorted(value.items()))

    @model_validator(mode="after")
    def _validate_lengths(self) -> "BenchmarkResult":
        runs = len(self.exit_codes)
        for name in ("times", "custom_metrics", "mem_usage"):
            values = getattr(self, name)
            if values is not None and len(values) != runs:
                raise ValueError(
                    f"BenchmarkResult: '{name}' has {len(values)} entries, expected {runs}"
                )
        return self

    @property
    def runs(self) -> int:
        return len(self.exit_codes)

    def parameter_items(self) -> list[tuple[str, str]]:
        """Return the parameter key/value pairs in sorted order."""
        return list(self.parameters.items())

    def to_export_dict(self) -> dict[str, Any]:
        """Serialize for JSON export, omitting values that were not collected."""
        data = _json_safe(self.model_dump())
        for name in ("times", "custom_metrics", "mem_usage"):
            if data.get(name) is None:
                data.pop(name, None)
        if not data.get("parameters"):
            data.pop("parameters", None)
        return data
