"""Measurement configuration (runner/CLI definition)."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, ValidationError

from ct_common.errors import ConfigurationError
from ct_runner.models.command import CommandOutputPolicy


class MeasureConfig(BaseModel):
    """Configuration for measuring one command."""

    runs: int = Field(default=10, gt=0, description="Number of invocations of the command")
    output_policy: CommandOutputPolicy = Field(
        default=CommandOutputPolicy.DISCARD,
        description="Treat stdout as a custom-metric channel (report) or drain it (discard)",
    )
    collect_memory_usage: bool = Field(default=False, description="Collect peak RSS of every invocation")
    ignore_failure: bool = Field(default=False, description="Keep going when the command exits non-zero")
    keep_times: bool = Field(default=False, description="Keep every wall-clock measurement in the result")

    export_json: Optional[Path] = Field(default=None, description="Write results as JSON to this path")
    export_csv: Optional[Path] = Field(default=None, description="Write results as CSV to this path")

    @property
    def report_custom_metrics(self) -> bool:
        return self.output_policy is CommandOutputPolicy.REPORT

    @classmethod
    def from_json(cls, json_str: str) -> "MeasureConfig":
        try:
            return cls.model_validate_json(json_str)
        except ValidationError as exc:
            raise ConfigurationError("Invalid measurement configuration", cause=exc) from exc

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MeasureConfig":
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise ConfigurationError("Invalid measurement configuration", cause=exc) from exc

    def save(self, filepath: Path) -> None:
        filepath.write_text(self.model_dump_json(indent=2))

    @classmethod
    def load(cls, filepath: Path) -> "MeasureConfig":
        try:
            raw = filepath.read_text()
        except OSError as exc:
            raise ConfigurationError(
                "Cannot read configuration file",
                context={"path": filepath},
                cause=exc,
            ) from exc
        return cls.from_json(raw)
