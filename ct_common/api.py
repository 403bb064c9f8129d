"""Public API surface for ct_common."""

from ct_common.errors import (
    CTError,
    CommandFailedError,
    ConfigurationError,
    MetricParseError,
    ReapError,
    ResultExportError,
    SpawnError,
    TimerError,
)
from ct_common.logging import configure_logging, measurement_context

__all__ = [
    "configure_logging",
    "measurement_context",
    "CTError",
    "CommandFailedError",
    "ConfigurationError",
    "MetricParseError",
    "ReapError",
    "ResultExportError",
    "SpawnError",
    "TimerError",
]
