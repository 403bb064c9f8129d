"""Shared error taxonomy for cmd-timing-lib."""

from __future__ import annotations

from typing import Any, Mapping


def _normalize_context_value(value: Any) -> Any:
    if isinstance(value, Mapping):
        return normalize_context(value)
    if isinstance(value, (list, tuple)):
        return [_normalize_context_value(item) for item in value]
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    return str(value)


def normalize_context(context: Mapping[str, Any]) -> dict[str, Any]:
    """Return a JSON-friendly copy of an error context mapping."""
    return {key: _normalize_context_value(val) for key, val in context.items()}


class CTError(Exception):
    """Base error type for typed failure handling."""

    def __init__(
        self,
        message: str,
        *,
        context: Mapping[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.context = normalize_context(context or {})
        if cause is not None:
            self.__cause__ = cause

    @property
    def error_type(self) -> str:
        return self.__class__.__name__

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.error_type, "message": str(self), "context": self.context}


class SpawnError(CTError):
    """The operating system refused or failed to create the child process."""


class TimerError(CTError):
    """A CPU or wall-clock timing primitive could not be read."""


class ReapError(CTError):
    """Waiting for the child or reading its resource usage failed."""


class MetricParseError(CTError):
    """Captured stdout could not be parsed as a custom metric."""


class CommandFailedError(CTError):
    """The benchmarked command terminated with a non-zero exit status."""


class ResultExportError(CTError):
    """Failure writing benchmark results to disk."""


class ConfigurationError(CTError):
    """Failure due to invalid configuration."""

