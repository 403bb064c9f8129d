"""Logging setup for the harness: stdlib loggers rendered by structlog.

Every module logs through ``logging.getLogger(__name__)``. Records pass
through a structlog ``ProcessorFormatter`` whose chain merges the context
bound with :func:`measurement_context`, so log lines emitted while a command
is being measured carry ``command`` and ``attempt`` fields.
"""

from __future__ import annotations

import contextlib
import logging
import os
import sys
from typing import Any, Iterator, Optional

import structlog

ENV_LEVEL = "CT_LOG_LEVEL"
ENV_JSON = "CT_LOG_JSON"
ENV_FILE = "CT_LOG_FILE"

# Quiet unless asked: harness output must not interleave with a child's
# inherited stdout.
DEFAULT_LEVEL = logging.WARNING


def _resolve_level(value: str | int | None, debug: bool) -> int:
    if debug:
        return logging.DEBUG
    if value is None:
        return DEFAULT_LEVEL
    if isinstance(value, int):
        return value
    try:
        return int(value)
    except (TypeError, ValueError):
        pass
    return logging._nameToLevel.get(value.upper(), DEFAULT_LEVEL)


def _resolve_bool(value: str | None) -> Optional[bool]:
    if value is None:
        return None
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _shared_processors() -> list:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]


@contextlib.contextmanager
def measurement_context(command: str | None = None, attempt: int | None = None) -> Iterator[None]:
    """Bind the measured command and/or run number to every log record.

    Nested uses add fields; on exit the previous bindings are restored.
    """
    fields: dict[str, Any] = {}
    if command is not None:
        fields["command"] = command
    if attempt is not None:
        fields["attempt"] = attempt
    with structlog.contextvars.bound_contextvars(**fields):
        yield


def configure_logging(
    *,
    level: str | int | None = None,
    debug: bool = False,
    log_file: str | None = None,
    json: bool | None = None,
    force: bool = False,
) -> None:
    """Route stdlib logging through structlog renderers.

    Explicit arguments win over ``CT_LOG_LEVEL``, ``CT_LOG_JSON`` and
    ``CT_LOG_FILE``. Without ``force`` an already configured root logger is
    left alone.
    """
    structlog.configure(
        processors=_shared_processors() + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    root_logger = logging.getLogger()
    if root_logger.handlers and not force:
        return

    env_json = _resolve_bool(os.environ.get(ENV_JSON))
    resolved_json = env_json if json is None else json
    resolved_log_file = os.environ.get(ENV_FILE) if log_file is None else log_file

    renderer: structlog.types.Processor
    if resolved_json:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()
    formatter = structlog.stdlib.ProcessorFormatter(
        processor=renderer,
        foreign_pre_chain=_shared_processors(),
    )

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if resolved_log_file:
        handlers.append(logging.FileHandler(resolved_log_file))

    if force:
        root_logger.handlers.clear()
    root_logger.setLevel(_resolve_level(level or os.environ.get(ENV_LEVEL), debug))
    for handler in handlers:
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)
