"""Consumers for the child's piped stdout."""

from __future__ import annotations

import logging
import os
from typing import BinaryIO

from ct_common.errors import MetricParseError
from ct_runner.models.command import CommandOutputPolicy
from ct_runner.models.results import CustomMetric

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 << 10


def _splice_to_devnull(output: BinaryIO) -> bool:
    """Move the stream to /dev/null inside the kernel.

    Returns True when EOF was reached, False when the caller has to fall back
    to reading (splice unavailable, or it failed part way).
    """
    splice = getattr(os, "splice", None)
    if splice is None:
        return False
    try:
        src = output.fileno()
        with open(os.devnull, "wb") as sink:
            dst = sink.fileno()
            while True:
                if splice(src, dst, CHUNK_SIZE) == 0:
                    return True
    except (OSError, ValueError) as exc:
        logger.debug("splice unavailable for stdout, using buffered reads: %s", exc)
        return False


def _read_to_eof(output: BinaryIO, buffer: bytearray) -> None:
    view = memoryview(buffer)
    while True:
        read = output.readinto(view)
        if not read:
            return


def discard(output: BinaryIO) -> None:
    """Drain ``output`` to EOF without keeping its content."""
    if _splice_to_devnull(output):
        return
    _read_to_eof(output, bytearray(CHUNK_SIZE))


def parse_custom_metric(text: str) -> CustomMetric:
    """Parse trimmed stdout as a float, raising MetricParseError otherwise."""
    stripped = text.strip()
    # float() also takes digit-group underscores and non-ASCII digits.
    if "_" in stripped or not stripped.isascii():
        raise MetricParseError(
            "stdout is not a plain decimal number",
            context={"output": stripped[:80]},
        )
    try:
        return float(stripped)
    except ValueError as exc:
        raise MetricParseError(
            "stdout is not a number",
            context={"output": stripped[:80]},
            cause=exc,
        ) from exc


def read_custom_metric(output: BinaryIO) -> CustomMetric:
    """Read the whole stream and return the reported metric.

    Output that is not a single number counts as "no metric" and yields 0.0.
    """
    text = output.read().decode("utf-8", errors="replace")
    try:
        return parse_custom_metric(text)
    except MetricParseError as exc:
        logger.debug("No custom metric reported, defaulting to 0.0: %s", exc.context)
        return 0.0


def consume(output: BinaryIO, policy: CommandOutputPolicy) -> CustomMetric:
    """Apply the output policy to a piped stdout and return the custom metric."""
    if policy is CommandOutputPolicy.REPORT:
        return read_custom_metric(output)
    discard(output)
    return 0.0
