"""Shared helpers for cmd-timing-lib."""

from ct_common.api import CTError, configure_logging

__all__ = ["configure_logging", "CTError"]
