"""Process execution timing harness."""

from ct_runner.timer.execution import execute_and_measure
from ct_runner.timer.wall_clock import WallClockTimer

__all__ = ["execute_and_measure", "WallClockTimer"]
