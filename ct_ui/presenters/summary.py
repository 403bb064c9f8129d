"""Presenter for benchmark summaries."""

from __future__ import annotations

from typing import Optional

from rich.markup import escape
from rich.table import Table

from ct_runner.models.results import BenchmarkResult


def format_seconds(value: Optional[float]) -> str:
    """Render a duration in µs, ms or s."""
    if value is None:
        return "-"
    if value < 1e-3:
        return f"{value * 1e6:.1f} µs"
    if value < 1.0:
        return f"{value * 1e3:.1f} ms"
    return f"{value:.3f} s"


def format_bytes(value: Optional[int]) -> str:
    if value is None:
        return "-"
    size = float(value)
    for unit in ("B", "KiB", "MiB", "GiB"):
        if size < 1024 or unit == "GiB":
            return f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} GiB"


def build_summary_table(result: BenchmarkResult) -> Table:
    """Transform a BenchmarkResult into a two-column Rich table."""
    table = Table(title=f"Benchmark: {escape(result.command)}", show_header=True, header_style="bold magenta")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")

    table.add_row("Runs", str(result.runs))
    table.add_row("Mean", format_seconds(result.mean))
    table.add_row("Std dev", format_seconds(result.stddev))
    table.add_row("Median", format_seconds(result.median))
    table.add_row("User", format_seconds(result.user))
    table.add_row("System", format_seconds(result.system))
    table.add_row("Range", f"{format_seconds(result.min)} … {format_seconds(result.max)}")

    failed = sum(1 for code in result.exit_codes if code != 0)
    if failed:
        table.add_row("Failed runs", f"[red]{failed}[/red]")
    if result.custom_metrics is not None:
        mean_metric = sum(result.custom_metrics) / len(result.custom_metrics)
        table.add_row("Custom metric (mean)", f"{mean_metric:g}")
    if result.mem_usage is not None:
        peaks = [m for m in result.mem_usage if m is not None]
        table.add_row("Peak memory (max)", format_bytes(max(peaks)) if peaks else "-")
    for name, value in result.parameter_items():
        table.add_row(f"Parameter {escape(name)}", escape(value))
    return table
