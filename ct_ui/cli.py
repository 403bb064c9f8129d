"""
Command-line interface for cmd-timing-lib.

Measures an external command: wall-clock time, user/system CPU time, exit
codes, and optionally peak memory and a custom metric reported on stdout.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional

import typer
from rich.console import Console
from rich.markup import escape

from ct_common.errors import CTError
from ct_common.logging import configure_logging
from ct_runner.engine.runner import BenchmarkRunner
from ct_runner.models.command import CommandOutputPolicy, CommandSpec, StreamTarget
from ct_runner.models.config import MeasureConfig
from ct_runner.models.results import TimerResult
from ct_runner.services.export import export_csv, export_json
from ct_ui.presenters.summary import build_summary_table, format_seconds

app = typer.Typer(help="Measure the execution cost of external commands.", no_args_is_help=True)
console = Console(stderr=True)


@app.callback()
def entry(
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging."),
    json_logs: bool = typer.Option(False, "--json-logs", help="Emit logs as JSON lines."),
) -> None:
    """Global options shared by all commands."""
    configure_logging(debug=debug, json=json_logs or None, force=True)


def _parse_parameters(values: List[str]) -> Dict[str, str]:
    parameters: Dict[str, str] = {}
    for item in values:
        name, sep, value = item.partition("=")
        if not sep or not name:
            raise typer.BadParameter(f"expected NAME=VALUE, got '{item}'", param_hint="--parameter")
        parameters[name] = value
    return parameters


def _stdout_target(output: str) -> tuple[StreamTarget, Optional[Path]]:
    lowered = output.lower()
    for target in (StreamTarget.NULL, StreamTarget.PIPE, StreamTarget.INHERIT):
        if lowered == target.value:
            return target, None
    return StreamTarget.FILE, Path(output)


def _resolve_config(config_path: Optional[Path], overrides: Dict[str, Any]) -> MeasureConfig:
    base = MeasureConfig.load(config_path) if config_path else MeasureConfig()
    data = base.model_dump()
    data.update({key: value for key, value in overrides.items() if value is not None})
    return MeasureConfig.from_dict(data)


def _report_error(error: CTError) -> None:
    payload = error.to_dict()
    console.print(f"[red]Error ({payload['type']}):[/red] {escape(payload['message'])}")
    for key, value in payload["context"].items():
        console.print(f"[dim]  {escape(key)}: {escape(str(value))}[/dim]")


@app.command("measure")
def measure(
    command: List[str] = typer.Argument(..., help="Command and arguments to benchmark (put them after --)."),
    runs: Optional[int] = typer.Option(None, "--runs", "-r", min=1, help="Number of runs."),
    output: str = typer.Option(
        "null",
        "--output",
        help="Where the command's stdout goes: null, pipe, inherit or a file path.",
    ),
    show_output: bool = typer.Option(False, "--show-output", help="Print stdout and stderr of the command."),
    custom_metric: Optional[bool] = typer.Option(
        None,
        "--custom-metric/--no-custom-metric",
        help="Parse the command's stdout as a numeric custom metric.",
    ),
    memory: Optional[bool] = typer.Option(
        None, "--memory/--no-memory", help="Collect peak memory usage of every run."
    ),
    ignore_failure: Optional[bool] = typer.Option(
        None, "--ignore-failure/--no-ignore-failure", help="Keep running when the command fails."
    ),
    keep_times: Optional[bool] = typer.Option(
        None, "--keep-times/--no-keep-times", help="Keep every run's wall-clock time in exports."
    ),
    parameter: Optional[List[str]] = typer.Option(
        None, "--parameter", "-p", help="Parameter NAME=VALUE recorded with the result."
    ),
    export_json_path: Optional[Path] = typer.Option(None, "--export-json", help="Write results as JSON."),
    export_csv_path: Optional[Path] = typer.Option(None, "--export-csv", help="Write results as CSV."),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Measurement config file (JSON)."),
) -> None:
    """Run COMMAND repeatedly and print a timing summary."""
    parameters = _parse_parameters(parameter or [])
    output_policy: Optional[CommandOutputPolicy] = None
    if custom_metric is not None:
        output_policy = CommandOutputPolicy.REPORT if custom_metric else CommandOutputPolicy.DISCARD
    try:
        cfg = _resolve_config(
            config,
            {
                "runs": runs,
                "output_policy": output_policy,
                "collect_memory_usage": memory,
                "ignore_failure": ignore_failure,
                "keep_times": keep_times,
                "export_json": export_json_path,
                "export_csv": export_csv_path,
            },
        )
    except CTError as exc:
        _report_error(exc)
        raise typer.Exit(1)

    if show_output:
        stdout, stdout_path = StreamTarget.INHERIT, None
        stderr = StreamTarget.INHERIT
    else:
        stdout, stdout_path = _stdout_target(output)
        stderr = StreamTarget.NULL
    spec = CommandSpec.for_policy(
        command,
        cfg.output_policy,
        stdout=stdout,
        stdout_path=stdout_path,
        stderr=stderr,
    )

    def _on_result(run: int, result: TimerResult) -> None:
        console.print(
            f"[dim]Run {run}/{cfg.runs}: {format_seconds(result.time_real)} "
            f"({result.status})[/dim]"
        )

    runner = BenchmarkRunner(cfg, on_result=_on_result)
    try:
        result = runner.run(spec, parameters=parameters)
        if cfg.export_json:
            export_json([result], cfg.export_json)
        if cfg.export_csv:
            export_csv([result], cfg.export_csv)
    except CTError as exc:
        _report_error(exc)
        raise typer.Exit(1)

    Console().print(build_summary_table(result))


def main() -> None:
    """Console script entrypoint (Typer app)."""
    app()


if __name__ == "__main__":
    main()
