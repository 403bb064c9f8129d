"""Writers for aggregated benchmark results."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Sequence

import pandas as pd

from ct_common.errors import ResultExportError
from ct_runner.models.results import BenchmarkResult


logger = logging.getLogger(__name__)

CSV_COLUMNS = ["command", "mean", "stddev", "median", "user", "system", "min", "max"]


def results_to_json(results: Sequence[BenchmarkResult]) -> str:
    return json.dumps(
        {"results": [r.to_export_dict() for r in results]}, indent=2, allow_nan=False
    )


def results_to_dataframe(results: Sequence[BenchmarkResult]) -> pd.DataFrame:
    """Tabular view of the results.

    ``parameters`` is a variable-width field, so every parameter name seen in
    any result gets its own ``parameter_<name>`` column.
    """
    parameter_names = sorted({name for r in results for name, _ in r.parameter_items()})
    rows: list[dict[str, Any]] = []
    for result in results:
        row: dict[str, Any] = {column: getattr(result, column) for column in CSV_COLUMNS}
        params = dict(result.parameter_items())
        for name in parameter_names:
            row[f"parameter_{name}"] = params.get(name, "")
        rows.append(row)
    columns = CSV_COLUMNS + [f"parameter_{name}" for name in parameter_names]
    return pd.DataFrame(rows, columns=columns)


def _write(path: Path, payload: str, fmt: str) -> None:
    try:
        path.write_text(payload)
    except OSError as exc:
        raise ResultExportError(
            f"Failed to write {fmt} export",
            context={"path": path},
            cause=exc,
        ) from exc
    logger.info("Saved %s results to %s", fmt, path)


def export_json(results: Sequence[BenchmarkResult], path: Path) -> None:
    _write(path, results_to_json(results), "json")


def export_csv(results: Sequence[BenchmarkResult], path: Path) -> None:
    _write(path, results_to_dataframe(results).to_csv(index=False), "csv")
