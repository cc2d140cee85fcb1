"""
app/services/export_service.py

Flat CSV export of dashboard datasets.

Datasets
--------
    aggregates   - current fuel / generator-load averages ("Today" row)
    accumulative - wide monthly accumulation rows, one column per city/metric
    breakdown    - per-region (or per-site) diesel and energy totals

Every field is double-quoted with embedded quotes doubled, so the output
round-trips through :func:`app.parsers.sheet_parser.parse_csv`.
"""

from __future__ import annotations

import csv
import io
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Sequence

from aggregation.scope import Scope
from app.services.dashboard_service import DashboardService
from trends.accumulation import to_wide_rows

VALID_DATASETS: frozenset[str] = frozenset({"aggregates", "accumulative", "breakdown"})


@dataclass
class ExportResult:
    """
    Flat tabular rows plus their ordered column names.
    """

    rows: list[dict[str, Any]] = field(default_factory=list)
    fields: list[str] = field(default_factory=list)


def to_csv(rows: Sequence[Mapping[str, Any]]) -> str:
    """
    Serialise *rows* with the first row's keys as header.

    ``None`` becomes an empty field; lines are joined with ``\\n`` and there
    is no trailing newline. No rows gives ``""``.
    """

    if not rows:
        return ""
    fieldnames = list(rows[0].keys())
    buf = io.StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(fieldnames)
    for row in rows:
        writer.writerow(["" if row.get(name) is None else row.get(name) for name in fieldnames])
    return buf.getvalue().rstrip("\n")


def iter_csv_lines(result: ExportResult) -> Iterable[str]:
    """Yield *result* line by line for streaming responses."""

    if not result.rows:
        return
    buf = io.StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(result.fields)
    yield buf.getvalue()
    for row in result.rows:
        buf.seek(0)
        buf.truncate(0)
        writer.writerow(["" if row.get(name) is None else row.get(name) for name in result.fields])
        yield buf.getvalue()


class ExportService:
    """
    Builds flat export rows from dashboard views.
    """

    def __init__(self, dashboard: DashboardService) -> None:
        self._dashboard = dashboard

    def export(
        self,
        dataset: str,
        *,
        scope: Scope,
        start: str | None = None,
        end: str | None = None,
        cities: Iterable[str] | None = None,
        by: str = "region",
    ) -> ExportResult:
        if dataset not in VALID_DATASETS:
            raise ValueError(f"Unknown dataset {dataset!r}. Must be one of: {sorted(VALID_DATASETS)}.")

        if dataset == "aggregates":
            rows = self._dashboard.current_aggregates(scope)
        elif dataset == "accumulative":
            rows = to_wide_rows(self._dashboard.accumulative(start, end, cities))
        else:
            rows = self._dashboard.breakdown(scope, by)["data"]

        return ExportResult(rows=list(rows), fields=_ordered_fields(rows))


def _ordered_fields(rows: Sequence[Mapping[str, Any]]) -> list[str]:
    seen: dict[str, None] = {}
    for row in rows:
        for key in row:
            seen.setdefault(key, None)
    return list(seen)
