"""Output formatters for the plateau prevention chart data."""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional

import pandas as pd
from rich.console import Console
from rich.table import Table

from checkin.config.settings import MetricsConfig
from checkin.export.units import display_measure, length_unit_label, weight_unit_label
from checkin.tracking.models import WeeklyRecord
from checkin.tracking.rates import DEFAULT_METRICS, momentum_series
from checkin.tracking.series import normalize_series

VALID_FORMATS = ("table", "json", "markdown", "csv")
NOT_AVAILABLE = "N/A"


@dataclass
class ChartRow:
    """One plotted week."""

    week_number: int
    recorded_at: Optional[date]
    value: Optional[float]  # measurement in display units
    individual_delta: Optional[float]
    momentum_rate: Optional[float]
    overall_rate: Optional[float]
    trend: Optional[str]
    window_size: int


def build_chart_rows(
    records: Iterable[WeeklyRecord],
    measure: str = "quantity",
    unit_system: str = "imperial",
    config: MetricsConfig = DEFAULT_METRICS,
) -> list[ChartRow]:
    """
    One row per measured week, with rates where they are defined.

    The first measured week has no delta, so its rate columns are None.
    """
    records = list(records)
    rates = {r.week_number: r for r in momentum_series(records, config, measure)}

    rows = []
    for record in normalize_series(records, measure):
        rate = rates.get(record.week_number)
        rows.append(
            ChartRow(
                week_number=record.week_number,
                recorded_at=record.recorded_at,
                value=display_measure(record.measure(measure), measure, unit_system),
                individual_delta=rate.trend.current_delta if rate else None,
                momentum_rate=rate.momentum_rate if rate else None,
                overall_rate=rate.overall_rate if rate else None,
                trend=rate.trend.direction.value if rate else None,
                window_size=rate.window_size if rate else 0,
            )
        )
    return rows


def _pct(value: Optional[float], places: int = 2) -> str:
    if value is None:
        return NOT_AVAILABLE
    return f"{value:.{places}f}%"


def _num(value: Optional[float]) -> str:
    return NOT_AVAILABLE if value is None else f"{value:.1f}"


def _unit_label(measure: str, unit_system: str) -> str:
    if measure == "waist":
        return length_unit_label(unit_system)
    return weight_unit_label(unit_system)


class TableFormatter:
    """Format chart rows as a Rich table for terminal display."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def format(self, rows: list[ChartRow], measure: str, unit_system: str) -> None:
        label = "Waist" if measure == "waist" else "Weight"
        table = Table(title=f"Plateau Prevention ({label.lower()})")
        table.add_column("Week", justify="right", style="cyan")
        table.add_column("Date")
        table.add_column(f"{label} ({_unit_label(measure, unit_system)})", justify="right")
        table.add_column("Week change", justify="right")
        table.add_column("Momentum", justify="right", style="blue")
        table.add_column("Overall", justify="right")
        table.add_column("Trend")

        for row in rows:
            table.add_row(
                str(row.week_number),
                row.recorded_at.isoformat() if row.recorded_at else "",
                _num(row.value),
                _pct(row.individual_delta),
                _pct(row.momentum_rate),
                _pct(row.overall_rate),
                row.trend or "",
            )

        self.console.print(table)


class JSONFormatter:
    """Format chart rows as JSON for programmatic use."""

    def format(self, rows: list[ChartRow], measure: str, unit_system: str) -> str:
        data = {
            "measure": measure,
            "unit": _unit_label(measure, unit_system),
            "weeks": [
                {
                    "week_number": row.week_number,
                    "recorded_at": row.recorded_at.isoformat() if row.recorded_at else None,
                    "value": row.value,
                    "individual_delta": (
                        round(row.individual_delta, 4)
                        if row.individual_delta is not None
                        else None
                    ),
                    "momentum_rate": row.momentum_rate,
                    "overall_rate": (
                        round(row.overall_rate, 4) if row.overall_rate is not None else None
                    ),
                    "trend": row.trend,
                    "window_size": row.window_size,
                }
                for row in rows
            ],
        }
        return json.dumps(data, indent=2)


class MarkdownFormatter:
    """Format chart rows as a Markdown table."""

    def format(self, rows: list[ChartRow], measure: str, unit_system: str) -> str:
        unit = _unit_label(measure, unit_system)
        lines = [
            "# Plateau Prevention",
            "",
            f"| Week | Value ({unit}) | Week change | Momentum | Overall | Trend |",
            "|------|-------|-------------|----------|---------|-------|",
        ]
        for row in rows:
            lines.append(
                f"| {row.week_number} | {_num(row.value)} | {_pct(row.individual_delta)} "
                f"| {_pct(row.momentum_rate)} | {_pct(row.overall_rate)} | {row.trend or ''} |"
            )
        return "\n".join(lines)


class CSVFormatter:
    """Format chart rows as CSV for spreadsheets and plotting tools."""

    def format(self, rows: list[ChartRow], measure: str, unit_system: str) -> str:
        df = pd.DataFrame(
            [
                {
                    "week_number": row.week_number,
                    "recorded_at": row.recorded_at.isoformat() if row.recorded_at else None,
                    measure: row.value,
                    "individual_delta": row.individual_delta,
                    "momentum_rate": row.momentum_rate,
                    "overall_rate": row.overall_rate,
                    "trend": row.trend,
                    "window_size": row.window_size,
                }
                for row in rows
            ],
            columns=[
                "week_number",
                "recorded_at",
                measure,
                "individual_delta",
                "momentum_rate",
                "overall_rate",
                "trend",
                "window_size",
            ],
        )
        return df.to_csv(index=False)


def format_chart(
    rows: list[ChartRow],
    output_format: str = "table",
    measure: str = "quantity",
    unit_system: str = "imperial",
    console: Optional[Console] = None,
) -> Optional[str]:
    """Format chart rows in the specified format.

    Args:
        rows: Rows from build_chart_rows
        output_format: One of 'table', 'json', 'markdown', 'csv'
        measure: Measurement the rows were built from
        unit_system: 'imperial' or 'metric'
        console: Rich console (for table format)

    Returns:
        Formatted string, or None for table (prints directly)

    Raises:
        ValueError: If output_format is unknown
    """
    if output_format == "table":
        TableFormatter(console).format(rows, measure, unit_system)
        return None
    elif output_format == "json":
        return JSONFormatter().format(rows, measure, unit_system)
    elif output_format == "markdown":
        return MarkdownFormatter().format(rows, measure, unit_system)
    elif output_format == "csv":
        return CSVFormatter().format(rows, measure, unit_system)
    raise ValueError(f"Unknown output format: {output_format}. Use one of {VALID_FORMATS}")
