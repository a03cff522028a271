"""CLI interface using Typer."""

from __future__ import annotations

import json
import logging
import sqlite3
from datetime import date
from pathlib import Path
from typing import NoReturn, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from checkin.config import get_settings, reload_settings
from checkin.db import get_db, set_db
from checkin.tracking.models import Patient

app = typer.Typer(
    help="Weekly check-in tracking with plateau prevention metrics",
    no_args_is_help=True,
)
console = Console()

# Subcommand groups
patient_app = typer.Typer(help="Manage patients")
record_app = typer.Typer(help="Log and edit weekly check-ins")
metrics_app = typer.Typer(help="Plateau prevention, overall rate and trend")
config_app = typer.Typer(help="Show or create the configuration file")

app.add_typer(patient_app, name="patient")
app.add_typer(record_app, name="record")
app.add_typer(metrics_app, name="metrics")
app.add_typer(config_app, name="config")

MEASURES = {"weight": "quantity", "waist": "waist"}


# ============================================================================
# Helpers
# ============================================================================


def output_json(response: dict, file=None) -> None:
    """Output JSON response to stdout or file."""
    json_str = json.dumps(response, indent=2)
    if file:
        file.write(json_str)
    else:
        print(json_str)


def setup_logging(level: str) -> None:
    """Send log records to stderr through Rich."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True)],
        force=True,
    )


def fail(
    command: str, message: str, json_output: bool, suggestion: Optional[str] = None
) -> NoReturn:
    """Report an error and exit with status 1."""
    if json_output:
        response: dict = {"success": False, "command": command, "errors": [message]}
        if suggestion:
            response["suggestions"] = [suggestion]
        output_json(response)
    else:
        console.print(f"[red]{message}[/red]")
        if suggestion:
            console.print(suggestion)
    raise typer.Exit(1)


def resolve_patient(
    conn: sqlite3.Connection,
    patient_id: Optional[int],
    command: str,
    json_output: bool,
) -> Patient:
    """Load the requested patient, or the first one, or exit."""
    from checkin.tracking.queries import PatientQueries

    if patient_id:
        patient = PatientQueries.get_patient(conn, patient_id)
    else:
        patient = PatientQueries.get_default_patient(conn)

    if patient is None:
        fail(
            command,
            "No patient found",
            json_output,
            "Create one first: checkin patient add <name>",
        )
    return patient


def resolve_measure(measure: str, command: str, json_output: bool) -> str:
    if measure not in MEASURES:
        fail(command, f"Unknown measure '{measure}'. Use one of: {', '.join(MEASURES)}", json_output)
    return MEASURES[measure]


def pct(value: Optional[float], places: int = 2) -> str:
    return "N/A" if value is None else f"{value:.{places}f}%"


@app.callback()
def main(
    config: Optional[Path] = typer.Option(
        None, "--config", help="Path to config.yaml (default: ~/.checkin/config.yaml)"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Load settings, configure logging and make sure tables exist."""
    if config is not None:
        reload_settings(config)
        set_db(None)
    settings = get_settings()
    setup_logging("DEBUG" if verbose else settings.logging.level)
    get_db().initialize_schema()


# ============================================================================
# Patient Commands
# ============================================================================


@patient_app.command("add")
def patient_add(
    name: str = typer.Argument(..., help="Patient full name"),
    goal_rate: Optional[float] = typer.Option(
        None, "--goal-rate", help="Target loss rate in % of body weight per week"
    ),
    protein: Optional[float] = typer.Option(None, "--protein", help="Daily protein goal (g)"),
    units: Optional[str] = typer.Option(
        None, "--units", help="imperial or metric (default: display.units setting)"
    ),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Create a patient."""
    from checkin.tracking.queries import PatientQueries

    try:
        patient = Patient(
            patient_id=None,
            full_name=name,
            goal_rate_percent=goal_rate,
            protein_goal_grams=protein,
            unit_system=units or get_settings().display.units,
        )
    except ValueError as e:
        fail("patient add", str(e), json_output)

    with get_db().get_connection() as conn:
        patient_id = PatientQueries.create_patient(conn, patient)

    if json_output:
        output_json({
            "success": True,
            "command": "patient add",
            "data": {"patient_id": patient_id, "full_name": name},
            "human_summary": f"Created patient {patient_id}: {name}",
        })
    else:
        console.print(f"[green]Created patient {patient_id}:[/green] {name}")


@patient_app.command("list")
def patient_list(
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """List patients."""
    from checkin.tracking.queries import PatientQueries

    with get_db().get_connection() as conn:
        patients = PatientQueries.list_patients(conn)

    if json_output:
        output_json({
            "success": True,
            "command": "patient list",
            "data": {
                "patients": [
                    {
                        "patient_id": p.patient_id,
                        "full_name": p.full_name,
                        "goal_rate_percent": p.goal_rate_percent,
                        "protein_goal_grams": p.protein_goal_grams,
                        "unit_system": p.unit_system,
                    }
                    for p in patients
                ]
            },
            "human_summary": f"{len(patients)} patients",
        })
        return

    if not patients:
        console.print("No patients found")
        return

    table = Table(title="Patients")
    table.add_column("ID", justify="right", style="cyan")
    table.add_column("Name")
    table.add_column("Goal rate", justify="right")
    table.add_column("Protein", justify="right")
    table.add_column("Units")
    for p in patients:
        table.add_row(
            str(p.patient_id),
            p.full_name,
            pct(p.goal_rate_percent, 1),
            f"{p.protein_goal_grams:.0f} g" if p.protein_goal_grams else "",
            p.unit_system,
        )
    console.print(table)


# ============================================================================
# Weekly Record Commands
# ============================================================================


@record_app.command("add")
def record_add(
    week: int = typer.Argument(..., help="Week number (0 = baseline)"),
    weight: Optional[float] = typer.Option(None, "--weight", "-w", help="Weight in lbs"),
    waist: Optional[float] = typer.Option(None, "--waist", help="Waist in inches"),
    date_str: Optional[str] = typer.Option(
        None, "--date", "-d", help="Check-in date (YYYY-MM-DD, default: today)"
    ),
    notes: Optional[str] = typer.Option(None, "--notes", "-n", help="Optional notes"),
    patient_id: Optional[int] = typer.Option(None, "--patient", help="Patient ID (default: first)"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Add or replace a weekly check-in."""
    from checkin.tracking.queries import RecordQueries
    from checkin.tracking.rates import aggregate_rate

    settings = get_settings()

    try:
        recorded_at = date.fromisoformat(date_str) if date_str else date.today()
    except ValueError:
        fail("record add", f"Invalid date '{date_str}', expected YYYY-MM-DD", json_output)

    with get_db().get_connection() as conn:
        patient = resolve_patient(conn, patient_id, "record add", json_output)
        try:
            record = RecordQueries.upsert_record(
                conn,
                patient.patient_id,  # type: ignore[arg-type]
                week,
                weight=weight,
                waist=waist,
                recorded_at=recorded_at,
                notes=notes,
            )
        except ValueError as e:
            fail("record add", str(e), json_output)
        records = RecordQueries.get_records(conn, patient.patient_id)  # type: ignore[arg-type]

    rate = aggregate_rate(records, week, settings.metrics)

    if json_output:
        output_json({
            "success": True,
            "command": "record add",
            "data": {
                "week_number": record.week_number,
                "weight": record.quantity,
                "waist": record.waist,
                "recorded_at": record.recorded_at.isoformat() if record.recorded_at else None,
                "momentum_rate": rate.momentum_rate,
            },
            "human_summary": f"Saved week {week}, momentum {pct(rate.momentum_rate)}",
        })
    else:
        console.print(f"[green]Saved week {week}[/green] for {patient.full_name}")
        console.print(f"[blue]Plateau prevention:[/blue] {pct(rate.momentum_rate)}")


@record_app.command("list")
def record_list(
    patient_id: Optional[int] = typer.Option(None, "--patient", help="Patient ID"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """List weekly check-ins."""
    from checkin.tracking.queries import RecordQueries

    with get_db().get_connection() as conn:
        patient = resolve_patient(conn, patient_id, "record list", json_output)
        records = RecordQueries.get_records(conn, patient.patient_id)  # type: ignore[arg-type]

    if json_output:
        output_json({
            "success": True,
            "command": "record list",
            "data": {
                "records": [
                    {
                        "week_number": r.week_number,
                        "weight": r.quantity,
                        "waist": r.waist,
                        "recorded_at": r.recorded_at.isoformat() if r.recorded_at else None,
                        "notes": r.notes,
                    }
                    for r in records
                ]
            },
            "human_summary": f"{len(records)} check-ins",
        })
        return

    if not records:
        console.print("No check-ins found")
        return

    table = Table(title=f"Check-ins: {patient.full_name}")
    table.add_column("Week", justify="right", style="cyan")
    table.add_column("Date")
    table.add_column("Weight", justify="right")
    table.add_column("Waist", justify="right")
    table.add_column("Notes")
    for r in records:
        table.add_row(
            str(r.week_number),
            r.recorded_at.isoformat() if r.recorded_at else "",
            f"{r.quantity:.1f}" if r.quantity is not None else "",
            f"{r.waist:.1f}" if r.waist is not None else "",
            r.notes or "",
        )
    console.print(table)


@record_app.command("delete")
def record_delete(
    week: int = typer.Argument(..., help="Week number to delete"),
    patient_id: Optional[int] = typer.Option(None, "--patient", help="Patient ID"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Delete a weekly check-in."""
    from checkin.tracking.queries import RecordQueries

    with get_db().get_connection() as conn:
        patient = resolve_patient(conn, patient_id, "record delete", json_output)
        deleted = RecordQueries.delete_record(conn, patient.patient_id, week)  # type: ignore[arg-type]

    if not deleted:
        fail("record delete", f"No check-in for week {week}", json_output)

    if json_output:
        output_json({
            "success": True,
            "command": "record delete",
            "data": {"week_number": week},
            "human_summary": f"Deleted week {week}",
        })
    else:
        console.print(f"[green]Deleted week {week}[/green]")


@record_app.command("import")
def record_import(
    csv_path: Path = typer.Argument(..., help="CSV with week_number,weight,waist,date,notes"),
    patient_id: Optional[int] = typer.Option(None, "--patient", help="Patient ID"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Import weekly check-ins from a CSV file."""
    from checkin.tracking.loader import CheckinLoader

    if not csv_path.exists():
        fail("record import", f"File not found: {csv_path}", json_output)

    with get_db().get_connection() as conn:
        patient = resolve_patient(conn, patient_id, "record import", json_output)
        loader = CheckinLoader(conn, patient.patient_id)  # type: ignore[arg-type]
        try:
            counts = loader.load_from_csv(csv_path)
        except ValueError as e:
            fail("record import", str(e), json_output)

    if json_output:
        output_json({
            "success": True,
            "command": "record import",
            "data": counts,
            "human_summary": f"Imported {counts['loaded']} weeks",
        })
    else:
        console.print(f"[green]Imported {counts['loaded']} weeks[/green]")
        if counts["skipped_invalid_week"]:
            console.print(
                f"[yellow]Skipped {counts['skipped_invalid_week']} rows with an invalid week number[/yellow]"
            )


# ============================================================================
# Metrics Commands
# ============================================================================


@metrics_app.command("show")
def metrics_show(
    week: int = typer.Argument(..., help="Target week"),
    measure: str = typer.Option("weight", "--measure", "-m", help="weight or waist"),
    patient_id: Optional[int] = typer.Option(None, "--patient", help="Patient ID"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Show momentum, overall rate and trend for one week."""
    from checkin.tracking.queries import RecordQueries
    from checkin.tracking.rates import aggregate_rate

    settings = get_settings()
    quantity = resolve_measure(measure, "metrics show", json_output)

    with get_db().get_connection() as conn:
        patient = resolve_patient(conn, patient_id, "metrics show", json_output)
        records = RecordQueries.get_records(conn, patient.patient_id)  # type: ignore[arg-type]

    rate = aggregate_rate(records, week, settings.metrics, quantity)

    if json_output:
        output_json({
            "success": True,
            "command": "metrics show",
            "data": {
                "week_number": week,
                "measure": measure,
                "momentum_rate": rate.momentum_rate,
                "overall_rate": (
                    round(rate.overall_rate, 4) if rate.overall_rate is not None else None
                ),
                "trend": rate.trend.direction.value,
                "current_delta": (
                    round(rate.trend.current_delta, 4)
                    if rate.trend.current_delta is not None
                    else None
                ),
                "window_size": rate.window_size,
            },
            "human_summary": (
                f"Week {week}: momentum {pct(rate.momentum_rate)}, "
                f"overall {pct(rate.overall_rate)}, {rate.trend.direction.value}"
            ),
        })
        return

    lines = [
        f"Week change:        {pct(rate.trend.current_delta)}",
        f"Plateau prevention: {pct(rate.momentum_rate)}"
        + (f" ({rate.window_size} week average)" if rate.window_size else ""),
        f"Overall rate:       {pct(rate.overall_rate)} per week",
        f"Trend:              {rate.trend.direction.value}",
    ]
    console.print(Panel("\n".join(lines), title=f"{patient.full_name}: week {week} ({measure})"))


@metrics_app.command("chart")
def metrics_chart(
    measure: str = typer.Option("weight", "--measure", "-m", help="weight or waist"),
    output_format: Optional[str] = typer.Option(
        None, "--format", "-f", help="table, json, markdown or csv"
    ),
    patient_id: Optional[int] = typer.Option(None, "--patient", help="Patient ID"),
    output_file: Optional[Path] = typer.Option(None, "--output", "-o", help="Write to file"),
) -> None:
    """Show plateau prevention rates for every week."""
    from checkin.export.formatters import build_chart_rows, format_chart
    from checkin.tracking.queries import RecordQueries

    settings = get_settings()
    output_format = output_format or settings.display.output_format
    json_output = output_format == "json"
    quantity = resolve_measure(measure, "metrics chart", json_output)

    with get_db().get_connection() as conn:
        patient = resolve_patient(conn, patient_id, "metrics chart", json_output)
        records = RecordQueries.get_records(conn, patient.patient_id)  # type: ignore[arg-type]

    rows = build_chart_rows(records, quantity, patient.unit_system, settings.metrics)

    try:
        text = format_chart(rows, output_format, quantity, patient.unit_system, console)
    except ValueError as e:
        fail("metrics chart", str(e), json_output)

    if text is None:
        return
    if output_file:
        output_file.write_text(text)
        console.print(f"[green]Wrote {output_file}[/green]")
    else:
        print(text)


@metrics_app.command("summary")
def metrics_summary(
    patient_id: Optional[int] = typer.Option(None, "--patient", help="Patient ID"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Show headline progress numbers and insights."""
    from checkin.tracking.queries import RecordQueries
    from checkin.tracking.summary import summarize_progress, summary_insights

    settings = get_settings()

    with get_db().get_connection() as conn:
        patient = resolve_patient(conn, patient_id, "metrics summary", json_output)
        records = RecordQueries.get_records(conn, patient.patient_id)  # type: ignore[arg-type]

    goal = patient.goal_rate_percent
    if goal is None:
        goal = settings.message.default_goal_rate
    summary = summarize_progress(records, goal)
    insights = summary_insights(summary)

    if json_output:
        output_json({
            "success": True,
            "command": "metrics summary",
            "data": {
                "total_change_percent": summary.total_change_percent,
                "weekly_change_percent": summary.weekly_change_percent,
                "goal_rate_percent": summary.goal_rate_percent,
                "has_enough_data": summary.has_enough_data,
                "data_points": summary.data_points,
                "insights": insights,
            },
            "human_summary": f"Total {pct(summary.total_change_percent, 1)}, "
            f"weekly {pct(summary.weekly_change_percent, 1)}",
        })
        return

    lines = [
        f"Total change:  {pct(summary.total_change_percent, 1)}",
        f"Weekly change: {pct(summary.weekly_change_percent, 1)}",
        f"Goal rate:     {pct(summary.goal_rate_percent, 1)} per week",
        f"Check-ins:     {summary.data_points}",
    ]
    if insights:
        lines.append("")
        lines.extend(f"- {line}" for line in insights)
    console.print(Panel("\n".join(lines), title=f"Progress: {patient.full_name}"))


# ============================================================================
# Weekly Message
# ============================================================================


@app.command("message")
def message(
    week: int = typer.Argument(..., help="Week the message is for"),
    compliance_days: int = typer.Option(
        0, "--compliance-days", "-c", help="Days this week the nutrition goal was met (0-7)"
    ),
    template: Optional[Path] = typer.Option(None, "--template", "-t", help="Template file"),
    patient_id: Optional[int] = typer.Option(None, "--patient", help="Patient ID"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Generate the weekly check-in message."""
    from dataclasses import asdict, replace

    from checkin.export.message import compute_message_variables, load_template, render_message
    from checkin.tracking.queries import RecordQueries

    settings = get_settings()
    message_config = settings.message
    if template is not None:
        message_config = replace(message_config, template_path=template)

    with get_db().get_connection() as conn:
        patient = resolve_patient(conn, patient_id, "message", json_output)
        records = RecordQueries.get_records(conn, patient.patient_id)  # type: ignore[arg-type]

    try:
        variables = compute_message_variables(
            patient, records, week, compliance_days, message_config, settings.metrics
        )
    except ValueError as e:
        fail("message", str(e), json_output)

    text = render_message(load_template(message_config.template_path), variables)

    if json_output:
        output_json({
            "success": True,
            "command": "message",
            "data": {"variables": asdict(variables), "message": text},
            "human_summary": f"Message for week {week}",
        })
    else:
        print(text)


# ============================================================================
# Config Commands
# ============================================================================


@config_app.command("show")
def config_show() -> None:
    """Print the active settings."""
    settings = get_settings()
    m = settings.metrics
    lines = [
        f"Database:          {settings.database.path}",
        f"Rolling window:    {m.rolling_window} weeks",
        f"Progressive weeks: {m.progressive_weeks}",
        f"Outlier threshold: {m.outlier_threshold}%",
        f"Trend factors:     x{m.accelerating_factor} / x{m.decelerating_factor}",
        f"Template:          {settings.message.template_path or '(built-in)'}",
        f"Units:             {settings.display.units}",
        f"Log level:         {settings.logging.level}",
    ]
    console.print(Panel("\n".join(lines), title="Settings"))


@config_app.command("init")
def config_init(
    path: Optional[Path] = typer.Option(None, "--path", help="Where to write config.yaml"),
    with_template: bool = typer.Option(
        False, "--with-template", help="Also write the default message template"
    ),
) -> None:
    """Write the current settings to a config file."""
    from checkin.config.settings import default_config_path
    from checkin.export.message import save_default_template

    settings = get_settings()
    target = path or default_config_path()

    if with_template:
        template_path = target.parent / "message_template.md"
        save_default_template(template_path)
        settings.message.template_path = template_path
        console.print(f"[green]Wrote template[/green] {template_path}")

    settings.save(target)
    console.print(f"[green]Wrote config[/green] {target}")


if __name__ == "__main__":
    app()
