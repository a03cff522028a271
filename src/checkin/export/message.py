"""Weekly check-in message generation.

The message is a coach-editable template with {{placeholder}} variables.
Every number in it comes from the progress metrics engine, the same code
path the plateau prevention chart uses, so the message and the chart never
disagree.
"""

from __future__ import annotations

import logging
import re
from dataclasses import asdict, dataclass
from pathlib import Path
from string import Template
from typing import Iterable, Optional

from checkin.config.settings import MessageConfig, MetricsConfig
from checkin.tracking.models import Patient, WeeklyRecord
from checkin.tracking.rates import DEFAULT_METRICS, aggregate_rate, round_half_away
from checkin.tracking.series import record_for_week, resolve_baseline

logger = logging.getLogger(__name__)

NOT_AVAILABLE = "N/A"
DAYS_PER_WEEK = 7

DEFAULT_TEMPLATE = """Good evening, {{patient_first_name}}.

I hope your week went well!

Looking at your plateau prevention data, you are currently at a {{plateau_prevention_rate}}% rate of loss over time {{plateau_prevention_status}} and you are {{trend_direction}} relative to last week, meaning your rate of progress is {{trend_description}}. Most currently, your {{week_count}} week average rate of loss is {{week_average_loss_rate}}% of your body weight per week (week {{current_week_number}}).

Overall, since we started, you are losing weight at a rate of {{overall_loss_rate_percent}}% of your total weight per week (the goal we set together was {{goal_loss_rate_percent}}% per week), and you are {{total_waist_loss_inches}} inches total on your waist.

Your daily protein goal is {{protein_goal_grams}} grams; anything outside {{protein_goal_lower_bound}} to {{protein_goal_upper_bound}} grams counts as missing the goal for the day. Your weekly macronutrient compliance this week was {{weekly_compliance_percent}}%.
"""

_PLACEHOLDER_RE = re.compile(r"\{\{([_a-zA-Z][_a-zA-Z0-9]*)\}\}")


class MessageTemplate(Template):
    """string.Template that substitutes {{name}} instead of $name."""

    delimiter = "{{"
    pattern = r"""
    \{\{(?:
      (?P<escaped>(?!))                          |
      (?P<named>[_a-z][_a-z0-9]*)\}\}            |
      (?P<braced>(?!))                           |
      (?P<invalid>(?!))
    )
    """


@dataclass
class MessageVariables:
    """Values substituted into the weekly message."""

    patient_first_name: str
    plateau_prevention_rate: Optional[float]
    plateau_prevention_status: str
    trend_direction: str
    trend_description: str
    current_week_number: int
    week_count: int
    week_average_loss_rate: Optional[float]
    overall_loss_rate_percent: Optional[float]
    goal_loss_rate_percent: float
    total_waist_loss_inches: str
    protein_goal_grams: float
    protein_goal_lower_bound: float
    protein_goal_upper_bound: float
    weekly_compliance_percent: float

    def as_strings(self) -> dict[str, str]:
        """Template-ready values; None renders as N/A, whole floats drop the '.0'."""
        out = {}
        for key, value in asdict(self).items():
            if value is None:
                out[key] = NOT_AVAILABLE
            elif isinstance(value, float) and value.is_integer():
                out[key] = str(int(value))
            else:
                out[key] = str(value)
        return out


def plateau_status(rate: Optional[float]) -> str:
    """Describe a plateau prevention rate in words."""
    if rate is None:
        return "(not enough data yet)"
    if rate > 0.5:
        return "which is greater than 0% (making progress)"
    if rate > 0:
        return "which is slightly above 0% (minimal progress)"
    if rate == 0:
        return "(no weight change this week)"
    return "which indicates weight gain this week"


def waist_change_text(records: list[WeeklyRecord], week_number: int) -> str:
    """'down X.X' or 'up X.X' inches since the waist baseline."""
    baseline = resolve_baseline(records, "waist")
    current = record_for_week(records, week_number, "waist")
    if baseline is None or current is None or current.waist is None:
        return NOT_AVAILABLE
    change = baseline.quantity - current.waist
    if change >= 0:
        return f"down {change:.1f}"
    return f"up {abs(change):.1f}"


def compliance_percent(compliance_days: int) -> float:
    """Share of the week the nutrition goal was met, 1 decimal."""
    if compliance_days < 0 or compliance_days > DAYS_PER_WEEK:
        raise ValueError(
            f"compliance_days must be between 0 and {DAYS_PER_WEEK}, got {compliance_days}"
        )
    return round_half_away(compliance_days / DAYS_PER_WEEK * 100, 1)


def compute_message_variables(
    patient: Patient,
    records: Iterable[WeeklyRecord],
    week_number: int,
    compliance_days: int = 0,
    message_config: Optional[MessageConfig] = None,
    metrics_config: MetricsConfig = DEFAULT_METRICS,
) -> MessageVariables:
    """
    Compute every template variable for a patient's week.

    Args:
        patient: Patient profile (name, goal rate, protein goal)
        records: All of the patient's weekly records
        week_number: Week the message is for
        compliance_days: Days this week the nutrition goal was met (0-7)
        message_config: Defaults for missing profile values
        metrics_config: Windowing and trend thresholds

    Returns:
        MessageVariables

    Raises:
        ValueError: If the week has no check-in or compliance_days is out of range
    """
    message_config = message_config or MessageConfig()
    records = list(records)

    if not any(r.week_number == week_number for r in records):
        raise ValueError(f"No check-in found for week {week_number}")

    rate = aggregate_rate(records, week_number, metrics_config)

    overall = rate.overall_rate
    protein = patient.protein_goal_grams
    if protein is None:
        protein = message_config.default_protein_grams
    goal = patient.goal_rate_percent
    if goal is None:
        goal = message_config.default_goal_rate
    tolerance = message_config.protein_tolerance_grams

    return MessageVariables(
        patient_first_name=patient.first_name,
        plateau_prevention_rate=rate.momentum_rate,
        plateau_prevention_status=plateau_status(rate.momentum_rate),
        trend_direction=rate.trend.direction.direction_phrase,
        trend_description=rate.trend.direction.description_phrase,
        current_week_number=week_number,
        week_count=rate.window_size,
        week_average_loss_rate=rate.momentum_rate,
        overall_loss_rate_percent=round_half_away(overall) if overall is not None else None,
        goal_loss_rate_percent=goal,
        total_waist_loss_inches=waist_change_text(records, week_number),
        protein_goal_grams=protein,
        protein_goal_lower_bound=protein - tolerance,
        protein_goal_upper_bound=protein + tolerance,
        weekly_compliance_percent=compliance_percent(compliance_days),
    )


def render_message(template: str, variables: MessageVariables) -> str:
    """
    Fill {{placeholders}} in a template.

    Placeholders with no matching variable are left as-is and logged.
    """
    values = variables.as_strings()
    unknown = sorted(set(_PLACEHOLDER_RE.findall(template)) - set(values))
    if unknown:
        logger.warning("Template has unknown placeholders: %s", ", ".join(unknown))
    return MessageTemplate(template).safe_substitute(values)


def load_template(template_path: Optional[Path] = None) -> str:
    """Read a template file, falling back to the built-in default."""
    if template_path is None:
        return DEFAULT_TEMPLATE
    if not template_path.exists():
        logger.warning("Template %s not found, using default", template_path)
        return DEFAULT_TEMPLATE
    return template_path.read_text()


def save_default_template(template_path: Path) -> Path:
    """Write the built-in template so a coach can edit it."""
    template_path.parent.mkdir(parents=True, exist_ok=True)
    template_path.write_text(DEFAULT_TEMPLATE)
    return template_path


def generate_message(
    patient: Patient,
    records: Iterable[WeeklyRecord],
    week_number: int,
    compliance_days: int = 0,
    message_config: Optional[MessageConfig] = None,
    metrics_config: MetricsConfig = DEFAULT_METRICS,
) -> str:
    """Compute the variables for a week and render the configured template."""
    message_config = message_config or MessageConfig()
    variables = compute_message_variables(
        patient,
        records,
        week_number,
        compliance_days,
        message_config,
        metrics_config,
    )
    template = load_template(message_config.template_path)
    return render_message(template, variables)
