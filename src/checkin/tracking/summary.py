"""Headline progress numbers for the dashboard."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from checkin.tracking.deltas import percent_change
from checkin.tracking.models import WeeklyRecord
from checkin.tracking.rates import round_half_away
from checkin.tracking.series import normalize_series, resolve_baseline


@dataclass
class ProgressSummary:
    """Summary of progress since baseline."""

    total_change_percent: Optional[float]  # baseline vs latest, positive = loss
    weekly_change_percent: Optional[float]  # latest vs previous, per week of gap
    goal_rate_percent: Optional[float]
    has_enough_data: bool
    data_points: int
    baseline_week: Optional[int]
    latest_week: Optional[int]


def summarize_progress(
    records: Iterable[WeeklyRecord],
    goal_rate_percent: Optional[float] = None,
    quantity: str = "quantity",
) -> ProgressSummary:
    """
    Compute the headline KPIs shown above the charts.

    The weekly change is divided by the gap between the two latest measured
    weeks, so a two-week gap reports the average change per week.
    Both percentages are rounded to 1 decimal.
    """
    records = list(records)
    series = normalize_series(records, quantity)
    baseline = resolve_baseline(series, quantity)

    later = [r for r in series if baseline is not None and r.week_number > baseline.week_number]
    latest = later[-1] if later else None

    total_change = None
    if baseline is not None and latest is not None:
        change = percent_change(baseline.quantity, latest.measure(quantity))  # type: ignore[arg-type]
        if change is not None:
            total_change = round_half_away(change, 1)

    weekly_change = None
    if latest is not None:
        previous = [r for r in series if r.week_number < latest.week_number]
        if previous:
            prev = previous[-1]
            change = percent_change(prev.measure(quantity), latest.measure(quantity))  # type: ignore[arg-type]
            if change is not None:
                gap = max(1, latest.week_number - prev.week_number)
                weekly_change = round_half_away(change / gap, 1)

    return ProgressSummary(
        total_change_percent=total_change,
        weekly_change_percent=weekly_change,
        goal_rate_percent=goal_rate_percent,
        has_enough_data=baseline is not None and latest is not None,
        data_points=len(records),
        baseline_week=baseline.week_number if baseline else None,
        latest_week=latest.week_number if latest else None,
    )


def summary_insights(summary: ProgressSummary) -> list[str]:
    """Encouragement lines for the dashboard, based on thresholds."""
    insights: list[str] = []

    if not summary.has_enough_data:
        insights.append("Complete your first few check-ins to see your progress metrics!")
        return insights

    total = summary.total_change_percent
    if total is not None:
        if total >= 10:
            insights.append("Outstanding progress! You've achieved significant weight loss.")
        elif total >= 5:
            insights.append("Great job! You're making excellent progress toward your goals.")
        elif total >= 2:
            insights.append("Good progress! Keep up the consistent effort.")
        elif total >= 0:
            insights.append("Every step counts! Stay consistent with your plan.")
        else:
            insights.append("Focus on consistency. Your coach can help adjust your approach.")

    weekly = summary.weekly_change_percent
    if weekly is not None:
        if weekly >= 2:
            insights.append("Strong weekly progress! You're in a great rhythm.")
        elif weekly >= 1:
            insights.append("Solid weekly improvement! Consistency is key.")
        elif weekly >= 0:
            insights.append("Maintaining progress. Focus on your weekly habits.")
        else:
            insights.append("Weekly fluctuations are normal. Trust the process.")

    return insights
