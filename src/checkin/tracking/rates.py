"""Momentum rate, overall rate and trend classification.

Momentum ("plateau prevention rate") smooths the individual deltas so one
noisy weigh-in does not read as a plateau:

    week 1:       delta_1
    weeks 2..4:   (delta_1 + ... + delta_t) / t     missing weeks count as 0
    week 5+:      mean of the last 4 deltas at or before t

The overall rate spreads the total change since baseline evenly across the
elapsed weeks (not compounded):

    overall_t = ((baseline - current_t) / baseline × 100) / t

Trend compares this week's delta with the previous one. A delta above the
outlier threshold (5%) on any side of the comparison is treated as a likely
data-entry error and the trend reads as stable.

All functions take the full series and recompute from scratch. None means
"not enough data"; callers should show N/A, never 0%.
"""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional

from checkin.config.settings import MetricsConfig
from checkin.tracking.deltas import compute_deltas, delta_for_week, deltas_before
from checkin.tracking.models import (
    AggregatedRate,
    Baseline,
    IndividualDelta,
    Trend,
    TrendResult,
    WeeklyRecord,
)
from checkin.tracking.series import record_for_week, resolve_baseline

logger = logging.getLogger(__name__)

DEFAULT_METRICS = MetricsConfig()


def round_half_away(value: float, places: int = 2) -> float:
    """
    Round to a fixed number of decimals, halves away from zero.

    Example:
        >>> round_half_away(0.125)
        0.13
        >>> round_half_away(-0.125)
        -0.13
    """
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP))


# ---------------------------------------------------------------------------
# Delta-level helpers
# ---------------------------------------------------------------------------


def momentum_window(
    deltas: list[IndividualDelta],
    target_week: int,
    config: MetricsConfig = DEFAULT_METRICS,
) -> Optional[list[float]]:
    """
    Return the delta values averaged into the momentum for a week.

    Args:
        deltas: Individual deltas, ascending by week
        target_week: Week to compute momentum for
        config: Window sizes

    Returns:
        The values to average (zero-filled during the progressive weeks),
        or None when the target week has no delta
    """
    if target_week < 1 or delta_for_week(deltas, target_week) is None:
        return None

    if target_week <= config.progressive_weeks:
        values = []
        for week in range(1, target_week + 1):
            value = delta_for_week(deltas, week)
            values.append(value if value is not None else 0.0)
        return values

    up_to_target = [d.percent_change for d in deltas if d.week_number <= target_week]
    return up_to_target[-config.rolling_window:]


def momentum_from_deltas(
    deltas: list[IndividualDelta],
    target_week: int,
    config: MetricsConfig = DEFAULT_METRICS,
) -> Optional[float]:
    """Momentum rate for a week from precomputed deltas, rounded to 2 dp."""
    values = momentum_window(deltas, target_week, config)
    if not values:
        return None
    return round_half_away(sum(values) / len(values))


def overall_from_baseline(
    baseline: Optional[Baseline],
    current: Optional[float],
    target_week: int,
) -> Optional[float]:
    """Average weekly percent change since baseline, unrounded."""
    if target_week <= 0 or baseline is None or current is None:
        return None
    if baseline.quantity == 0:
        logger.debug("Baseline at week %d is zero, overall rate undefined", baseline.week_number)
        return None
    total_percent = (baseline.quantity - current) / baseline.quantity * 100
    return total_percent / target_week


def trend_from_deltas(
    deltas: list[IndividualDelta],
    target_week: int,
    config: MetricsConfig = DEFAULT_METRICS,
) -> TrendResult:
    """Classify this week's delta against the most recent earlier one."""
    current = delta_for_week(deltas, target_week)
    earlier = deltas_before(deltas, target_week)

    if target_week <= 2 or current is None or len(earlier) < 2:
        return TrendResult(direction=Trend.STABLE, current_delta=current)

    recent = earlier[-1].percent_change
    prior = earlier[-2].percent_change

    threshold = config.outlier_threshold
    if abs(current) > threshold or abs(recent) > threshold or abs(prior) > threshold:
        logger.debug(
            "Week %d trend clamped to stable: delta above %.1f%% (%.2f, %.2f, %.2f)",
            target_week,
            threshold,
            current,
            recent,
            prior,
        )
        return TrendResult(direction=Trend.STABLE, current_delta=current)

    if current > recent * config.accelerating_factor:
        direction = Trend.ACCELERATING
    elif current < recent * config.decelerating_factor:
        direction = Trend.DECELERATING
    else:
        direction = Trend.STABLE

    return TrendResult(direction=direction, current_delta=current)


# ---------------------------------------------------------------------------
# Series-level operations
# ---------------------------------------------------------------------------


def compute_momentum_rate(
    series: Iterable[WeeklyRecord],
    target_week: int,
    config: MetricsConfig = DEFAULT_METRICS,
    quantity: str = "quantity",
) -> Optional[float]:
    """
    Compute the momentum (plateau prevention) rate for a week.

    Args:
        series: All weekly records for one patient, any order
        target_week: Week to compute for (>= 1)
        config: Window sizes
        quantity: Which measurement to use ('quantity' or 'waist')

    Returns:
        Rate in percent rounded to 2 decimals, or None if the week has no delta

    Example:
        >>> records = [WeeklyRecord(0, 200.0), WeeklyRecord(1, 198.0)]
        >>> compute_momentum_rate(records, 1)
        1.0
    """
    deltas = compute_deltas(series, quantity)
    return momentum_from_deltas(deltas, target_week, config)


def compute_overall_rate(
    series: Iterable[WeeklyRecord],
    target_week: int,
    quantity: str = "quantity",
) -> Optional[float]:
    """
    Compute the average weekly percent change since baseline.

    Returns None if the target week is 0, the baseline is missing or zero,
    or the target week has no measurement.
    """
    records = list(series)
    baseline = resolve_baseline(records, quantity)
    current_record = record_for_week(records, target_week, quantity)
    current = current_record.measure(quantity) if current_record else None
    return overall_from_baseline(baseline, current, target_week)


def compute_trend(
    series: Iterable[WeeklyRecord],
    target_week: int,
    config: MetricsConfig = DEFAULT_METRICS,
    quantity: str = "quantity",
) -> TrendResult:
    """
    Classify the trend at a week as accelerating, decelerating or stable.

    Needs target_week > 2, a delta at the target and two earlier deltas.
    Otherwise the direction is stable and current_delta is whatever delta
    the target week has (possibly None).
    """
    deltas = compute_deltas(series, quantity)
    return trend_from_deltas(deltas, target_week, config)


def aggregate_rate(
    series: Iterable[WeeklyRecord],
    target_week: int,
    config: MetricsConfig = DEFAULT_METRICS,
    quantity: str = "quantity",
) -> AggregatedRate:
    """Compute momentum, overall rate and trend for one week."""
    records = list(series)
    deltas = compute_deltas(records, quantity)
    return _aggregate(records, deltas, target_week, config, quantity)


def momentum_series(
    series: Iterable[WeeklyRecord],
    config: MetricsConfig = DEFAULT_METRICS,
    quantity: str = "quantity",
) -> list[AggregatedRate]:
    """
    Compute rates for every week that has a delta, ascending.

    This is the data behind the plateau prevention chart.
    """
    records = list(series)
    deltas = compute_deltas(records, quantity)
    return [
        _aggregate(records, deltas, delta.week_number, config, quantity)
        for delta in deltas
    ]


def _aggregate(
    records: list[WeeklyRecord],
    deltas: list[IndividualDelta],
    target_week: int,
    config: MetricsConfig,
    quantity: str,
) -> AggregatedRate:
    window = momentum_window(deltas, target_week, config)
    baseline = resolve_baseline(records, quantity)
    current_record = record_for_week(records, target_week, quantity)
    current = current_record.measure(quantity) if current_record else None

    return AggregatedRate(
        week_number=target_week,
        momentum_rate=momentum_from_deltas(deltas, target_week, config),
        overall_rate=overall_from_baseline(baseline, current, target_week),
        trend=trend_from_deltas(deltas, target_week, config),
        window_size=len(window) if window else 0,
    )
