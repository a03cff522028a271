"""Individual week deltas.

For each measured week, the individual delta is the percent change against
the nearest earlier measured week:

    delta = (prior - current) / prior × 100

Positive values are losses. Skipped weeks are bridged: if week 6 has no
measurement, week 7 is compared against week 5. A zero prior makes the
delta undefined and the pair is left out rather than divided.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from checkin.tracking.models import IndividualDelta, WeeklyRecord
from checkin.tracking.series import normalize_series

logger = logging.getLogger(__name__)


def percent_change(prior: float, current: float) -> Optional[float]:
    """
    Percent decrease from prior to current.

    Returns None when prior is zero.

    Example:
        >>> percent_change(200.0, 198.0)
        1.0
        >>> percent_change(200.0, 202.0)
        -1.0
    """
    if prior == 0:
        return None
    return (prior - current) / prior * 100


def compute_deltas(
    records: Iterable[WeeklyRecord],
    quantity: str = "quantity",
) -> list[IndividualDelta]:
    """
    Compute the individual delta for every measured week after the first.

    Args:
        records: Weekly records in any order (normalized internally)
        quantity: Which measurement to use ('quantity' or 'waist')

    Returns:
        Deltas ascending by week_number. The first measured week never has
        one, and neither does any week whose prior measurement is zero.
    """
    series = normalize_series(records, quantity)
    deltas: list[IndividualDelta] = []

    for prev, curr in zip(series, series[1:]):
        if curr.week_number == 0:
            # Only reachable with duplicate week-0 rows; week 0 is never a target
            continue
        change = percent_change(prev.measure(quantity), curr.measure(quantity))  # type: ignore[arg-type]
        if change is None:
            logger.debug(
                "Skipping week %d delta: week %d %s is zero",
                curr.week_number,
                prev.week_number,
                quantity,
            )
            continue
        deltas.append(IndividualDelta(week_number=curr.week_number, percent_change=change))

    return deltas


def delta_for_week(deltas: Iterable[IndividualDelta], week_number: int) -> Optional[float]:
    """Return the percent change recorded for a week, or None."""
    for delta in deltas:
        if delta.week_number == week_number:
            return delta.percent_change
    return None


def deltas_before(deltas: Iterable[IndividualDelta], week_number: int) -> list[IndividualDelta]:
    """Deltas strictly before a week, oldest first."""
    return [d for d in deltas if d.week_number < week_number]
