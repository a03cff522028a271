"""Series normalization and baseline resolution.

Weekly records arrive in whatever order the store returns them, with gaps
wherever a patient skipped a check-in. Everything downstream works on the
normalized series: measured weeks only, ascending by week number.

The baseline is the week-0 measurement when there is one, otherwise the
earliest measured week. It is derived from the full series on every call,
since a week-0 record can be entered after later weeks already exist.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from checkin.tracking.models import Baseline, WeeklyRecord

logger = logging.getLogger(__name__)


def normalize_series(
    records: Iterable[WeeklyRecord],
    quantity: str = "quantity",
) -> list[WeeklyRecord]:
    """
    Drop unmeasured weeks and sort the rest by week number.

    Args:
        records: Weekly records in any order
        quantity: Which measurement to require ('quantity' or 'waist')

    Returns:
        Records with the measurement present, ascending by week_number

    Example:
        >>> normalize_series([WeeklyRecord(2, 197.0), WeeklyRecord(1), WeeklyRecord(0, 200.0)])
        [WeeklyRecord(week_number=0, quantity=200.0, ...), WeeklyRecord(week_number=2, ...)]
    """
    present = [r for r in records if r.measure(quantity) is not None]
    # sorted() is stable, so duplicate weeks keep their input order
    return sorted(present, key=lambda r: r.week_number)


def resolve_baseline(
    records: Iterable[WeeklyRecord],
    quantity: str = "quantity",
) -> Optional[Baseline]:
    """
    Pick the reference starting measurement.

    Priority: the week-0 record with a measurement, then the earliest
    measured week. Returns None when nothing in the series is measured.
    """
    series = normalize_series(records, quantity)
    if not series:
        logger.debug("No measured weeks, baseline unresolved")
        return None

    # Week 0 sorts first whenever it is present
    first = series[0]
    return Baseline(
        week_number=first.week_number,
        quantity=first.measure(quantity),  # type: ignore[arg-type]
    )


def record_for_week(
    records: Iterable[WeeklyRecord],
    week_number: int,
    quantity: str = "quantity",
) -> Optional[WeeklyRecord]:
    """Return the measured record for a given week, or None."""
    for record in records:
        if record.week_number == week_number and record.measure(quantity) is not None:
            return record
    return None
