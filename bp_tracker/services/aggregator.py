"""
time-windowed aggregation of blood pressure readings.

turns a raw reading collection into a chronologically sorted, range
filtered chart series plus per-quantity summary statistics. the caller
supplies `now`, so the same input always produces the same output.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, List, Optional, Sequence, Tuple

from bp_tracker.models.trends import (
    Category,
    ChartPoint,
    NoData,
    QuantitySummary,
    Summary,
    TimeRange,
    TrendView,
)
from bp_tracker.services.categorizer import categorize_reading
from bp_tracker.services.errors import InvalidRangeError

logger = logging.getLogger(__name__)

# chart axis label, e.g. "Mar 05"
CHART_LABEL_FORMAT = "%b %d"

# (attribute, unit) in the order summaries are returned
QUANTITIES: List[Tuple[str, str]] = [
    ("systolic", "mmHg"),
    ("diastolic", "mmHg"),
    ("pulse", "bpm"),
]


def _round_half_up(total: int, count: int) -> int:
    """integer mean of non-negative values, halves rounded up."""
    return (2 * total + count) // (2 * count)


def to_naive_utc(timestamp: datetime) -> datetime:
    """
    normalize a timestamp to naive utc.

    aware values are converted to utc and stripped of their tzinfo; naive
    values are taken to be utc already and returned unchanged.
    """
    if timestamp.tzinfo is not None and timestamp.utcoffset() is not None:
        return timestamp.astimezone(timezone.utc).replace(tzinfo=None)
    return timestamp.replace(tzinfo=None)


def _measured_at(reading: Any) -> datetime:
    return to_naive_utc(reading.measured_at)


def sort_readings(readings: Sequence[Any]) -> List[Any]:
    """
    return a new list of readings ordered by measured_at, oldest first.

    the sort is stable, so readings sharing a timestamp keep their input
    order. aware and naive timestamps are compared as naive utc. the input
    sequence is never modified.
    """
    return sorted(readings, key=_measured_at)


def filter_by_range(
    readings: Sequence[Any], time_range: TimeRange, now: datetime
) -> List[Any]:
    """
    keep readings measured on or after now minus the range length.

    `now` and every measured_at are normalized to naive utc first, so
    aware and naive timestamps can be mixed.

    args:
        readings: readings in any order
        time_range: lookback window
        now: reference time for the window

    returns:
        new list with the surviving readings in input order
    """
    cutoff = to_naive_utc(now) - timedelta(days=time_range.days)
    return [r for r in readings if _measured_at(r) >= cutoff]


def to_chart_point(reading: Any, with_category: bool = False) -> ChartPoint:
    """map a reading to a chart point, pulse 0 when absent, time in naive utc."""
    measured_at = _measured_at(reading)
    return ChartPoint(
        label=measured_at.strftime(CHART_LABEL_FORMAT),
        systolic=reading.systolic,
        diastolic=reading.diastolic,
        pulse=reading.pulse if reading.pulse is not None else 0,
        source_timestamp=measured_at,
        category=categorize_reading(reading) if with_category else None,
    )


def summarize(readings: Sequence[Any], quantity: str, unit: str) -> QuantitySummary:
    """
    compute count/average/min/max for one quantity.

    only readings that carry a value for the quantity are counted, so a
    missing pulse never pulls the average toward zero.

    args:
        readings: readings already filtered to the window
        quantity: attribute name ("systolic", "diastolic" or "pulse")
        unit: display unit for the quantity

    returns:
        Summary, or NoData when no reading carries the quantity
    """
    values = [
        getattr(r, quantity) for r in readings if getattr(r, quantity) is not None
    ]

    if not values:
        return NoData(quantity=quantity, unit=unit)

    return Summary(
        quantity=quantity,
        unit=unit,
        count=len(values),
        average=_round_half_up(sum(values), len(values)),
        minimum=min(values),
        maximum=max(values),
    )


def aggregate(
    readings: Sequence[Any],
    time_range: TimeRange,
    now: datetime,
    with_categories: bool = False,
) -> TrendView:
    """
    build the trend view for a time range.

    steps:
        1. stable sort a copy of the readings by measured_at (oldest first)
        2. keep readings with measured_at >= now - range days
        3. map each to a chart point (pulse 0 when absent)
        4. summarize systolic, diastolic and pulse over the window

    args:
        readings: reading objects with systolic, diastolic, pulse and
            measured_at attributes; may be empty or unsorted
        time_range: TimeRange.WEEK, MONTH or YEAR
        now: reference time, never read from the system clock here;
            aware values are converted to naive utc, as are aware
            measured_at values, so the two may be mixed
        with_categories: categorize each chart point

    returns:
        TrendView with series and [systolic, diastolic, pulse] summaries

    raises:
        InvalidRangeError: if time_range is not a TimeRange
    """
    if not isinstance(time_range, TimeRange):
        raise InvalidRangeError(
            f"time_range must be a TimeRange (got {time_range!r})"
        )

    ordered = sort_readings(readings)
    in_range = filter_by_range(ordered, time_range, now)

    logger.debug(
        "aggregating %d of %d readings for range=%s",
        len(in_range), len(ordered), time_range.value,
    )

    series = [to_chart_point(r, with_category=with_categories) for r in in_range]
    summaries = [summarize(in_range, quantity, unit) for quantity, unit in QUANTITIES]

    return TrendView(time_range=time_range, series=series, summaries=summaries)


def build_history(readings: Sequence[Any]) -> List[Tuple[Any, Category]]:
    """
    pair every reading with its category, newest first.

    this is the oldest-first order reversed, so readings sharing a
    timestamp come out in reverse input order. fed from
    `ReadingsRepository.get_all_readings` (ties ordered by id ascending)
    this matches the id-descending tie-break of the paginated list.

    args:
        readings: reading objects in any order

    returns:
        list of (reading, category) tuples sorted by measured_at descending
    """
    return [(r, categorize_reading(r)) for r in reversed(sort_readings(readings))]


def latest_category(readings: Sequence[Any]) -> Optional[Category]:
    """category of the most recently measured reading, none if empty."""
    history = build_history(readings)
    if not history:
        return None
    return history[0][1]
