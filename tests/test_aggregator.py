"""
tests for the reading aggregator.

tests sorting, range filtering, chart point mapping, sparse pulse
statistics and the categorized history view.
"""

from datetime import datetime, timedelta, timezone

import pytest
from bp_tracker.models.readings import Reading
from bp_tracker.models.trends import Category, NoData, Summary, TimeRange
from bp_tracker.services.aggregator import (
    aggregate,
    build_history,
    latest_category,
    summarize,
    to_naive_utc,
)
from bp_tracker.services.errors import InvalidRangeError


NOW = datetime(2024, 3, 15, 12, 0, 0)


def _create_reading(
    reading_id: int = None,
    measured_at: datetime = None,
    systolic: int = 120,
    diastolic: int = 80,
    pulse: int = 70,
    notes: str = None,
) -> Reading:
    """
    create an unsaved reading for testing.

    args:
        reading_id: primary key to assign
        measured_at: measurement time (defaults to NOW)
        systolic: systolic pressure in mmhg
        diastolic: diastolic pressure in mmhg
        pulse: pulse in bpm, none for no pulse
        notes: free text

    returns:
        reading instance with specified values
    """
    reading = Reading()
    reading.id = reading_id
    reading.measured_at = measured_at or NOW
    reading.created_at = NOW
    reading.systolic = systolic
    reading.diastolic = diastolic
    reading.pulse = pulse
    reading.notes = notes
    return reading


def _snapshot(readings):
    return [(r.id, r.systolic, r.diastolic, r.pulse, r.measured_at) for r in readings]


@pytest.fixture
def spread_readings():
    """readings one, eight and forty days before NOW, newest first."""
    return [
        _create_reading(1, NOW - timedelta(days=1), 118, 76, 60),
        _create_reading(2, NOW - timedelta(days=8), 132, 84, 70),
        _create_reading(3, NOW - timedelta(days=40), 145, 92, 80),
    ]


def test_aggregate_week_keeps_last_seven_days(spread_readings):
    view = aggregate(spread_readings, TimeRange.WEEK, NOW)

    assert [p.systolic for p in view.series] == [118]


def test_aggregate_month_keeps_last_thirty_days(spread_readings):
    view = aggregate(spread_readings, TimeRange.MONTH, NOW)

    assert [p.systolic for p in view.series] == [132, 118]


def test_aggregate_year_keeps_everything_sorted(spread_readings):
    """
    test the year range on unsorted input.

    verifies:
        - all three readings survive
        - series is ordered oldest first
    """
    view = aggregate(spread_readings, TimeRange.YEAR, NOW)

    timestamps = [p.source_timestamp for p in view.series]
    assert len(view.series) == 3
    assert timestamps == sorted(timestamps)


def test_aggregate_cutoff_is_inclusive():
    """
    test a reading exactly at the window start.

    verifies:
        - measured_at == now - 7 days is kept
        - one second earlier is dropped
    """
    readings = [
        _create_reading(1, NOW - timedelta(days=7)),
        _create_reading(2, NOW - timedelta(days=7, seconds=1)),
    ]

    view = aggregate(readings, TimeRange.WEEK, NOW)

    assert [p.source_timestamp for p in view.series] == [NOW - timedelta(days=7)]


def test_aggregate_sparse_pulse_average():
    """
    test that readings without pulse are left out of pulse statistics.

    verifies:
        - pulse average is 70 over the two carried values, not 140/3
        - count is 2
        - the series still has a third point with pulse 0
    """
    readings = [
        _create_reading(1, NOW - timedelta(hours=3), pulse=60),
        _create_reading(2, NOW - timedelta(hours=2), pulse=None),
        _create_reading(3, NOW - timedelta(hours=1), pulse=80),
    ]

    view = aggregate(readings, TimeRange.WEEK, NOW)
    pulse = view.summary_for("pulse")

    assert isinstance(pulse, Summary)
    assert pulse.count == 2
    assert pulse.average == 70
    assert pulse.minimum == 60
    assert pulse.maximum == 80
    assert len(view.series) == 3
    assert view.series[1].pulse == 0


def test_aggregate_empty_input():
    """
    test aggregation over no readings.

    verifies:
        - no exception
        - empty series
        - three absent summaries in systolic, diastolic, pulse order
    """
    view = aggregate([], TimeRange.WEEK, NOW)

    assert view.series == []
    assert len(view.summaries) == 3
    assert all(isinstance(s, NoData) for s in view.summaries)
    assert [s.quantity for s in view.summaries] == ["systolic", "diastolic", "pulse"]
    assert all(not s.has_data for s in view.summaries)


def test_aggregate_nothing_in_range(spread_readings):
    view = aggregate(spread_readings, TimeRange.WEEK, NOW + timedelta(days=100))

    assert view.series == []
    assert all(isinstance(s, NoData) for s in view.summaries)


def test_aggregate_no_pulse_values_reports_no_data():
    readings = [_create_reading(1, pulse=None), _create_reading(2, pulse=None)]

    view = aggregate(readings, TimeRange.WEEK, NOW)

    assert isinstance(view.summary_for("pulse"), NoData)
    assert view.summary_for("systolic").count == 2
    assert [p.pulse for p in view.series] == [0, 0]


def test_aggregate_statistics():
    """
    test systolic and diastolic statistics.

    verifies:
        - average rounds half up
        - min and max are taken over the window only
    """
    readings = [
        _create_reading(1, NOW - timedelta(days=1), 120, 80),
        _create_reading(2, NOW - timedelta(days=2), 121, 81),
        _create_reading(3, NOW - timedelta(days=60), 200, 110),
    ]

    view = aggregate(readings, TimeRange.WEEK, NOW)
    systolic = view.summary_for("systolic")
    diastolic = view.summary_for("diastolic")

    # 241 / 2 = 120.5 rounds up
    assert systolic.average == 121
    assert systolic.minimum == 120
    assert systolic.maximum == 121
    assert diastolic.average == 81
    assert systolic.unit == "mmHg"
    assert view.summary_for("pulse").unit == "bpm"


def test_aggregate_does_not_mutate_input(spread_readings):
    original_order = list(spread_readings)
    before = _snapshot(spread_readings)

    aggregate(spread_readings, TimeRange.YEAR, NOW, with_categories=True)

    assert spread_readings == original_order
    assert _snapshot(spread_readings) == before


def test_aggregate_is_idempotent(spread_readings):
    first = aggregate(spread_readings, TimeRange.MONTH, NOW, with_categories=True)
    second = aggregate(spread_readings, TimeRange.MONTH, NOW, with_categories=True)

    assert first == second
    assert first.to_dict() == second.to_dict()


def test_aggregate_stable_for_equal_timestamps():
    """readings sharing measured_at keep their input order."""
    stamp = NOW - timedelta(hours=1)
    readings = [
        _create_reading(1, stamp, systolic=150),
        _create_reading(2, NOW - timedelta(days=2), systolic=110),
        _create_reading(3, stamp, systolic=125),
    ]

    view = aggregate(readings, TimeRange.WEEK, NOW)

    assert [p.systolic for p in view.series] == [110, 150, 125]


def test_aggregate_chart_point_fields():
    """
    test chart point mapping.

    verifies:
        - label uses the short month/day axis format
        - source timestamp is the measurement time
        - categories are only attached on request
    """
    measured = datetime(2024, 3, 5, 8, 30)
    readings = [_create_reading(1, measured, 135, 85, 72)]

    plain = aggregate(readings, TimeRange.MONTH, NOW)
    colored = aggregate(readings, TimeRange.MONTH, NOW, with_categories=True)

    point = plain.series[0]
    assert point.label == "Mar 05"
    assert point.source_timestamp == measured
    assert point.pulse == 72
    assert point.category is None
    assert colored.series[0].category == Category.STAGE1
    assert colored.series[0].to_dict()["category"] == "Stage 1"


@pytest.mark.parametrize("bad_range", ["week", 7, None, "fortnight"])
def test_aggregate_rejects_invalid_range(bad_range):
    with pytest.raises(InvalidRangeError):
        aggregate([], bad_range, NOW)


def test_time_range_parse():
    assert TimeRange.parse("Month") == TimeRange.MONTH
    assert TimeRange.parse(TimeRange.YEAR) == TimeRange.YEAR
    assert [r.days for r in TimeRange] == [7, 30, 365]

    with pytest.raises(InvalidRangeError):
        TimeRange.parse("decade")


def test_trend_view_to_dict_marks_absent_summaries():
    view = aggregate([_create_reading(1, pulse=None)], TimeRange.WEEK, NOW)

    data = view.to_dict()

    assert data["range"] == "week"
    assert data["range_days"] == 7
    assert data["summaries"][0]["no_data"] is False
    assert data["summaries"][2] == {"quantity": "pulse", "unit": "bpm", "count": 0, "no_data": True}


def test_summarize_ignores_missing_values():
    readings = [_create_reading(1, pulse=None), _create_reading(2, pulse=91)]

    summary = summarize(readings, "pulse", "bpm")

    assert summary == Summary("pulse", "bpm", 1, 91, 91, 91)


def test_build_history_newest_first_with_categories(spread_readings):
    """
    test the categorized history view.

    verifies:
        - newest reading comes first
        - each reading carries its category
        - input list is left untouched
    """
    before = _snapshot(spread_readings)
    shuffled = [spread_readings[2], spread_readings[0], spread_readings[1]]

    history = build_history(shuffled)

    assert [r.id for r, _ in history] == [1, 2, 3]
    assert [c for _, c in history] == [Category.NORMAL, Category.STAGE1, Category.STAGE2]
    assert _snapshot(spread_readings) == before


def test_build_history_reverses_ties():
    """
    test readings that share a timestamp.

    verifies:
        - ties come out in reverse input order, so an id-ascending input
          gives the same id-descending order as the paginated list
    """
    readings = [_create_reading(1, NOW), _create_reading(2, NOW), _create_reading(3, NOW - timedelta(hours=1))]

    assert [r.id for r, _ in build_history(readings)] == [2, 1, 3]


def test_latest_category(spread_readings):
    assert latest_category(spread_readings) == Category.NORMAL
    assert latest_category([]) is None


def test_aggregate_accepts_aware_now():
    """
    test an aware reference time against naive stored readings.

    verifies:
        - no comparison error
        - the window is computed in utc
    """
    readings = [
        _create_reading(1, NOW),
        _create_reading(2, NOW - timedelta(days=8)),
    ]

    view = aggregate(readings, TimeRange.WEEK, NOW.replace(tzinfo=timezone.utc))

    assert [p.source_timestamp for p in view.series] == [NOW]


def test_aggregate_mixed_aware_and_naive_readings():
    """
    test readings whose timestamps mix offsets and naive utc.

    verifies:
        - aware readings are converted to utc before sorting and filtering
        - chart points carry naive utc timestamps
    """
    plus_two = timezone(timedelta(hours=2))
    readings = [
        _create_reading(1, NOW - timedelta(hours=1), systolic=130),
        # 12:30 at +02:00 is 10:30 utc, half an hour before reading 1
        _create_reading(2, datetime(2024, 3, 15, 12, 30, tzinfo=plus_two), systolic=140),
        # 13:00 utc on the 8th, inside the window
        _create_reading(3, datetime(2024, 3, 8, 15, 0, tzinfo=plus_two), systolic=150),
        # 11:30 utc on the 8th, just outside the window
        _create_reading(4, datetime(2024, 3, 8, 13, 30, tzinfo=plus_two), systolic=160),
    ]

    # 14:00 at +02:00 is NOW (12:00 utc), so the window starts 2024-03-08 12:00 utc
    view = aggregate(readings, TimeRange.WEEK, datetime(2024, 3, 15, 14, 0, tzinfo=plus_two))

    assert [p.systolic for p in view.series] == [150, 140, 130]
    assert view.series[1].source_timestamp == datetime(2024, 3, 15, 10, 30)
    assert all(p.source_timestamp.tzinfo is None for p in view.series)


def test_to_naive_utc():
    assert to_naive_utc(NOW) == NOW
    assert to_naive_utc(datetime(2024, 3, 15, 14, 0, tzinfo=timezone(timedelta(hours=2)))) == NOW
