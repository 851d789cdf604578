"""
derived value types for categorized and aggregated reading views.

none of these are persisted. they are created fresh on every call into the
categorizer or aggregator and are immutable afterwards.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from bp_tracker.services.errors import InvalidRangeError


class Category(str, Enum):
    """clinical blood pressure tiers, ordered from least to most severe."""

    NORMAL = "normal"
    ELEVATED = "elevated"
    STAGE1 = "stage1"
    STAGE2 = "stage2"
    CRISIS = "crisis"
    UNKNOWN = "unknown"

    @property
    def label(self) -> str:
        """display string for the tier."""
        return _CATEGORY_LABELS[self]

    @property
    def severity(self) -> int:
        """ordinal rank, -1 for unknown."""
        return _CATEGORY_SEVERITY[self]


_CATEGORY_LABELS = {
    Category.NORMAL: "Normal",
    Category.ELEVATED: "Elevated",
    Category.STAGE1: "Stage 1",
    Category.STAGE2: "Stage 2",
    Category.CRISIS: "Crisis",
    Category.UNKNOWN: "Unknown",
}

_CATEGORY_SEVERITY = {
    Category.NORMAL: 0,
    Category.ELEVATED: 1,
    Category.STAGE1: 2,
    Category.STAGE2: 3,
    Category.CRISIS: 4,
    Category.UNKNOWN: -1,
}


class TimeRange(str, Enum):
    """lookback windows for trend views."""

    WEEK = "week"
    MONTH = "month"
    YEAR = "year"

    @property
    def days(self) -> int:
        return _RANGE_DAYS[self]

    @classmethod
    def parse(cls, value: Union[str, "TimeRange"]) -> "TimeRange":
        """
        convert a query-string value into a TimeRange.

        args:
            value: "week", "month" or "year" (case-insensitive), or a TimeRange

        returns:
            matching TimeRange

        raises:
            InvalidRangeError: if the value names no range
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        raise InvalidRangeError(f"range must be one of week, month, year (got {value!r})")


_RANGE_DAYS = {
    TimeRange.WEEK: 7,
    TimeRange.MONTH: 30,
    TimeRange.YEAR: 365,
}


@dataclass(frozen=True)
class ChartPoint:
    """
    one display-ready point of a trend series.

    pulse is 0 when the reading carries no pulse value.
    """

    label: str
    systolic: int
    diastolic: int
    pulse: int
    source_timestamp: datetime
    category: Optional[Category] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "label": self.label,
            "systolic": self.systolic,
            "diastolic": self.diastolic,
            "pulse": self.pulse,
            "source_timestamp": self.source_timestamp.isoformat(),
        }
        if self.category is not None:
            data["category"] = self.category.label
        return data


@dataclass(frozen=True)
class Summary:
    """count/average/min/max for one quantity over the filtered readings."""

    quantity: str
    unit: str
    count: int
    average: int
    minimum: int
    maximum: int

    has_data = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "quantity": self.quantity,
            "unit": self.unit,
            "count": self.count,
            "average": self.average,
            "min": self.minimum,
            "max": self.maximum,
            "no_data": False,
        }


@dataclass(frozen=True)
class NoData:
    """absent summary for a quantity with no values in range."""

    quantity: str
    unit: str

    has_data = False
    count = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "quantity": self.quantity,
            "unit": self.unit,
            "count": 0,
            "no_data": True,
        }


QuantitySummary = Union[Summary, NoData]


@dataclass(frozen=True)
class TrendView:
    """aggregation result: chart series plus one summary per quantity."""

    time_range: TimeRange
    series: List[ChartPoint] = field(default_factory=list)
    summaries: List[QuantitySummary] = field(default_factory=list)

    def summary_for(self, quantity: str) -> QuantitySummary:
        """look up the summary for systolic, diastolic or pulse."""
        for summary in self.summaries:
            if summary.quantity == quantity:
                return summary
        raise KeyError(quantity)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "range": self.time_range.value,
            "range_days": self.time_range.days,
            "series": [point.to_dict() for point in self.series],
            "summaries": [summary.to_dict() for summary in self.summaries],
        }
