"""Query filters and results."""
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from mdx_analytics.aggregation import Category
from mdx_analytics.utils import ValidationError
from mdx_analytics.utils.numbers import Number


class GroupBy(str, Enum):
    """Buckets a monthly series can be regrouped into."""
    DAY = "day"
    WEEK = "week"
    WEEK_OF_YEAR = "week-of-year"
    MONTH = "month"
    YEAR = "year"

    @classmethod
    def parse(cls, value: Union["GroupBy", str]) -> "GroupBy":
        try:
            return cls(value)
        except ValueError:
            choices = ", ".join(item.value for item in cls)
            raise ValidationError(f"Unknown grouping '{value}' (expected one of: {choices})")


@dataclass
class AnalyticsQuery:
    """Filter for ``QueryService.query``; omitted fields do not filter."""
    category: Optional[Category] = None
    start: Optional[date] = None
    end: Optional[date] = None
    group_by: Optional[GroupBy] = None

    def __post_init__(self):
        if self.category is not None:
            self.category = Category.parse(self.category)
        if self.group_by is not None:
            self.group_by = GroupBy.parse(self.group_by)


@dataclass
class DataPoint:
    date: date
    value: Number
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class AnalyticsResult:
    """One category's series and its summary."""
    category: Category
    period_start: date
    period_end: date
    data: List[DataPoint]
    total: Number
    average: int
    peak: DataPoint
    data_points: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.category.value,
            "period": {"start": self.period_start.isoformat(), "end": self.period_end.isoformat()},
            "data": [
                {"date": point.date.isoformat(), "value": point.value, "metadata": point.metadata}
                for point in self.data
            ],
            "summary": {
                "total": self.total,
                "average": self.average,
                "peak": {"date": self.peak.date.isoformat(), "value": self.peak.value},
                "dataPoints": self.data_points
            }
        }


@dataclass
class PeriodTotals:
    total: Number = 0
    average: int = 0


@dataclass
class TrendResult:
    """Comparison of the latest window against the one before it."""
    trend: str
    percentage_change: float
    current_period: PeriodTotals
    previous_period: PeriodTotals

    def to_dict(self) -> Dict[str, Any]:
        return {
            "trend": self.trend,
            "percentageChange": self.percentage_change,
            "currentPeriod": {"total": self.current_period.total, "average": self.current_period.average},
            "previousPeriod": {"total": self.previous_period.total, "average": self.previous_period.average}
        }


@dataclass
class TopItem:
    name: str
    count: Number
    percentage: float
