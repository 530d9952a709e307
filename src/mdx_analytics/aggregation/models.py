"""Data models for analytics aggregation."""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from mdx_analytics.utils import ValidationError, round_half_up
from mdx_analytics.utils.numbers import Number


class Category(str, Enum):
    """Analytics kinds, each persisted under its own directory."""
    PAGE_VIEWS = "page-views"
    EVENTS = "events"
    USER_ACTIVITY = "user-activity"

    @classmethod
    def parse(cls, value: "Category | str") -> "Category":
        """Coerce a category value, raising ValidationError for unknown names."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            allowed = ", ".join(c.value for c in cls)
            raise ValidationError(f"Unknown analytics category {value!r} (expected one of: {allowed})")


@dataclass(frozen=True)
class Record:
    """One observed analytics event."""
    timestamp: datetime
    value: Number = 1
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if not isinstance(self.timestamp, datetime):
            raise ValidationError(f"Record timestamp must be a datetime, got {type(self.timestamp).__name__}")
        if isinstance(self.value, bool) or not isinstance(self.value, (int, float)):
            raise ValidationError(f"Record value must be numeric, got {self.value!r}")
        if self.metadata is None:
            object.__setattr__(self, "metadata", {})


@dataclass
class DailyBucket:
    """Summed value and record count for one calendar day."""
    total: Number = 0
    count: int = 0

    @property
    def average(self) -> Number:
        return round_half_up(self.total / self.count) if self.count else 0


@dataclass
class MonthlyAggregate:
    """Statistical summary of one category in one calendar month."""
    category: Category
    year: int
    month: int
    total_count: Number = 0
    unique_count: int = 0
    average_daily: int = 0
    peak_day: str = ""
    peak_hour: int = 0
    last_updated: str = ""
    daily: Dict[str, DailyBucket] = field(default_factory=dict)  # "YYYY-MM-DD" -> bucket
    hourly: Dict[int, Number] = field(default_factory=dict)  # 0-23 -> summed value
    extra: Dict[str, Any] = field(default_factory=dict)  # category extras, then overrides

    def to_header(self) -> Dict[str, Any]:
        """Build the ordered document header for this aggregate."""
        header: Dict[str, Any] = {
            "type": self.category.value,
            "year": self.year,
            "month": self.month,
            "totalCount": self.total_count,
            "uniqueCount": self.unique_count,
            "averageDaily": self.average_daily,
            "peakDay": self.peak_day,
            "peakHour": self.peak_hour,
            "lastUpdated": self.last_updated,
        }
        overrides = {k: v for k, v in self.extra.items() if k in header}
        header.update({k: v for k, v in self.extra.items() if k not in header})
        header["dailyTotals"] = {
            day: {"total": bucket.total, "count": bucket.count}
            for day, bucket in sorted(self.daily.items())
        }
        header["hourlyTotals"] = {hour: total for hour, total in sorted(self.hourly.items())}
        header.update(overrides)
        return header

    @classmethod
    def from_header(
        cls,
        category: Category,
        year: int,
        month: int,
        header: Dict[str, Any]
    ) -> "MonthlyAggregate":
        """
        Rebuild an aggregate from a decoded document header.

        The key comes from the document location rather than the header so a
        hand-edited header cannot move a document to another month.

        Args:
            category: Category of the document
            year: Document year
            month: Document month (1-12)
            header: Decoded header mapping

        Returns:
            MonthlyAggregate; missing fields fall back to their defaults
        """
        base_keys = {
            "type", "year", "month", "totalCount", "uniqueCount", "averageDaily",
            "peakDay", "peakHour", "lastUpdated", "dailyTotals", "hourlyTotals",
        }

        daily: Dict[str, DailyBucket] = {}
        raw_daily = header.get("dailyTotals")
        if isinstance(raw_daily, dict):
            for day, bucket in raw_daily.items():
                if isinstance(bucket, dict):
                    daily[str(day)] = DailyBucket(
                        total=_number(bucket.get("total")),
                        count=int(_number(bucket.get("count")))
                    )

        hourly: Dict[int, Number] = {}
        raw_hourly = header.get("hourlyTotals")
        if isinstance(raw_hourly, dict):
            for hour, total in raw_hourly.items():
                try:
                    hourly[int(hour)] = _number(total)
                except (TypeError, ValueError):
                    continue

        return cls(
            category=category,
            year=year,
            month=month,
            total_count=_number(header.get("totalCount")),
            unique_count=int(_number(header.get("uniqueCount"))),
            average_daily=int(_number(header.get("averageDaily"))),
            peak_day=str(header.get("peakDay") or ""),
            peak_hour=int(_number(header.get("peakHour"))),
            last_updated=str(header.get("lastUpdated") or ""),
            daily=daily,
            hourly=hourly,
            extra={k: v for k, v in header.items() if k not in base_keys}
        )


@dataclass
class StoredDocument:
    """A persisted month document read back from storage."""
    category: Category
    year: int
    month: int
    path: Any
    header: Dict[str, Any]
    body: str

    def to_aggregate(self) -> MonthlyAggregate:
        return MonthlyAggregate.from_header(self.category, self.year, self.month, self.header)


@dataclass(frozen=True)
class DocumentRef:
    """Location of an existing month document."""
    category: Category
    year: int
    month: int
    path: Any


def _number(value: Optional[Any]) -> Number:
    if isinstance(value, bool) or value is None:
        return 0
    if isinstance(value, (int, float)):
        return value
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return 0
    return int(parsed) if parsed.is_integer() else parsed
