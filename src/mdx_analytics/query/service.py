"""Read-side queries over persisted month documents."""
from datetime import date, datetime, time, timedelta
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Tuple, Union

from mdx_analytics.aggregation import Category, strategy_for
from mdx_analytics.utils import get_logger, round_half_up, ValidationError
from .models import (
    AnalyticsQuery,
    AnalyticsResult,
    DataPoint,
    GroupBy,
    PeriodTotals,
    TopItem,
    TrendResult
)

if TYPE_CHECKING:
    from mdx_analytics.context import AnalyticsContext

logger = get_logger()

TREND_THRESHOLD_PERCENT = 5
Bound = Union[date, datetime, None]


def _as_datetime(bound: Bound) -> Optional[datetime]:
    if bound is None:
        return None
    if isinstance(bound, datetime):
        return bound.replace(tzinfo=None)
    return datetime.combine(bound, time.min)


def _month_in_range(year: int, month: int, start: Bound, end: Bound) -> bool:
    """A month matches when its first day lies within ``[start, end]``."""
    first_day = datetime(year, month, 1)
    lower, upper = _as_datetime(start), _as_datetime(end)
    if lower is not None and first_day < lower:
        return False
    if upper is not None and first_day > upper:
        return False
    return True


def _numeric(value: Any):
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    return value


def _group_start(day: date, group_by: GroupBy) -> date:
    if group_by is GroupBy.DAY:
        return day
    if group_by is GroupBy.WEEK:
        # Weeks start on Sunday
        return day - timedelta(days=(day.weekday() + 1) % 7)
    if group_by is GroupBy.WEEK_OF_YEAR:
        iso_year, iso_week, _ = day.isocalendar()
        return date.fromisocalendar(iso_year, iso_week, 1)
    if group_by is GroupBy.MONTH:
        return date(day.year, day.month, 1)
    return date(day.year, 1, 1)


def regroup(points: List[DataPoint], group_by: Union[GroupBy, str]) -> List[DataPoint]:
    """
    Sum points into coarser buckets.

    Args:
        points: Series to regroup
        group_by: Target bucket size

    Returns:
        One point per bucket, ascending, with ``averageValue`` in metadata
    """
    group_by = GroupBy.parse(group_by)
    groups: Dict[date, Tuple[Any, int]] = {}
    for point in points:
        start = _group_start(point.date, group_by)
        total, count = groups.get(start, (0, 0))
        groups[start] = (total + point.value, count + 1)

    return [
        DataPoint(date=start, value=total, metadata={"averageValue": round_half_up(total / count)})
        for start, (total, count) in sorted(groups.items())
    ]


class QueryService:
    """Series, trends and ranked items derived from stored documents only."""

    def __init__(self, context: "AnalyticsContext", clock: Optional[Callable[[], datetime]] = None):
        """
        Initialize the query service.

        Args:
            context: Engine context providing the store
            clock: Returns "now" for trend windows (local now by default)
        """
        self.context = context
        self._clock = clock or datetime.now

    def _monthly_points(self, category: Category, start: Bound, end: Bound) -> List[DataPoint]:
        store = self.context.store
        refs = [ref for ref in store.list(category) if _month_in_range(ref.year, ref.month, start, end)]
        refs.sort(key=lambda ref: (ref.year, ref.month))

        points: List[DataPoint] = []
        for ref in refs:
            document = store.get(category, ref.year, ref.month)
            if document is None:
                continue
            header = document.header
            points.append(DataPoint(
                date=date(ref.year, ref.month, 1),
                value=_numeric(header.get("totalCount")),
                metadata={
                    "uniqueCount": header.get("uniqueCount"),
                    "averageDaily": header.get("averageDaily"),
                    "peakDay": header.get("peakDay"),
                    "peakHour": header.get("peakHour")
                }
            ))
        return points

    def query(self, query: Optional[AnalyticsQuery] = None) -> List[AnalyticsResult]:
        """
        Build per-category series from month documents.

        Args:
            query: Category, date range and grouping filter (everything when omitted)

        Returns:
            One AnalyticsResult per category that has matching documents
        """
        query = query or AnalyticsQuery()
        categories = [query.category] if query.category else list(Category)
        results: List[AnalyticsResult] = []

        for category in categories:
            points = self._monthly_points(category, query.start, query.end)
            if not points:
                continue

            total = sum(point.value for point in points)
            peak = points[0]
            for point in points[1:]:
                if point.value > peak.value:
                    peak = point

            series = regroup(points, query.group_by) if query.group_by else points
            results.append(AnalyticsResult(
                category=category,
                period_start=series[0].date,
                period_end=series[-1].date,
                data=series,
                total=total,
                average=round_half_up(total / len(series)),
                peak=DataPoint(date=peak.date, value=peak.value),
                data_points=len(series)
            ))

        logger.debug(f"Query returned {len(results)} categories")
        return results

    def trend(
        self,
        category: Union[Category, str],
        days: int = 30,
        now: Optional[datetime] = None
    ) -> TrendResult:
        """
        Compare the latest ``days`` against the ``days`` before them.

        Args:
            category: Category to compare
            days: Window length in days
            now: End of the current window (the service clock by default)

        Returns:
            TrendResult labelled "up" / "down" beyond 5 percent, else "stable"
        """
        category = Category.parse(category)
        if days <= 0:
            raise ValidationError(f"Trend window must be positive, got {days} days")

        now = now or self._clock()
        mid = now - timedelta(days=days)
        start = now - timedelta(days=2 * days)

        current = self._period_totals(category, mid, now)
        previous = self._period_totals(category, start, mid)

        change = 0.0
        if previous.total > 0:
            change = (current.total - previous.total) / previous.total * 100

        label = "stable"
        if change > TREND_THRESHOLD_PERCENT:
            label = "up"
        elif change < -TREND_THRESHOLD_PERCENT:
            label = "down"

        return TrendResult(
            trend=label,
            percentage_change=round_half_up(change, 1),
            current_period=current,
            previous_period=previous
        )

    def _period_totals(self, category: Category, start: datetime, end: datetime) -> PeriodTotals:
        results = self.query(AnalyticsQuery(category=category, start=start, end=end))
        if not results:
            return PeriodTotals()
        return PeriodTotals(total=results[0].total, average=results[0].average)

    def top_items(
        self,
        category: Union[Category, str],
        limit: int = 10,
        start: Bound = None,
        end: Bound = None
    ) -> List[TopItem]:
        """
        Rank breakdown items summed over matching months.

        Args:
            category: Category whose breakdown field is ranked
            limit: Maximum number of items
            start: Optional lower bound on the month's first day
            end: Optional upper bound on the month's first day

        Returns:
            Items by descending count, with their share of all counted items
        """
        category = Category.parse(category)
        strategy = strategy_for(category)
        store = self.context.store

        counts: Dict[str, Any] = {}
        grand_total = 0
        for ref in store.list(category):
            if not _month_in_range(ref.year, ref.month, start, end):
                continue
            document = store.get(category, ref.year, ref.month)
            if document is None:
                continue
            for name, count in strategy.breakdown_items(document.header):
                counts[name] = counts.get(name, 0) + count
                grand_total += count

        ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)[:max(limit, 0)]
        return [
            TopItem(
                name=name,
                count=count,
                percentage=round_half_up(count / grand_total * 100, 1) if grand_total > 0 else 0.0
            )
            for name, count in ranked
        ]
