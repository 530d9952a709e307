"""Monthly analytics aggregation module."""
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence, Tuple

from mdx_analytics.utils import get_logger, round_half_up
from mdx_analytics.utils.numbers import Number
from .categories import strategy_for
from .models import Category, DailyBucket, MonthlyAggregate, Record

logger = get_logger()


def group_by_month(records: Sequence[Record]) -> Dict[Tuple[int, int], List[Record]]:
    """
    Group records into calendar-month buckets.

    Args:
        records: Records in any order

    Returns:
        (year, month) -> records, in order of first occurrence
    """
    by_month: Dict[Tuple[int, int], List[Record]] = {}
    for record in records:
        key = (record.timestamp.year, record.timestamp.month)
        by_month.setdefault(key, []).append(record)
    return by_month


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class Aggregator:
    """Computes monthly statistics from timestamped records."""

    def aggregate(
        self,
        category: Category,
        year: int,
        month: int,
        records: Sequence[Record],
        now: Optional[str] = None
    ) -> MonthlyAggregate:
        """
        Aggregate one month of records for a category.

        Days and hours are taken from each timestamp as given; aware
        timestamps are not converted to UTC first.

        Args:
            category: Analytics category
            year: Year of the month being aggregated
            month: Month being aggregated (1-12)
            records: Records belonging to that month
            now: ISO timestamp stored as ``lastUpdated`` (defaults to now)

        Returns:
            MonthlyAggregate
        """
        category = Category.parse(category)
        strategy = strategy_for(category)

        daily: Dict[str, DailyBucket] = {}
        hourly: Dict[int, Number] = {}
        total: Number = 0

        for record in records:
            total += record.value

            day = record.timestamp.date().isoformat()
            bucket = daily.setdefault(day, DailyBucket())
            bucket.total += record.value
            bucket.count += 1

            hour = record.timestamp.hour
            hourly[hour] = hourly.get(hour, 0) + record.value

        aggregate = MonthlyAggregate(
            category=category,
            year=year,
            month=month,
            total_count=total,
            last_updated=now or _now_iso(),
            daily=daily,
            hourly=hourly,
            extra=strategy.extras(records)
        )
        self._derive(aggregate)

        logger.debug(
            f"Aggregated {len(records)} {category.value} records into "
            f"{aggregate.unique_count} days for {year}-{month:02d}"
        )
        return aggregate

    def merge(
        self,
        existing: MonthlyAggregate,
        incoming: MonthlyAggregate,
        now: Optional[str] = None
    ) -> MonthlyAggregate:
        """
        Merge a freshly aggregated batch into a persisted aggregate.

        Totals, daily buckets, hourly totals and breakdown counts add up;
        derived fields are recomputed from the merged buckets. Category
        extras follow the category strategy's merge rules.

        Args:
            existing: Aggregate read back from storage
            incoming: Aggregate of the new batch for the same month
            now: ISO timestamp stored as ``lastUpdated`` (defaults to now)

        Returns:
            New MonthlyAggregate; neither input is modified
        """
        strategy = strategy_for(incoming.category)

        daily: Dict[str, DailyBucket] = {
            day: DailyBucket(bucket.total, bucket.count) for day, bucket in existing.daily.items()
        }
        for day, bucket in incoming.daily.items():
            merged_bucket = daily.setdefault(day, DailyBucket())
            merged_bucket.total += bucket.total
            merged_bucket.count += bucket.count

        hourly: Dict[int, Number] = dict(existing.hourly)
        for hour, value in incoming.hourly.items():
            hourly[hour] = hourly.get(hour, 0) + value

        extra = dict(existing.extra)
        extra.update(incoming.extra)
        extra.update(strategy.merge_extras(existing.extra, incoming.extra))

        merged = MonthlyAggregate(
            category=incoming.category,
            year=incoming.year,
            month=incoming.month,
            total_count=existing.total_count + incoming.total_count,
            last_updated=now or _now_iso(),
            daily=daily,
            hourly=hourly,
            extra=extra
        )
        self._derive(merged)

        logger.debug(
            f"Merged {incoming.category.value} {incoming.year}-{incoming.month:02d}: "
            f"{existing.total_count} + {incoming.total_count} = {merged.total_count}"
        )
        return merged

    @staticmethod
    def _derive(aggregate: MonthlyAggregate) -> None:
        """Recompute unique count, daily average and peaks from the buckets."""
        aggregate.unique_count = len(aggregate.daily)
        if aggregate.unique_count > 0:
            aggregate.average_daily = round_half_up(aggregate.total_count / aggregate.unique_count)
        else:
            aggregate.average_daily = 0

        # Ties go to the earliest day / lowest hour
        aggregate.peak_day = ""
        peak_total = None
        for day in sorted(aggregate.daily):
            total = aggregate.daily[day].total
            if peak_total is None or total > peak_total:
                aggregate.peak_day, peak_total = day, total

        aggregate.peak_hour = 0
        peak_value = None
        for hour in sorted(aggregate.hourly):
            value = aggregate.hourly[hour]
            if peak_value is None or value > peak_value:
                aggregate.peak_hour, peak_value = hour, value
