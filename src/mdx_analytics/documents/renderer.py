"""Human-readable body of a month document."""
import calendar
from datetime import date
from typing import List

from mdx_analytics.aggregation import MonthlyAggregate, strategy_for
from mdx_analytics.utils import format_number

TRAILER = """<script>
  // Access analytics data from frontmatter
  export let data;
</script>
"""


def _long_date(day: date) -> str:
    return f"{calendar.month_name[day.month]} {day.day}, {day.year}"


def render_summary(aggregate: MonthlyAggregate) -> str:
    """Render the title and summary section."""
    strategy = strategy_for(aggregate.category)
    lines = [
        f"# {strategy.title} - {calendar.month_name[aggregate.month]} {aggregate.year}",
        "",
        "## Summary",
        "",
        f"- **Total {strategy.metric_name}**: {format_number(aggregate.total_count)}",
        f"- **Daily Average**: {format_number(aggregate.average_daily)}",
    ]
    if aggregate.peak_day:
        lines.append(f"- **Peak Day**: {_long_date(date.fromisoformat(aggregate.peak_day))}")
    else:
        lines.append("- **Peak Day**: n/a")
    lines.append(f"- **Peak Hour**: {aggregate.peak_hour}:00 - {aggregate.peak_hour + 1}:00")
    return "\n".join(lines)


def render_daily_breakdown(aggregate: MonthlyAggregate) -> str:
    """Render one subsection per day present in the data, oldest first."""
    sections: List[str] = []
    for day_key in sorted(aggregate.daily):
        bucket = aggregate.daily[day_key]
        day = date.fromisoformat(day_key)
        heading = f"### {calendar.day_name[day.weekday()]}, {calendar.month_name[day.month]} {day.day}"
        lines = [
            heading,
            "",
            f"- **Total**: {format_number(bucket.total)}",
            f"- **Data Points**: {bucket.count}",
        ]
        if bucket.count > 0:
            lines.append(f"- **Average**: {format_number(bucket.average)}")
        sections.append("\n".join(lines) + "\n")
    return "\n".join(sections)


def render_body(aggregate: MonthlyAggregate) -> str:
    """Render the full document body that follows the header block."""
    breakdown = render_daily_breakdown(aggregate) or "_No data recorded._\n"
    return (
        f"{render_summary(aggregate)}\n"
        "\n"
        "## Daily Breakdown\n"
        "\n"
        f"{breakdown}\n"
        f"{TRAILER}"
    )
