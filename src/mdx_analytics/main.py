"""Command-line entry point."""
import sys
import argparse
from datetime import datetime, time
from pathlib import Path
from typing import List, Optional

from mdx_analytics.aggregation import Category
from mdx_analytics.config import AppSettings
from mdx_analytics.context import AnalyticsContext
from mdx_analytics.converter import AnalyticsConverter, SQLiteRecordSource
from mdx_analytics.query import AnalyticsQuery, GroupBy, QueryService
from mdx_analytics.utils import configure_logging, format_number, get_logger, AnalyticsError

logger = get_logger()

CATEGORY_CHOICES = [category.value for category in Category]
GROUP_BY_CHOICES = [group.value for group in GroupBy]


def _parse_start(value: str) -> datetime:
    """Parse an ISO date or datetime; a bare date means the start of that day."""
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid date: {value!r} (expected YYYY-MM-DD)")


def _parse_end(value: str) -> datetime:
    """Parse an ISO date or datetime; a bare date means the end of that day."""
    parsed = _parse_start(value)
    if len(value) == 10:
        return datetime.combine(parsed.date(), time.max)
    return parsed


def _load_settings(config_path: Optional[str]) -> AppSettings:
    """Load settings, falling back to defaults when no file is present."""
    if config_path:
        return AppSettings.load(Path(config_path))
    try:
        return AppSettings.load()
    except FileNotFoundError:
        return AppSettings.from_dict({})


def _build_context(args: argparse.Namespace, settings: AppSettings) -> AnalyticsContext:
    context = AnalyticsContext(extension=settings.extension)
    context.configure(
        data_dir=args.data_dir or settings.data_dir,
        is_dev=bool(args.dev or settings.is_dev)
    )
    return context


def convert_command(args: argparse.Namespace, settings: AppSettings) -> None:
    """Convert record-store rows in a date range into month documents."""
    context = _build_context(args, settings)

    db_file = args.db or settings.database_file
    if db_file:
        context.configure(db=SQLiteRecordSource(
            db_file,
            max_retries=settings.retry_max_retries,
            initial_delay=settings.retry_initial_delay_seconds,
            backoff_factor=settings.retry_backoff_factor
        ))

    converter = AnalyticsConverter(context)
    if args.category:
        paths = converter.convert(args.category, args.start, args.end)
    else:
        paths = converter.convert_all(args.start, args.end).paths

    print(f"✓ Wrote {len(paths)} documents")
    for path in paths:
        print(f"  {path}")


def list_command(args: argparse.Namespace, settings: AppSettings) -> None:
    """List stored month documents."""
    refs = _build_context(args, settings).store.list(args.category)
    if not refs:
        print("No analytics documents found.")
        return

    print(f"\nTotal: {len(refs)} documents")
    print(f"{'Category':<15} {'Month':<8} {'Path'}")
    print("-" * 70)
    for ref in refs:
        print(f"{ref.category.value:<15} {ref.year}-{ref.month:02d}  {ref.path}")


def show_command(args: argparse.Namespace, settings: AppSettings) -> None:
    """Print the header fields of one month document."""
    document = _build_context(args, settings).store.get(args.category, args.year, args.month)
    if document is None:
        print(f"No {args.category} document for {args.year}-{args.month:02d}.")
        return

    print(f"\n{document.path}")
    for key, value in document.header.items():
        if isinstance(value, (dict, list)):
            value = f"<{len(value)} entries>"
        print(f"  {key}: {value}")


def query_command(args: argparse.Namespace, settings: AppSettings) -> None:
    """Print per-category series and summaries."""
    service = QueryService(_build_context(args, settings))
    results = service.query(AnalyticsQuery(
        category=args.category,
        start=args.start,
        end=args.end,
        group_by=args.group_by
    ))
    if not results:
        print("No analytics documents match the query.")
        return

    for result in results:
        print(
            f"\n{result.category.value}: {result.period_start} .. {result.period_end} "
            f"(total {format_number(result.total)}, average {format_number(result.average)}, "
            f"peak {format_number(result.peak.value)} on {result.peak.date}, "
            f"{result.data_points} points)"
        )
        for point in result.data:
            print(f"  {point.date}  {format_number(point.value):>12}")


def trend_command(args: argparse.Namespace, settings: AppSettings) -> None:
    """Compare the latest window with the one before it."""
    trend = QueryService(_build_context(args, settings)).trend(args.category, args.days)
    print(
        f"{args.category}: {trend.trend} ({trend.percentage_change:+.1f}%) "
        f"current {format_number(trend.current_period.total)}, "
        f"previous {format_number(trend.previous_period.total)}"
    )


def top_command(args: argparse.Namespace, settings: AppSettings) -> None:
    """Print the most frequent breakdown items."""
    items = QueryService(_build_context(args, settings)).top_items(args.category, args.limit)
    if not items:
        print("No breakdown data found.")
        return

    print(f"{'Name':<40} {'Count':>10} {'Share':>7}")
    print("-" * 60)
    for item in items:
        print(f"{item.name:<40} {format_number(item.count):>10} {item.percentage:>6.1f}%")


COMMANDS = {
    "convert": convert_command,
    "list": list_command,
    "show": show_command,
    "query": query_command,
    "trend": trend_command,
    "top": top_command,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="mdx-analytics", description="Monthly analytics documents")
    parser.add_argument("--config", help="Settings file (default: config.yaml or $MDX_ANALYTICS_CONFIG)")
    parser.add_argument("--data-dir", help="Base directory of analytics documents")
    parser.add_argument("--dev", action="store_true", help="Enable development mode")

    subparsers = parser.add_subparsers(dest="command", required=True)

    convert = subparsers.add_parser("convert", help="Convert record-store rows into documents")
    convert.add_argument("--start", type=_parse_start, required=True, help="Range start (YYYY-MM-DD)")
    convert.add_argument("--end", type=_parse_end, required=True, help="Range end (YYYY-MM-DD)")
    convert.add_argument("--db", help="SQLite database file")
    convert.add_argument("--category", choices=CATEGORY_CHOICES, help="Convert only this category")

    list_parser = subparsers.add_parser("list", help="List stored documents")
    list_parser.add_argument("--category", choices=CATEGORY_CHOICES)

    show = subparsers.add_parser("show", help="Show one month document")
    show.add_argument("category", choices=CATEGORY_CHOICES)
    show.add_argument("year", type=int)
    show.add_argument("month", type=int)

    query = subparsers.add_parser("query", help="Query stored totals")
    query.add_argument("--category", choices=CATEGORY_CHOICES)
    query.add_argument("--start", type=_parse_start)
    query.add_argument("--end", type=_parse_end)
    query.add_argument("--group-by", choices=GROUP_BY_CHOICES)

    trend = subparsers.add_parser("trend", help="Compare recent activity with the window before")
    trend.add_argument("category", choices=CATEGORY_CHOICES)
    trend.add_argument("--days", type=int, default=30)

    top = subparsers.add_parser("top", help="Most frequent paths or types")
    top.add_argument("category", choices=CATEGORY_CHOICES)
    top.add_argument("--limit", type=int, default=10)

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point for the mdx-analytics CLI."""
    args = build_parser().parse_args(argv)

    try:
        settings = _load_settings(args.config)
        configure_logging(
            settings.log_level,
            Path(settings.log_dir) if settings.log_dir else None,
            settings.log_max_file_size_mb,
            settings.log_backup_count
        )
        COMMANDS[args.command](args, settings)
    except KeyboardInterrupt:
        logger.info("Received keyboard interrupt")
    except (AnalyticsError, FileNotFoundError) as e:
        logger.critical(f"{args.command} failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
