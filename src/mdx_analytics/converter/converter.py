"""Batch conversion of record-store rows into month documents."""
from dataclasses import dataclass, field
from datetime import date, datetime, time
from pathlib import Path
from typing import TYPE_CHECKING, List, Union

from pydantic import ValidationError as PydanticValidationError

from mdx_analytics.aggregation import Category, Record, group_by_month
from mdx_analytics.utils import (
    get_logger,
    report,
    set_category_context,
    MissingRecordSourceError,
    ValidationError
)
from .sources import SOURCES, RecordSource

if TYPE_CHECKING:
    from mdx_analytics.context import AnalyticsContext

logger = get_logger()

DateBound = Union[date, datetime]


def _end_of_day(end: DateBound) -> datetime:
    if isinstance(end, datetime):
        return end
    return datetime.combine(end, time.max)


@dataclass
class ConversionResult:
    """Paths written by ``convert_all``; an empty list means nothing was written."""
    page_views: List[Path] = field(default_factory=list)
    events: List[Path] = field(default_factory=list)
    user_activity: List[Path] = field(default_factory=list)

    @property
    def paths(self) -> List[Path]:
        return self.page_views + self.events + self.user_activity


class AnalyticsConverter:
    """Reads rows from the configured record source and writes one document per month."""

    def __init__(self, context: "AnalyticsContext"):
        self.context = context

    def _require_db(self) -> RecordSource:
        db = self.context.config.db
        if db is None:
            raise MissingRecordSourceError(
                "No record source configured. Call configure(db=...) before converting analytics."
            )
        return db

    def convert(self, category: Union[Category, str], start: DateBound, end: DateBound) -> List[Path]:
        """
        Convert one category's rows in ``[start, end]`` into month documents.

        Existing documents for the touched months are replaced.

        Args:
            category: Category to convert
            start: Inclusive lower bound
            end: Inclusive upper bound; a plain date covers that whole day

        Returns:
            Written document paths, in month order of first appearance

        Raises:
            MissingRecordSourceError: No record source is configured
        """
        category = Category.parse(category)
        db = self._require_db()
        source = SOURCES[category]

        set_category_context(category.value)
        try:
            rows = db.query(source.sql, [start, _end_of_day(end)])
            records = self._to_records(category, rows)

            paths: List[Path] = []
            store = self.context.store
            for (year, month), month_records in group_by_month(records).items():
                paths.append(store.write(category, year, month, month_records))
        except Exception as e:
            report(self.context.config, "error", f"Failed to convert {source.label}", error=e)
            raise
        finally:
            set_category_context(None)

        logger.info(f"Converted {len(records)} {category.value} rows into {len(paths)} documents")
        return paths

    def _to_records(self, category: Category, rows) -> List[Record]:
        source = SOURCES[category]
        records: List[Record] = []
        for index, row in enumerate(rows):
            try:
                parsed = source.row_model.model_validate(dict(row))
            except PydanticValidationError as e:
                raise ValidationError(f"Invalid {category.value} row #{index}: {e}") from e
            records.append(source.to_record(parsed))
        return records

    def convert_page_views(self, start: DateBound, end: DateBound) -> List[Path]:
        """Convert page views in ``[start, end]``."""
        return self.convert(Category.PAGE_VIEWS, start, end)

    def convert_events(self, start: DateBound, end: DateBound) -> List[Path]:
        """Convert events in ``[start, end]``."""
        return self.convert(Category.EVENTS, start, end)

    def convert_user_activity(self, start: DateBound, end: DateBound) -> List[Path]:
        """Convert user activity in ``[start, end]``."""
        return self.convert(Category.USER_ACTIVITY, start, end)

    def convert_all(self, start: DateBound, end: DateBound) -> ConversionResult:
        """
        Convert every category independently.

        A failing category is reported and left empty in the result; the
        others still run.

        Returns:
            ConversionResult with the paths of each category that succeeded
        """
        result = ConversionResult()
        steps = [
            ("page_views", self.convert_page_views, "page views"),
            ("events", self.convert_events, "event analytics"),
            ("user_activity", self.convert_user_activity, "user activity"),
        ]

        for attribute, convert, label in steps:
            try:
                setattr(result, attribute, convert(start, end))
            except Exception as e:
                report(self.context.config, "error", f"Failed to convert {label}", error=e)

        logger.info(
            f"Conversion finished: {len(result.page_views)} page-views, "
            f"{len(result.events)} events, {len(result.user_activity)} user-activity documents"
        )
        return result
