"""Batch conversion from a record store."""
from .schemas import PageViewRow, EventRow, UserActivityRow
from .sources import RecordSource, SourceQuery, SOURCES
from .sqlite_source import SQLiteRecordSource
from .converter import AnalyticsConverter, ConversionResult

__all__ = [
    "PageViewRow",
    "EventRow",
    "UserActivityRow",
    "RecordSource",
    "SourceQuery",
    "SOURCES",
    "SQLiteRecordSource",
    "AnalyticsConverter",
    "ConversionResult",
]
