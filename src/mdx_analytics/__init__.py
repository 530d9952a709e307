"""Monthly analytics aggregation persisted as Markdown documents."""
from .aggregation import Aggregator, Category, MonthlyAggregate, Record
from .config import AnalyticsConfig, ConfigManager
from .context import AnalyticsContext
from .converter import AnalyticsConverter, ConversionResult, SQLiteRecordSource
from .query import AnalyticsQuery, GroupBy, QueryService
from .storage import AnalyticsStore, LocalFileStorage
from .writer import RealTimeWriter

__version__ = "0.1.0"

__all__ = [
    "Aggregator",
    "Category",
    "MonthlyAggregate",
    "Record",
    "AnalyticsConfig",
    "ConfigManager",
    "AnalyticsContext",
    "AnalyticsConverter",
    "ConversionResult",
    "SQLiteRecordSource",
    "AnalyticsQuery",
    "GroupBy",
    "QueryService",
    "AnalyticsStore",
    "LocalFileStorage",
    "RealTimeWriter",
]
