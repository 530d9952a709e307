"""Utility modules."""
from .logger import get_logger, configure_logging, set_category_context, report
from .exceptions import (
    AnalyticsError,
    ConfigError,
    MissingRecordSourceError,
    StorageError,
    RecordSourceError,
    ValidationError,
    RetryableError,
    RetryableStorageError
)
from .retry import retry_with_backoff
from .numbers import round_half_up, format_number

__all__ = [
    "get_logger",
    "configure_logging",
    "set_category_context",
    "report",
    "AnalyticsError",
    "ConfigError",
    "MissingRecordSourceError",
    "StorageError",
    "RecordSourceError",
    "ValidationError",
    "RetryableError",
    "RetryableStorageError",
    "retry_with_backoff",
    "round_half_up",
    "format_number"
]
