"""Custom exception classes for mdx-analytics."""


class AnalyticsError(Exception):
    """Base exception for mdx-analytics."""
    pass


class ConfigError(AnalyticsError):
    """Configuration-related errors."""
    pass


class MissingRecordSourceError(ConfigError):
    """Raised when a conversion runs without a record source."""
    pass


class StorageError(AnalyticsError):
    """Document storage errors."""
    pass


class RecordSourceError(AnalyticsError):
    """Record store query errors."""
    pass


class ValidationError(AnalyticsError):
    """Data validation errors."""
    pass


# Retryable errors
class RetryableError(AnalyticsError):
    """Base class for errors that should trigger retry."""
    pass


class RetryableStorageError(RetryableError, RecordSourceError):
    """Record store errors that can be retried."""
    pass
