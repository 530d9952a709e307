"""Logging infrastructure with category context."""
import logging
import sys
import threading
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Optional


class CategoryContextFilter(logging.Filter):
    """Add analytics category context to log records; the context is per thread."""

    def __init__(self):
        super().__init__()
        self._local = threading.local()

    @property
    def category(self) -> Optional[str]:
        return getattr(self._local, "category", None)

    @category.setter
    def category(self, value: Optional[str]):
        self._local.category = value

    def filter(self, record):
        """Add category to record."""
        record.category = self.category or "system"
        return True


class AnalyticsLogger:
    """Centralized logging manager."""

    def __init__(
        self,
        log_level: str = "INFO",
        log_dir: Optional[Path] = None,
        max_file_size_mb: int = 10,
        backup_count: int = 30
    ):
        self.category_filter = CategoryContextFilter()

        self.logger = logging.getLogger("mdx_analytics")
        self.logger.setLevel(getattr(logging, log_level.upper()))

        # Remove existing handlers
        self.logger.handlers.clear()

        formatter = logging.Formatter(
            "%(asctime)s [%(levelname)s] [category:%(category)s] %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )

        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(logging.INFO)
        console_handler.setFormatter(formatter)
        console_handler.addFilter(self.category_filter)
        self.logger.addHandler(console_handler)

        self.log_file: Optional[Path] = None
        if log_dir is not None:
            log_dir = Path(log_dir)
            log_dir.mkdir(parents=True, exist_ok=True)
            self.log_file = log_dir / "analytics.log"

            file_handler = RotatingFileHandler(
                self.log_file,
                maxBytes=max_file_size_mb * 1024 * 1024,
                backupCount=backup_count,
                encoding="utf-8"
            )
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(formatter)
            file_handler.addFilter(self.category_filter)
            self.logger.addHandler(file_handler)

    def set_category_context(self, category: Optional[str]):
        """Set current category context for logging."""
        self.category_filter.category = category

    def get_logger(self) -> logging.Logger:
        """Get the configured logger."""
        return self.logger


# Global logger instance
_logger_instance: Optional[AnalyticsLogger] = None


def get_logger(log_level: str = "INFO") -> logging.Logger:
    """Get or create global logger instance."""
    global _logger_instance
    if _logger_instance is None:
        _logger_instance = AnalyticsLogger(log_level)
    return _logger_instance.get_logger()


def configure_logging(
    log_level: str = "INFO",
    log_dir: Optional[Path] = None,
    max_file_size_mb: int = 10,
    backup_count: int = 30
) -> logging.Logger:
    """Rebuild the global logger, optionally with a rotating log file."""
    global _logger_instance
    _logger_instance = AnalyticsLogger(log_level, log_dir, max_file_size_mb, backup_count)
    return _logger_instance.get_logger()


def set_category_context(category: Optional[str]):
    """Set category context for logging."""
    global _logger_instance
    if _logger_instance:
        _logger_instance.set_category_context(category)


def report(config: Any, level: str, message: str, **meta: Any) -> None:
    """
    Send a message to the configured logger callback.

    Without a callback, errors go to the package logger at ERROR level and
    everything else at DEBUG.

    Args:
        config: Active configuration (its ``logger`` attribute may be None)
        level: Level name such as "error" or "info"
        message: Human-readable message
        **meta: Context passed to the callback, e.g. ``error=exc``
    """
    callback = getattr(config, "logger", None)
    if callback is not None:
        callback(level, message, meta)
        return

    logger = get_logger()
    if level == "error":
        error = meta.get("error")
        if error is not None:
            logger.error(f"{message}: {error}")
        else:
            logger.error(message)
    else:
        logger.debug(f"{message} {meta}" if meta else message)
