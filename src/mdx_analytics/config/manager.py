"""Runtime configuration for the analytics engine."""
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from mdx_analytics.utils import ConfigError

# (level, message, meta) -> None
LoggerFn = Callable[[str, str, Dict[str, Any]], None]


@dataclass(frozen=True)
class AnalyticsConfig:
    """Engine configuration; every option is optional."""
    db: Optional[Any] = None  # record source with a query(sql, params) method
    is_dev: bool = False
    data_dir: Optional[str] = None
    logger: Optional[LoggerFn] = None


class ConfigManager:
    """Holds the current configuration and merges partial updates into it."""

    def __init__(self, config: Optional[AnalyticsConfig] = None):
        self._config = config or AnalyticsConfig()

    def configure(self, **options: Any) -> AnalyticsConfig:
        """
        Merge options into the current configuration.

        Args:
            **options: Any of ``db``, ``is_dev``, ``data_dir``, ``logger``

        Returns:
            The new configuration

        Raises:
            ConfigError: For unknown options or invalid values
        """
        known = {f.name for f in fields(AnalyticsConfig)}
        unknown = sorted(set(options) - known)
        if unknown:
            raise ConfigError(f"Unknown configuration option(s): {', '.join(unknown)}")

        config = replace(self._config, **options)
        is_valid, message = self.validate_config(config)
        if not is_valid:
            raise ConfigError(f"Invalid configuration: {message}")

        self._config = config
        return self._config

    def get_config(self) -> AnalyticsConfig:
        """Return the current configuration snapshot."""
        return self._config

    def reset(self) -> None:
        """Drop every configured option."""
        self._config = AnalyticsConfig()

    def validate_config(self, config: AnalyticsConfig) -> tuple[bool, str]:
        """Validate configuration values."""
        if config.db is not None and not callable(getattr(config.db, "query", None)):
            return False, "Record source must provide a query(sql, params) method"

        if config.logger is not None and not callable(config.logger):
            return False, "Logger must be callable as logger(level, message, meta)"

        if not isinstance(config.is_dev, bool):
            return False, "is_dev must be a boolean"

        if config.data_dir is not None:
            if not str(config.data_dir).strip():
                return False, "Data directory cannot be empty"
            data_dir = Path(config.data_dir)
            if data_dir.exists() and not data_dir.is_dir():
                return False, f"Data directory is not a directory: {data_dir}"

        return True, "Configuration is valid"
