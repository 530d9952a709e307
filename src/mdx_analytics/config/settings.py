"""Application settings loader from YAML configuration."""
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from mdx_analytics.utils import ConfigError

DEFAULT_CONFIG_PATH = Path("config.yaml")


@dataclass
class AppSettings:
    """Application-wide settings loaded from config.yaml."""

    # App info
    app_name: str
    app_version: str

    # Logging
    log_level: str
    log_dir: Optional[str]
    log_max_file_size_mb: int
    log_backup_count: int

    # Analytics
    data_dir: str
    extension: str
    is_dev: bool

    # Record source
    database_file: Optional[str]

    # Retry
    retry_max_retries: int
    retry_initial_delay_seconds: float
    retry_backoff_factor: float

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "AppSettings":
        """
        Load settings from a YAML file.

        Args:
            config_path: Settings file; ``MDX_ANALYTICS_CONFIG`` or
                ``config.yaml`` in the working directory when omitted

        Returns:
            AppSettings
        """
        if config_path is None:
            config_path = Path(os.getenv("MDX_ANALYTICS_CONFIG", DEFAULT_CONFIG_PATH))
        config_path = Path(config_path)

        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path, "r", encoding="utf-8") as f:
            config = yaml.safe_load(f) or {}

        if not isinstance(config, dict):
            raise ConfigError(f"Configuration file must contain a mapping: {config_path}")

        return cls.from_dict(config)

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> "AppSettings":
        """Build settings from a parsed mapping, filling in defaults."""
        app = config.get("app") or {}
        logging_cfg = config.get("logging") or {}
        analytics = config.get("analytics") or {}
        database = config.get("database") or {}
        retry = config.get("retry") or {}

        try:
            return cls(
                app_name=str(app.get("name", "mdx-analytics")),
                app_version=str(app.get("version", "0.0.0")),
                log_level=str(logging_cfg.get("level", "INFO")),
                log_dir=logging_cfg.get("dir"),
                log_max_file_size_mb=int(logging_cfg.get("max_file_size_mb", 10)),
                log_backup_count=int(logging_cfg.get("backup_count", 30)),
                data_dir=str(analytics.get("data_dir", "content/analytics")),
                extension=str(analytics.get("extension", "mdx")),
                is_dev=bool(analytics.get("is_dev", False)),
                database_file=database.get("file"),
                retry_max_retries=int(retry.get("max_retries", 3)),
                retry_initial_delay_seconds=float(retry.get("initial_delay_seconds", 0.1)),
                retry_backoff_factor=float(retry.get("backoff_factor", 2))
            )
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid settings value: {e}")


# Global settings instance
_settings: Optional[AppSettings] = None


def get_settings(config_path: Optional[Path] = None) -> AppSettings:
    """Get or create global settings instance."""
    global _settings
    if _settings is None:
        _settings = AppSettings.load(config_path)
    return _settings
