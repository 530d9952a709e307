"""Configuration."""
from .manager import AnalyticsConfig, ConfigManager, LoggerFn
from .settings import AppSettings, get_settings

__all__ = ["AnalyticsConfig", "ConfigManager", "LoggerFn", "AppSettings", "get_settings"]
