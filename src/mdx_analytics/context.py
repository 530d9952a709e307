"""Explicit engine context owning configuration, buffer and storage."""
from typing import Any, Optional

from mdx_analytics.config import AnalyticsConfig, ConfigManager
from mdx_analytics.storage import AnalyticsStore, LocalFileStorage, StorageAdapter
from mdx_analytics.storage.store import DEFAULT_EXTENSION
from mdx_analytics.writer.buffer import AnalyticsBuffer


class AnalyticsContext:
    """
    Everything the engine's services share.

    Independent contexts never see each other's configuration or buffered
    records, which keeps tests and multiple embedded instances isolated.
    """

    def __init__(
        self,
        config_manager: Optional[ConfigManager] = None,
        storage: Optional[StorageAdapter] = None,
        buffer: Optional[AnalyticsBuffer] = None,
        extension: str = DEFAULT_EXTENSION
    ):
        self.config_manager = config_manager or ConfigManager()
        self.storage = storage or LocalFileStorage()
        self.buffer = buffer or AnalyticsBuffer()
        self.extension = extension

    @classmethod
    def create(cls, storage: Optional[StorageAdapter] = None, **options: Any) -> "AnalyticsContext":
        """Build a context and apply configuration options (see AnalyticsConfig)."""
        context = cls(storage=storage)
        if options:
            context.configure(**options)
        return context

    @property
    def config(self) -> AnalyticsConfig:
        return self.config_manager.get_config()

    def configure(self, **options: Any) -> AnalyticsConfig:
        """Merge configuration options into the current configuration."""
        return self.config_manager.configure(**options)

    @property
    def store(self) -> AnalyticsStore:
        """Store facade rooted at the currently configured data directory."""
        return AnalyticsStore(self.storage, self.config.data_dir, self.extension)

    def reset(self) -> None:
        """Clear configuration and drop buffered records."""
        self.config_manager.reset()
        self.buffer.clear()
