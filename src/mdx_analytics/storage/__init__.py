"""Document storage."""
from .local import StorageAdapter, LocalFileStorage
from .store import AnalyticsStore, DEFAULT_BASE_DIR, DEFAULT_EXTENSION

__all__ = [
    "StorageAdapter",
    "LocalFileStorage",
    "AnalyticsStore",
    "DEFAULT_BASE_DIR",
    "DEFAULT_EXTENSION",
]
