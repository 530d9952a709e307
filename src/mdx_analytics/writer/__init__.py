"""Buffered real-time writing."""
from .buffer import AnalyticsBuffer
from .realtime import RealTimeWriter, DEV_FLUSH_INTERVAL_SECONDS, FLUSH_INTERVAL_SECONDS

__all__ = [
    "AnalyticsBuffer",
    "RealTimeWriter",
    "DEV_FLUSH_INTERVAL_SECONDS",
    "FLUSH_INTERVAL_SECONDS",
]
