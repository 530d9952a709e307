"""Real-time analytics writer: buffer tracked records and flush them monthly."""
import threading
from datetime import datetime
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional, Union

from mdx_analytics.aggregation import Aggregator, Category, Record, group_by_month, strategy_for
from mdx_analytics.utils import get_logger, report, set_category_context

if TYPE_CHECKING:
    from mdx_analytics.context import AnalyticsContext

logger = get_logger()

DEV_FLUSH_INTERVAL_SECONDS = 60
FLUSH_INTERVAL_SECONDS = 300


class RealTimeWriter:
    """Tracks records into the context buffer and merges them into documents."""

    def __init__(
        self,
        context: "AnalyticsContext",
        clock: Optional[Callable[[], datetime]] = None,
        aggregator: Optional[Aggregator] = None
    ):
        """
        Initialize the writer.

        Args:
            context: Engine context owning the buffer, config and storage
            clock: Returns the timestamp for tracked records (local now by default)
            aggregator: Aggregator used for flushed batches
        """
        self.context = context
        self._clock = clock or datetime.now
        self.aggregator = aggregator or Aggregator()
        # Whole flushes are serialized: snapshot, write and discard must not interleave
        self._flush_lock = threading.Lock()
        self._stop_event: Optional[threading.Event] = None
        self._thread: Optional[threading.Thread] = None

    # Tracking

    def track(self, category: Union[Category, str], record: Record) -> None:
        """
        Buffer one record.

        In dev mode, reaching the category's threshold flushes that category
        immediately.
        """
        category = Category.parse(category)
        size = self.context.buffer.append(category, record)

        if self.context.config.is_dev and size >= strategy_for(category).dev_flush_threshold:
            logger.debug(f"Dev threshold reached for {category.value} ({size} records)")
            self.flush(category)

    def track_page_view(
        self,
        path: str,
        session_id: Optional[str] = None,
        user_agent: Optional[str] = None,
        referrer: Optional[str] = None
    ) -> None:
        """Track a page view."""
        self.track(Category.PAGE_VIEWS, Record(
            timestamp=self._clock(),
            value=1,
            metadata={
                "path": path,
                "sessionId": session_id,
                "userAgent": user_agent,
                "referrer": referrer
            }
        ))

    def track_event(
        self,
        event_id: str,
        event_type: str,
        participants: int = 0,
        metadata: Optional[Dict[str, Any]] = None
    ) -> None:
        """Track an event; its value is the participant count."""
        self.track(Category.EVENTS, Record(
            timestamp=self._clock(),
            value=participants,
            metadata={"eventId": event_id, "eventType": event_type, **(metadata or {})}
        ))

    def track_user_activity(
        self,
        user_id: str,
        activity_type: str,
        metadata: Optional[Dict[str, Any]] = None
    ) -> None:
        """Track a user activity."""
        self.track(Category.USER_ACTIVITY, Record(
            timestamp=self._clock(),
            value=1,
            metadata={"userId": user_id, "activityType": activity_type, **(metadata or {})}
        ))

    # Flushing

    def flush(self, category: Union[Category, str, None] = None) -> Dict[Category, int]:
        """
        Merge buffered records into their month documents.

        A category's records leave the buffer only after all of its months
        were written. A failing category is reported and keeps its records
        for the next flush; other categories still flush. Concurrent calls
        (the periodic thread and the caller) run one after the other.

        Args:
            category: Category to flush (all categories when omitted)

        Returns:
            Category -> number of records flushed, for categories that flushed
        """
        categories = [Category.parse(category)] if category else list(Category)
        with self._flush_lock:
            return self._flush_categories(categories)

    def _flush_categories(self, categories) -> Dict[Category, int]:
        flushed: Dict[Category, int] = {}

        for cat in categories:
            batch = self.context.buffer.snapshot(cat)
            if not batch:
                continue

            set_category_context(cat.value)
            try:
                for (year, month), records in group_by_month(batch).items():
                    self._write_month(cat, year, month, records)
            except Exception as e:
                report(self.context.config, "error", f"Failed to flush {cat.value} analytics", error=e)
                continue
            finally:
                set_category_context(None)

            self.context.buffer.discard(cat, len(batch))
            flushed[cat] = len(batch)
            logger.info(f"Flushed {len(batch)} {cat.value} analytics records")

        return flushed

    def _write_month(self, category: Category, year: int, month: int, records) -> None:
        store = self.context.store
        batch = self.aggregator.aggregate(category, year, month, records)

        existing = store.get(category, year, month)
        if existing is not None:
            batch = self.aggregator.merge(existing.to_aggregate(), batch)

        store.put(batch)

    # Buffer inspection

    def get_buffer_stats(self) -> Dict[str, int]:
        """Buffered record count per category."""
        return self.context.buffer.stats()

    def clear_buffer(self) -> None:
        """Drop buffered records without writing them."""
        self.context.buffer.clear()

    # Periodic flushing

    @property
    def interval_seconds(self) -> int:
        return DEV_FLUSH_INTERVAL_SECONDS if self.context.config.is_dev else FLUSH_INTERVAL_SECONDS

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start flushing every interval; a no-op when already running."""
        if self.is_running:
            return

        self._stop_event = threading.Event()
        self._thread = threading.Thread(
            target=self._run,
            args=(self._stop_event, self.interval_seconds),
            name="analytics-writer",
            daemon=True
        )
        self._thread.start()
        logger.info(f"Analytics writer started (writing every {self.interval_seconds} seconds)")

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        """Stop periodic flushing without flushing; a no-op when not running."""
        if self._thread is None:
            return

        self._stop_event.set()
        if self._thread is not threading.current_thread():
            self._thread.join(timeout)
            if self._thread.is_alive():
                logger.warning("Analytics writer thread still finishing a flush after stop")
        self._thread = None
        self._stop_event = None
        logger.info("Analytics writer stopped")

    def _run(self, stop_event: threading.Event, interval: float) -> None:
        cycle_count = 0
        while not stop_event.wait(interval):
            cycle_count += 1
            try:
                flushed = self.flush()
            except Exception as e:
                logger.error(f"Error in flush cycle #{cycle_count}: {e}")
                continue
            if flushed:
                logger.debug(
                    f"Flush cycle #{cycle_count}: "
                    + ", ".join(f"{cat.value}={count}" for cat, count in flushed.items())
                )
