"""In-memory buffer of records waiting to be flushed."""
import threading
from typing import Dict, List, Union

from mdx_analytics.aggregation import Category, Record


class AnalyticsBuffer:
    """Per-category, insertion-ordered record lists.

    A flush works on a snapshot and discards only the records it took, so
    records appended while a flush is writing stay for the next one.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._records: Dict[Category, List[Record]] = {category: [] for category in Category}

    def append(self, category: Union[Category, str], record: Record) -> int:
        """Append a record and return the category's new buffer size."""
        category = Category.parse(category)
        with self._lock:
            self._records[category].append(record)
            return len(self._records[category])

    def snapshot(self, category: Union[Category, str]) -> List[Record]:
        """Copy of the category's buffered records."""
        category = Category.parse(category)
        with self._lock:
            return list(self._records[category])

    def discard(self, category: Union[Category, str], count: int) -> None:
        """Drop the oldest ``count`` records of a category."""
        category = Category.parse(category)
        with self._lock:
            del self._records[category][:count]

    def size(self, category: Union[Category, str]) -> int:
        category = Category.parse(category)
        with self._lock:
            return len(self._records[category])

    def stats(self) -> Dict[str, int]:
        """Buffered record count per category value."""
        with self._lock:
            return {category.value: len(records) for category, records in self._records.items()}

    def clear(self) -> None:
        """Drop every buffered record without writing it."""
        with self._lock:
            for records in self._records.values():
                records.clear()
