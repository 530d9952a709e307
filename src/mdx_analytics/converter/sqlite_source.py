"""Record source backed by a SQLite database file."""
import sqlite3
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, List, Sequence, Union

from mdx_analytics.utils import (
    get_logger,
    retry_with_backoff,
    RecordSourceError,
    RetryableStorageError
)

logger = get_logger()


def _adapt(value: Any) -> Any:
    # Matches the "YYYY-MM-DD HH:MM:SS" text SQLite uses for timestamps
    if isinstance(value, datetime):
        return value.isoformat(sep=" ")
    if isinstance(value, date):
        return value.isoformat()
    return value


class SQLiteRecordSource:
    """Runs record-source queries against a SQLite file."""

    def __init__(
        self,
        db_path: Union[str, Path],
        timeout: float = 5.0,
        max_retries: int = 3,
        initial_delay: float = 0.1,
        backoff_factor: float = 2.0
    ):
        """
        Initialize the record source.

        Args:
            db_path: Path to an existing SQLite database
            timeout: Seconds to wait on a locked database before failing
            max_retries: Attempts per query while the database stays locked
            initial_delay: Wait before the first retry, in seconds
            backoff_factor: Multiplier for the wait between retries
        """
        self.db_path = Path(db_path)
        self.timeout = timeout
        if not self.db_path.exists():
            raise RecordSourceError(f"Database file not found: {self.db_path}")

        self.query = retry_with_backoff(
            max_retries=max_retries,
            initial_delay=initial_delay,
            backoff_factor=backoff_factor,
            retryable_exceptions=(RetryableStorageError,)
        )(self._query)

    def _query(self, sql: str, params: Sequence[Any] = ()) -> List[Dict[str, Any]]:
        """
        Execute a query and return its rows as dicts.

        Args:
            sql: Query with ``?`` placeholders
            params: Positional parameters

        Returns:
            List of column -> value dicts, in query order
        """
        try:
            with sqlite3.connect(self.db_path, timeout=self.timeout) as conn:
                conn.row_factory = sqlite3.Row
                cursor = conn.execute(sql, [_adapt(param) for param in params])
                rows = [dict(row) for row in cursor.fetchall()]
        except sqlite3.OperationalError as e:
            if "locked" in str(e).lower():
                raise RetryableStorageError(f"Database is locked: {self.db_path}") from e
            raise RecordSourceError(f"Query failed on {self.db_path}: {e}") from e
        except sqlite3.Error as e:
            raise RecordSourceError(f"Query failed on {self.db_path}: {e}") from e

        logger.debug(f"Fetched {len(rows)} rows from {self.db_path}")
        return rows
