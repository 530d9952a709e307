"""Tests for the batch converter."""
import sqlite3
import unittest
import tempfile
import shutil
from datetime import date, datetime
from pathlib import Path

from mdx_analytics.aggregation import Category
from mdx_analytics.context import AnalyticsContext
from mdx_analytics.converter import (
    AnalyticsConverter,
    ConversionResult,
    EventRow,
    SQLiteRecordSource,
    SOURCES
)
from mdx_analytics.utils import MissingRecordSourceError, RecordSourceError, ValidationError

from fakes import FakeRecordSource, InMemoryStorage, RecordingLogger

START = datetime(2026, 1, 1)
END = datetime(2026, 3, 31, 23, 59, 59)


class TestAnalyticsConverter(unittest.TestCase):
    """Test AnalyticsConverter with a fake record source."""

    def setUp(self):
        """Set up test fixtures."""
        self.storage = InMemoryStorage()
        self.logger = RecordingLogger()
        self.context = AnalyticsContext.create(storage=self.storage, data_dir="analytics", logger=self.logger)
        self.converter = AnalyticsConverter(self.context)

    def _configure(self, **kwargs) -> FakeRecordSource:
        db = FakeRecordSource(**kwargs)
        self.context.configure(db=db)
        return db

    def test_missing_record_source_fails_fast(self):
        with self.assertRaises(MissingRecordSourceError):
            self.converter.convert_page_views(START, END)
        self.assertEqual(self.storage.writes, [])

    def test_zero_rows_write_nothing(self):
        db = self._configure()

        paths = self.converter.convert_events(START, END)

        self.assertEqual(paths, [])
        self.assertEqual(self.storage.writes, [])
        self.assertEqual(len(db.calls), 1)
        self.assertEqual(db.calls[0], (SOURCES[Category.EVENTS].sql, [START, END]))

    def test_rows_spanning_two_months(self):
        self._configure(rows={"page_views": [
            {"id": 1, "path": "/", "timestamp": "2026-01-30 10:00:00", "session_id": "a"},
            {"id": 2, "path": "/", "timestamp": "2026-01-31 11:00:00", "session_id": "b"},
            {"id": 3, "path": "/blog", "timestamp": datetime(2026, 2, 1, 9), "session_id": "a"},
        ]})

        paths = self.converter.convert_page_views(START, END)

        self.assertEqual(paths, [
            Path("analytics/page-views/2026/01.mdx"),
            Path("analytics/page-views/2026/02.mdx"),
        ])
        january = self.context.store.get(Category.PAGE_VIEWS, 2026, 1).header
        february = self.context.store.get(Category.PAGE_VIEWS, 2026, 2).header
        self.assertEqual(january["totalCount"], 2)
        self.assertEqual(january["uniqueSessions"], 2)
        self.assertEqual(january["topPaths"], [{"path": "/", "count": 2}])
        self.assertEqual(february["totalCount"], 1)
        self.assertEqual(february["uniquePaths"], 1)

    def test_event_rows(self):
        self._configure(rows={"event_details": [
            {"event_id": 7, "event_type": "meetup", "timestamp": "2026-01-10T18:00:00",
             "participants": 12, "metadata": '{"venue": "hall"}'},
            {"event_id": 8, "event_type": "workshop", "timestamp": "2026-01-12T09:00:00",
             "participants": None, "metadata": None},
            {"event_id": 9, "event_type": None, "timestamp": "2026-01-12T10:00:00",
             "participants": 5, "metadata": {"venue": "lab"}},
        ]})

        self.converter.convert(Category.EVENTS, START, END)

        header = self.context.store.get(Category.EVENTS, 2026, 1).header
        self.assertEqual(header["totalCount"], 17)
        self.assertEqual(header["totalEvents"], 3)
        self.assertEqual(header["totalParticipants"], 17)
        self.assertEqual(header["eventTypes"], {"meetup": 1, "workshop": 1, "unknown": 1})
        self.assertEqual(header["averageParticipants"], 6)

    def test_user_activity_rows(self):
        self._configure(rows={"user_activities": [
            {"user_id": "u1", "activity_type": "login", "timestamp": "2026-03-01 08:00:00", "metadata": "{}"},
            {"user_id": "u1", "activity_type": "comment", "timestamp": "2026-03-01 08:05:00", "metadata": None},
            {"user_id": "u2", "activity_type": "login", "timestamp": "2026-03-02 20:00:00", "metadata": None},
        ]})

        paths = self.converter.convert_user_activity(START, END)

        self.assertEqual(len(paths), 1)
        header = self.context.store.get(Category.USER_ACTIVITY, 2026, 3).header
        self.assertEqual(header["totalCount"], 3)
        self.assertEqual(header["uniqueUsers"], 2)
        self.assertEqual(header["activityTypes"], {"login": 2, "comment": 1})
        self.assertEqual(header["averageActivitiesPerUser"], 2)
        self.assertEqual(header["peakHour"], 8)

    def test_query_failure_is_reported_and_raised(self):
        self._configure(fail_on="page_views")

        with self.assertRaises(ConnectionError):
            self.converter.convert_page_views(START, END)

        self.assertEqual(self.logger.messages("error"), ["Failed to convert page views"])

    def test_invalid_row_raises_validation_error(self):
        self._configure(rows={"page_views": [{"id": 1, "timestamp": "2026-01-01 00:00:00"}]})

        with self.assertRaises(ValidationError):
            self.converter.convert_page_views(START, END)

    def test_convert_all_partial_success(self):
        self._configure(
            rows={
                "page_views": [{"id": 1, "path": "/", "timestamp": "2026-01-05 10:00:00"}],
                "user_activities": [{"user_id": "u1", "activity_type": "login", "timestamp": "2026-02-01 10:00:00"}],
            },
            fail_on="event_details"
        )

        result = self.converter.convert_all(START, END)

        self.assertIsInstance(result, ConversionResult)
        self.assertEqual(result.page_views, [Path("analytics/page-views/2026/01.mdx")])
        self.assertEqual(result.events, [])
        self.assertEqual(result.user_activity, [Path("analytics/user-activity/2026/02.mdx")])
        self.assertEqual(len(result.paths), 2)
        self.assertIn("Failed to convert event analytics", self.logger.messages("error"))

    def test_convert_all_without_record_source_never_raises(self):
        result = self.converter.convert_all(START, END)

        self.assertEqual(result.paths, [])
        self.assertEqual(len(self.logger.messages("error")), 3)


class TestRowSchemas(unittest.TestCase):
    """Test row validation."""

    def test_event_row_coerces_id_and_decodes_metadata(self):
        row = EventRow.model_validate({
            "event_id": 42,
            "timestamp": "2026-01-01T10:00:00Z",
            "metadata": '{"room": "A"}'
        })

        self.assertEqual(row.event_id, "42")
        self.assertEqual(row.metadata, {"room": "A"})
        self.assertEqual(row.timestamp.hour, 10)
        self.assertIsNone(row.participants)


class TestSQLiteRecordSource(unittest.TestCase):
    """Test conversion end to end against a SQLite file."""

    def setUp(self):
        """Set up test fixtures."""
        self.test_dir = Path(tempfile.mkdtemp())
        self.db_path = self.test_dir / "site.db"
        with sqlite3.connect(self.db_path) as conn:
            conn.execute(
                "CREATE TABLE page_views (id INTEGER PRIMARY KEY, path TEXT, timestamp TEXT, "
                "user_agent TEXT, referrer TEXT, session_id TEXT)"
            )
            conn.executemany(
                "INSERT INTO page_views (path, timestamp, session_id) VALUES (?, ?, ?)",
                [
                    ("/", "2025-12-31 23:00:00", "old"),
                    ("/", "2026-01-02 09:00:00", "a"),
                    ("/docs", "2026-01-02 10:00:00", "a"),
                    ("/docs", "2026-02-14 12:00:00", "b"),
                ]
            )

    def tearDown(self):
        """Clean up test fixtures."""
        shutil.rmtree(self.test_dir, ignore_errors=True)

    def test_query_returns_dict_rows_in_range(self):
        source = SQLiteRecordSource(self.db_path)

        rows = source.query(SOURCES[Category.PAGE_VIEWS].sql, [START, END])

        self.assertEqual([row["path"] for row in rows], ["/", "/docs", "/docs"])
        self.assertEqual(rows[0]["session_id"], "a")

    def test_convert_from_sqlite(self):
        context = AnalyticsContext.create(
            data_dir=str(self.test_dir / "analytics"),
            db=SQLiteRecordSource(self.db_path)
        )

        paths = AnalyticsConverter(context).convert_page_views(START, END)

        self.assertEqual(len(paths), 2)
        self.assertEqual(context.store.get(Category.PAGE_VIEWS, 2026, 1).header["totalCount"], 2)
        self.assertEqual(context.store.get(Category.PAGE_VIEWS, 2026, 2).header["totalCount"], 1)

    def test_date_end_bound_includes_the_whole_day(self):
        context = AnalyticsContext.create(
            data_dir=str(self.test_dir / "analytics"),
            db=SQLiteRecordSource(self.db_path)
        )

        paths = AnalyticsConverter(context).convert_page_views(date(2026, 1, 1), date(2026, 1, 2))

        self.assertEqual(len(paths), 1)
        self.assertEqual(context.store.get(Category.PAGE_VIEWS, 2026, 1).header["totalCount"], 2)

    def test_missing_table_raises_record_source_error(self):
        source = SQLiteRecordSource(self.db_path)

        with self.assertRaises(RecordSourceError):
            source.query(SOURCES[Category.EVENTS].sql, [START, END])

    def test_missing_file_raises(self):
        with self.assertRaises(RecordSourceError):
            SQLiteRecordSource(self.test_dir / "missing.db")


if __name__ == "__main__":
    unittest.main()
