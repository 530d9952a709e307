"""Tests for the command-line entry point."""
import io
import sqlite3
import unittest
import tempfile
import shutil
from contextlib import redirect_stdout
from pathlib import Path

from mdx_analytics.main import main
from mdx_analytics.utils import configure_logging


class TestMain(unittest.TestCase):
    """Test CLI commands against a temporary data directory."""

    def setUp(self):
        """Set up test fixtures."""
        self.test_dir = Path(tempfile.mkdtemp())
        self.data_dir = self.test_dir / "analytics"
        self.db_path = self.test_dir / "site.db"
        self.config_path = self.test_dir / "config.yaml"
        self.config_path.write_text(
            "logging:\n"
            "  level: WARNING\n"
            "analytics:\n"
            f"  data_dir: {self.data_dir.as_posix()}\n"
            "database:\n"
            f"  file: {self.db_path.as_posix()}\n",
            encoding="utf-8"
        )

        with sqlite3.connect(self.db_path) as conn:
            conn.execute(
                "CREATE TABLE user_activities (user_id TEXT, activity_type TEXT, timestamp TEXT, metadata TEXT)"
            )
            conn.executemany(
                "INSERT INTO user_activities VALUES (?, ?, ?, ?)",
                [
                    ("u1", "login", "2026-01-05 08:00:00", None),
                    ("u2", "login", "2026-01-06 09:00:00", '{"client": "web"}'),
                    ("u2", "share", "2026-02-01 12:00:00", None),
                ]
            )

    def tearDown(self):
        """Clean up test fixtures."""
        configure_logging()
        shutil.rmtree(self.test_dir, ignore_errors=True)

    def _run(self, *argv) -> str:
        output = io.StringIO()
        with redirect_stdout(output):
            main(["--config", str(self.config_path), *argv])
        return output.getvalue()

    def test_convert_then_list_show_and_top(self):
        output = self._run(
            "convert", "--start", "2026-01-01", "--end", "2026-02-28", "--category", "user-activity"
        )
        self.assertIn("Wrote 2 documents", output)

        listing = self._run("list")
        self.assertIn("user-activity   2026-02", listing)
        self.assertLess(listing.index("2026-02"), listing.index("2026-01"))

        shown = self._run("show", "user-activity", "2026", "1")
        self.assertIn("totalCount: 2", shown)

        top = self._run("top", "user-activity")
        self.assertIn("login", top)
        self.assertIn("66.7%", top)

    def test_query_with_grouping(self):
        self._run("convert", "--start", "2026-01-01", "--end", "2026-02-28", "--category", "user-activity")

        output = self._run("query", "--category", "user-activity", "--group-by", "year")

        self.assertIn("user-activity: 2026-01-01 .. 2026-01-01 (total 3", output)

    def test_show_missing_document(self):
        self.assertIn("No events document for 2026-01", self._run("show", "events", "2026", "1"))

    def test_convert_failure_exits_non_zero(self):
        with self.assertRaises(SystemExit) as context:
            self._run("convert", "--start", "2026-01-01", "--end", "2026-01-31", "--category", "events")

        self.assertEqual(context.exception.code, 1)


if __name__ == "__main__":
    unittest.main()
