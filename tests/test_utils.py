"""Tests for retry, logging and number helpers."""
import logging
import threading
import unittest
import tempfile
import shutil
from pathlib import Path
from unittest import mock

from mdx_analytics.config import AnalyticsConfig
from mdx_analytics.utils import (
    configure_logging,
    format_number,
    get_logger,
    report,
    retry_with_backoff,
    round_half_up,
    set_category_context,
    RetryableError,
    RetryableStorageError,
    RecordSourceError
)

from fakes import RecordingLogger


class TestRetryWithBackoff(unittest.TestCase):
    """Test the retry decorator."""

    @mock.patch("mdx_analytics.utils.retry.time.sleep")
    def test_retries_until_success(self, sleep):
        attempts = []

        @retry_with_backoff(max_retries=3, initial_delay=1, backoff_factor=2)
        def flaky():
            attempts.append(1)
            if len(attempts) < 3:
                raise RetryableError("busy")
            return "ok"

        self.assertEqual(flaky(), "ok")
        self.assertEqual(len(attempts), 3)
        self.assertEqual([call.args[0] for call in sleep.call_args_list], [1, 2])

    @mock.patch("mdx_analytics.utils.retry.time.sleep")
    def test_gives_up_after_max_retries(self, sleep):
        @retry_with_backoff(max_retries=2, retryable_exceptions=(RetryableStorageError,))
        def locked():
            raise RetryableStorageError("database is locked")

        with self.assertRaises(RetryableStorageError):
            locked()
        self.assertEqual(sleep.call_count, 1)

    @mock.patch("mdx_analytics.utils.retry.time.sleep")
    def test_other_errors_are_not_retried(self, sleep):
        calls = []

        @retry_with_backoff()
        def broken():
            calls.append(1)
            raise RecordSourceError("no such table")

        with self.assertRaises(RecordSourceError):
            broken()
        self.assertEqual(len(calls), 1)
        sleep.assert_not_called()


class TestReport(unittest.TestCase):
    """Test routing of engine messages."""

    def test_uses_configured_callback(self):
        callback = RecordingLogger()
        error = ValueError("boom")

        report(AnalyticsConfig(logger=callback), "error", "Failed to flush events analytics", error=error)

        self.assertEqual(callback.calls, [("error", "Failed to flush events analytics", {"error": error})])

    def test_errors_fall_back_to_package_logger(self):
        with self.assertLogs("mdx_analytics", level="ERROR") as captured:
            report(AnalyticsConfig(), "error", "Failed to convert page views", error=ValueError("boom"))

        self.assertIn("Failed to convert page views: boom", captured.output[0])

    def test_other_levels_fall_back_to_debug(self):
        with self.assertLogs("mdx_analytics", level="DEBUG") as captured:
            report(AnalyticsConfig(), "info", "Converted")

        self.assertEqual(captured.records[0].levelno, logging.DEBUG)


class TestLogger(unittest.TestCase):
    """Test logger configuration."""

    def setUp(self):
        """Set up test fixtures."""
        self.test_dir = Path(tempfile.mkdtemp())

    def tearDown(self):
        """Clean up test fixtures."""
        set_category_context(None)
        configure_logging()
        shutil.rmtree(self.test_dir, ignore_errors=True)

    def test_file_handler_and_category_context(self):
        logger = configure_logging("DEBUG", self.test_dir)
        set_category_context("events")

        logger.info("flushed")
        for handler in logger.handlers:
            handler.flush()

        content = (self.test_dir / "analytics.log").read_text(encoding="utf-8")
        self.assertIn("[category:events] flushed", content)

    def test_category_context_is_per_thread(self):
        logger = configure_logging("DEBUG", self.test_dir)
        set_category_context("events")

        def work():
            logger.info("background before")
            set_category_context("page-views")
            logger.info("background flushed")

        worker = threading.Thread(target=work)
        worker.start()
        worker.join(5)
        logger.info("caller flushed")
        for handler in logger.handlers:
            handler.flush()

        content = (self.test_dir / "analytics.log").read_text(encoding="utf-8")
        self.assertIn("[category:system] background before", content)
        self.assertIn("[category:page-views] background flushed", content)
        self.assertIn("[category:events] caller flushed", content)

    def test_get_logger_returns_package_logger(self):
        self.assertEqual(get_logger().name, "mdx_analytics")


class TestNumbers(unittest.TestCase):
    """Test number helpers."""

    def test_round_half_up(self):
        self.assertEqual(round_half_up(2.5), 3)
        self.assertEqual(round_half_up(1.5), 2)
        self.assertEqual(round_half_up(-2.5), -3)
        self.assertEqual(round_half_up(2.4), 2)
        self.assertIsInstance(round_half_up(7.0), int)

    def test_round_half_up_digits(self):
        self.assertEqual(round_half_up(57.142857, 1), 57.1)
        self.assertEqual(round_half_up(0.25, 1), 0.3)

    def test_format_number(self):
        self.assertEqual(format_number(1234567), "1,234,567")
        self.assertEqual(format_number(12.0), "12")
        self.assertEqual(format_number(1234.5), "1,234.5")


if __name__ == "__main__":
    unittest.main()
