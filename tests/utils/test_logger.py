"""Unit tests for Logger."""
from __future__ import annotations

import tempfile
import unittest
from pathlib import Path

from arena.utils.logger import Logger


class TestLogger(unittest.TestCase):
    """Test cases for Logger."""

    def test_first_subscriber_gets_buffered_lines(self):
        """Test first subscriber gets buffered lines."""
        logger = Logger(timestamps=False)
        logger.log("[Mic] started")
        received = []

        logger.on_emit = received.append
        logger.log("[Orchestrator] ready")

        self.assertEqual(received, ["[Mic] started", "[Orchestrator] ready"])

    def test_empty_messages_are_skipped(self):
        """Test empty messages are skipped."""
        logger = Logger(timestamps=False)
        logger.log("")

        self.assertEqual(logger.lines(), [])

    def test_timestamps_prefix_each_line(self):
        """Test timestamps prefix each line."""
        logger = Logger()
        logger.log("hello")

        stamp, message = logger.lines()[0].split(" ", 1)
        self.assertEqual(message, "hello")
        self.assertRegex(stamp, r"^\d{2}:\d{2}:\d{2}\.\d{3}$")

    def test_save_writes_all_lines(self):
        """Test save writes all lines."""
        with tempfile.TemporaryDirectory() as tmp:
            logger = Logger(log_dir=Path(tmp) / "logs", timestamps=False)
            logger.log("one")
            logger.log("two")

            path = logger.save()

            self.assertEqual(path.read_text(encoding="utf-8"), "one\ntwo")


if __name__ == "__main__":
    unittest.main()
