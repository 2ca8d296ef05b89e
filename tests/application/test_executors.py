"""Unit tests for SerialExecutor."""
from __future__ import annotations

import unittest

from arena.application.executors import SerialExecutor
from arena.utils.logger import Logger


class TestSerialExecutor(unittest.TestCase):
    """Test cases for SerialExecutor."""

    def setUp(self):
        """Set up test fixtures."""
        self.logger = Logger(timestamps=False)
        self.executor = SerialExecutor("test", logger=self.logger)

    def tearDown(self):
        """Tear down test fixtures."""
        self.executor.shutdown()

    def test_tasks_run_in_submission_order(self):
        """Test tasks run in submission order."""
        seen = []
        for value in range(20):
            self.executor.submit(seen.append, value)

        self.executor.join()

        self.assertEqual(seen, list(range(20)))

    def test_failing_task_does_not_stop_the_worker(self):
        """Test failing task does not stop the worker."""
        seen = []

        def explode():
            raise RuntimeError("boom")

        self.executor.submit(explode)
        self.executor.submit(seen.append, "after")
        self.executor.join()

        self.assertEqual(seen, ["after"])
        self.assertTrue(any("[test] Task failed" in line for line in self.logger.lines()))

    def test_submissions_after_shutdown_are_ignored(self):
        """Test submissions after shutdown are ignored."""
        seen = []
        self.executor.submit(seen.append, 1)
        self.executor.join()

        self.executor.shutdown()
        self.executor.submit(seen.append, 2)

        self.assertEqual(seen, [1])

    def test_join_without_work_returns(self):
        """Test join without work returns."""
        self.executor.join()


if __name__ == "__main__":
    unittest.main()
