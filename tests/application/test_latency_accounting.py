"""Unit tests for LatencyAccounting."""
from __future__ import annotations

import unittest

from arena.domain.latency_accounting import LatencyAccounting


class TestLatencyAccounting(unittest.TestCase):
    """Test cases for LatencyAccounting."""

    def test_averages_are_zero_without_requests(self):
        """Test averages are zero without requests."""
        accounting = LatencyAccounting()

        self.assertEqual(accounting.average_latency, 0.0)
        self.assertEqual(accounting.average_request_size_kb, 0.0)

    def test_record_request_accumulates(self):
        """Test record request accumulates."""
        accounting = (
            LatencyAccounting()
            .record_request(0.4, audio_seconds=2.0, request_bytes=2048)
            .record_request(0.6, audio_seconds=2.5, request_bytes=4096)
        )

        self.assertEqual(accounting.request_count, 2)
        self.assertAlmostEqual(accounting.total_latency, 1.0)
        self.assertAlmostEqual(accounting.average_latency, 0.5)
        self.assertAlmostEqual(accounting.total_audio_seconds, 4.5)
        self.assertAlmostEqual(accounting.average_request_size_kb, 3.0)

    def test_repeated_sequence_replaces_latency(self):
        """Test repeated sequence replaces latency."""
        accounting = LatencyAccounting().record_final(1, 0.5)
        accounting = accounting.record_final(1, 0.7)

        self.assertEqual(accounting.request_count, 1)
        self.assertAlmostEqual(accounting.total_latency, 0.7)

    def test_new_sequence_accumulates_latency(self):
        """Test new sequence accumulates latency."""
        accounting = LatencyAccounting().record_final(1, 0.5).record_final(1, 0.7)
        accounting = accounting.record_final(2, 0.2)

        self.assertEqual(accounting.request_count, 2)
        self.assertAlmostEqual(accounting.total_latency, 0.9)
        self.assertAlmostEqual(accounting.average_latency, 0.45)

    def test_skipped_sequences_take_the_latest_value(self):
        """Test skipped sequences take the latest value."""
        accounting = LatencyAccounting().record_final(3, 0.3)

        self.assertEqual(accounting.request_count, 3)
        self.assertAlmostEqual(accounting.total_latency, 0.3)

    def test_updates_return_new_values(self):
        """Test updates return new values."""
        original = LatencyAccounting()
        updated = original.record_request(1.0)

        self.assertEqual(original.request_count, 0)
        self.assertEqual(updated.request_count, 1)

    def test_add_usage_does_not_count_requests(self):
        """Test add usage does not count requests."""
        accounting = LatencyAccounting().add_usage(audio_seconds=0.4, request_bytes=12800)

        self.assertEqual(accounting.request_count, 0)
        self.assertAlmostEqual(accounting.total_audio_seconds, 0.4)
        self.assertEqual(accounting.total_request_bytes, 12800)


if __name__ == "__main__":
    unittest.main()
