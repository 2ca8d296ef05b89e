"""Unit tests for the WAV container helpers."""
from __future__ import annotations

import struct
import unittest

import numpy as np

from arena.domain.audio import PIPELINE_FORMAT
from arena.domain.errors import ConversionError
from arena.infrastructure.audio.wav import decode_wav, encode_wav


class TestWav(unittest.TestCase):
    """Test cases for encode_wav / decode_wav."""

    def test_header_describes_pipeline_format(self):
        """Test header describes pipeline format."""
        samples = np.arange(-800, 800, dtype=np.int16)

        data = encode_wav(samples, PIPELINE_FORMAT)

        riff, riff_size, wave = struct.unpack_from("<4sI4s", data, 0)
        self.assertEqual((riff, wave), (b"RIFF", b"WAVE"))
        self.assertEqual(riff_size, len(data) - 8)

        fmt, fmt_size, tag, channels, rate, byte_rate, block_align, bits = struct.unpack_from(
            "<4sIHHIIHH", data, 12
        )
        self.assertEqual(fmt, b"fmt ")
        self.assertEqual(fmt_size, 16)
        self.assertEqual(tag, 1)
        self.assertEqual(channels, 1)
        self.assertEqual(rate, 16000)
        self.assertEqual(byte_rate, PIPELINE_FORMAT.byte_rate)
        self.assertEqual(block_align, PIPELINE_FORMAT.block_align)
        self.assertEqual(bits, 16)

        chunk, data_size = struct.unpack_from("<4sI", data, 36)
        self.assertEqual(chunk, b"data")
        self.assertEqual(data_size, len(samples) * 2)
        self.assertEqual(len(data), 44 + len(samples) * 2)

    def test_samples_survive_the_container(self):
        """Test samples survive the container."""
        samples = np.array([0, 1, -1, 32767, -32768], dtype=np.int16)

        rate, decoded = decode_wav(encode_wav(samples, PIPELINE_FORMAT))

        self.assertEqual(rate, 16000)
        np.testing.assert_array_equal(decoded, samples)

    def test_wrong_sample_type_is_rejected(self):
        """Test wrong sample type is rejected."""
        with self.assertRaises(ConversionError):
            encode_wav(np.zeros(10, dtype=np.float32), PIPELINE_FORMAT)

    def test_garbage_is_not_a_container(self):
        """Test garbage is not a container."""
        with self.assertRaises(ConversionError):
            decode_wav(b"definitely not a wav file")


if __name__ == "__main__":
    unittest.main()
