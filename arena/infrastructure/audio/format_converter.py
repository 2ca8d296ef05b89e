from __future__ import annotations

from math import gcd

import numpy as np
from scipy import signal

from arena.domain.audio import PIPELINE_FORMAT, AudioFormat, SampleWidth
from arena.domain.errors import ConversionError


class FormatConverter:
    """Downmixes, resamples and re-encodes hardware frames into the pipeline format."""

    def __init__(self, target: AudioFormat = PIPELINE_FORMAT) -> None:
        if target.channels != 1:
            raise ValueError("Only mono pipeline formats are supported.")
        self.target = target

    def convert(self, frames: np.ndarray, source: AudioFormat) -> np.ndarray:
        try:
            audio = self._to_mono_float(np.asarray(frames), source)
            if source.sample_rate != self.target.sample_rate:
                audio = self._resample(audio, source.sample_rate, self.target.sample_rate)
            return self._encode(audio)
        except (ValueError, TypeError, MemoryError) as e:
            raise ConversionError(f"Could not convert audio from {source}: {e}") from e

    @staticmethod
    def _to_mono_float(audio: np.ndarray, source: AudioFormat) -> np.ndarray:
        if audio.ndim == 2:
            # Interleaved input arrives as (frames, channels), planar as (channels, frames).
            audio = audio.mean(axis=1) if source.interleaved else audio.mean(axis=0)
        elif audio.ndim != 1:
            raise ValueError(f"Expected 1D or 2D audio, got shape={audio.shape!r}")

        if source.sample_width is SampleWidth.INT16:
            return audio.astype(np.float32) / 32768.0
        return audio.astype(np.float32, copy=False)

    @staticmethod
    def _resample(audio: np.ndarray, source_rate: int, target_rate: int) -> np.ndarray:
        divisor = gcd(source_rate, target_rate)
        resampled = signal.resample_poly(audio, target_rate // divisor, source_rate // divisor)
        return resampled.astype(np.float32, copy=False)

    def _encode(self, audio: np.ndarray) -> np.ndarray:
        audio = np.clip(audio, -1.0, 1.0)
        if self.target.sample_width is SampleWidth.INT16:
            return (audio * 32767).astype(np.int16)
        return audio.astype(np.float32)
