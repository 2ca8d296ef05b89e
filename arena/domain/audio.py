from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

import numpy as np


class SampleWidth(str, Enum):
    FLOAT32 = "float32"
    INT16 = "int16"

    @property
    def dtype(self) -> np.dtype:
        return np.dtype(self.value)

    @property
    def bits(self) -> int:
        return self.dtype.itemsize * 8


@dataclass(frozen=True)
class AudioFormat:
    sample_rate: int
    channels: int = 1
    sample_width: SampleWidth = SampleWidth.INT16
    interleaved: bool = True

    @property
    def block_align(self) -> int:
        return self.channels * self.sample_width.dtype.itemsize

    @property
    def byte_rate(self) -> int:
        return self.sample_rate * self.block_align


# Every buffer past the FormatConverter uses this format.
PIPELINE_FORMAT = AudioFormat(sample_rate=16_000, channels=1, sample_width=SampleWidth.INT16)


@dataclass(frozen=True)
class AudioBatch:
    """Ordered blocks of converted PCM frames, handed to every backend once."""

    format: AudioFormat
    frames: tuple[np.ndarray, ...]
    frame_count: int = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "frame_count", sum(len(block) for block in self.frames)
        )

    @classmethod
    def from_blocks(cls, blocks: list[np.ndarray], audio_format: AudioFormat) -> "AudioBatch":
        return cls(format=audio_format, frames=tuple(blocks))

    def samples(self) -> np.ndarray:
        """Return a freshly allocated, contiguous copy of all frames."""
        if not self.frames:
            return np.zeros(0, dtype=self.format.sample_width.dtype)
        return np.concatenate(self.frames, axis=0)

    @property
    def duration_seconds(self) -> float:
        return self.frame_count / self.format.sample_rate
