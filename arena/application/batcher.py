from __future__ import annotations

from collections.abc import Callable

import numpy as np

from arena.domain.audio import PIPELINE_FORMAT, AudioBatch, AudioFormat


class Batcher:
    """Groups converted frame blocks into fixed-size batches.

    Not thread-safe: every call must come from the batching context.
    """

    def __init__(
        self,
        *,
        on_batch: Callable[[AudioBatch], None],
        batch_size: int = 5,
        audio_format: AudioFormat = PIPELINE_FORMAT,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1.")
        self.batch_size = batch_size
        self.audio_format = audio_format
        self._on_batch = on_batch
        self._blocks: list[np.ndarray] = []

    @property
    def pending_blocks(self) -> int:
        return len(self._blocks)

    def add(self, frames: np.ndarray) -> AudioBatch | None:
        self._blocks.append(frames)
        if len(self._blocks) >= self.batch_size:
            return self._hand_off()
        return None

    def flush(self) -> AudioBatch | None:
        """Hand off whatever is pending, even below the batch size."""
        if not self._blocks:
            return None
        return self._hand_off()

    def _hand_off(self) -> AudioBatch:
        blocks, self._blocks = self._blocks, []
        batch = AudioBatch.from_blocks(blocks, self.audio_format)
        self._on_batch(batch)
        return batch
