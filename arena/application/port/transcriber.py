from __future__ import annotations

from typing import Protocol

from arena.domain.audio import AudioBatch
from arena.domain.backend import BackendConfig, BackendState


class TranscriberBackend(Protocol):
    config: BackendConfig

    @property
    def name(self) -> str:
        ...

    def start(self) -> None:
        """Prepare the session. Calling it again while running is a no-op."""
        ...

    def submit(self, batch: AudioBatch) -> None:
        """Hand over one batch. Must return immediately."""
        ...

    def stop(self) -> None:
        """Tear down connections; in-flight requests finish on their own."""
        ...

    def reset(self) -> None:
        """Forget transcript, counters and buffered audio; late results are dropped."""
        ...

    def close(self) -> None:
        """Release threads and connections for good; the backend is not used again."""
        ...

    def state(self) -> BackendState:
        """Return the latest published state snapshot."""
        ...
