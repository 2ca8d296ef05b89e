from __future__ import annotations

from collections.abc import Callable, Iterable
from threading import Lock
from typing import Protocol

import numpy as np

from arena.application.batcher import Batcher
from arena.application.executors import SerialExecutor
from arena.application.port.transcriber import TranscriberBackend
from arena.domain.audio import PIPELINE_FORMAT, AudioBatch, AudioFormat
from arena.domain.backend import BackendConfig, BackendState
from arena.domain.errors import ArenaError, ConfigurationError
from arena.utils.logger import Logger

BackendFactory = Callable[[BackendConfig, Callable[[BackendState], None]], TranscriberBackend]


class AudioSource(Protocol):
    def start(self, on_frames: Callable[[np.ndarray], None]) -> None:
        ...

    def stop(self) -> None:
        ...


class Orchestrator:
    """Feeds the same audio batches to every selected backend and owns their lifecycle."""

    def __init__(
        self,
        *,
        backend_factory: BackendFactory,
        audio_source: AudioSource | None = None,
        batch_size: int = 5,
        audio_format: AudioFormat = PIPELINE_FORMAT,
        batch_context: SerialExecutor | None = None,
        ui_context: SerialExecutor | None = None,
        logger: Logger | None = None,
    ) -> None:
        self.backend_factory = backend_factory
        self.audio_source = audio_source
        self.logger = logger
        self.batcher = Batcher(
            on_batch=self.submit_batch, batch_size=batch_size, audio_format=audio_format
        )
        self._batch_context = batch_context or SerialExecutor("batcher", logger=logger)
        self._ui_context = ui_context or SerialExecutor("ui", logger=logger)

        self._lock = Lock()
        self._configs: list[BackendConfig] = []
        self._backends: tuple[TranscriberBackend, ...] = ()
        # Identifies the current set of backends; updates from older sets are ignored.
        self._generation = object()
        self.is_recording = False

        # Optional hook for UI/observers; called on the UI context.
        self.on_state_changed: Callable[[str, BackendState], None] | None = None

    @property
    def backends(self) -> tuple[TranscriberBackend, ...]:
        return self._backends

    def configure(self, configs: Iterable[BackendConfig]) -> None:
        """Replace all backends with fresh instances for the selected, usable configs."""
        configs = list(configs)

        with self._lock:
            previous = self._backends
            self._configs = configs
            self._generation = generation = object()
            self._backends = ()

        for backend in previous:
            self._discard(backend)

        backends: list[TranscriberBackend] = []
        for config in configs:
            if not config.is_selected:
                continue
            if not config.can_be_selected:
                self._log(f"Skipping {config.name}: missing API key.")
                continue

            try:
                backend = self.backend_factory(config, self._publisher(generation, config.name))
                backend.start()
            except ConfigurationError as e:
                self._log(f"Skipping {config.name}: {e}")
                continue
            backends.append(backend)

        with self._lock:
            if self._generation is generation:
                self._backends = tuple(backends)

        self._log(f"Active backends: {', '.join(b.name for b in backends) or 'none'}")

    def clear_state(self) -> None:
        """Start over with fresh backends built from the current configuration."""
        self.configure(self._configs)

    def start(self) -> None:
        if self.is_recording:
            return

        for backend in self._backends:
            try:
                # Retries streaming backends that dropped their connection.
                backend.start()
            except ConfigurationError as e:
                self._log(f"{backend.name} did not start: {e}")

        if self.audio_source is not None:
            self.audio_source.start(self.on_frames)
        self.is_recording = True

    def on_frames(self, frames: np.ndarray) -> None:
        # Called from the capture callback: hand off only.
        self._batch_context.submit(self.batcher.add, frames)

    def submit_batch(self, batch: AudioBatch) -> None:
        for backend in self._backends:
            try:
                backend.submit(batch)
            except ArenaError as e:
                self._log(f"{backend.name} rejected a batch: {e}")

    def stop(self) -> None:
        if not self.is_recording:
            return
        self.is_recording = False

        if self.audio_source is not None:
            self.audio_source.stop()

        # Frames queued before the source stopped come first, then the partial batch.
        self._batch_context.submit(self.batcher.flush)
        self._batch_context.join()

        for backend in self._backends:
            backend.stop()

    def close(self) -> None:
        """Stop recording and release every backend and worker thread."""
        self.stop()
        with self._lock:
            previous = self._backends
            self._generation = object()
            self._backends = ()
        for backend in previous:
            self._discard(backend)
        self._batch_context.shutdown()
        self._ui_context.shutdown()

    def states(self) -> dict[str, BackendState]:
        return {backend.name: backend.state() for backend in self._backends}

    def wait_for_updates(self) -> None:
        """Block until every state update published so far reached the observers."""
        self._batch_context.join()
        self._ui_context.join()

    def _publisher(self, generation: object, name: str) -> Callable[[BackendState], None]:
        def publish(state: BackendState) -> None:
            self._ui_context.submit(self._deliver, generation, name, state)

        return publish

    def _deliver(self, generation: object, name: str, state: BackendState) -> None:
        with self._lock:
            if generation is not self._generation:
                return
        if self.on_state_changed:
            self.on_state_changed(name, state)

    def _discard(self, backend: TranscriberBackend) -> None:
        try:
            backend.stop()
            backend.reset()
        finally:
            backend.close()

    def _log(self, message: str) -> None:
        if self.logger:
            self.logger.log(f"[Orchestrator] {message}")
