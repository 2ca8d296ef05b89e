from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, replace
from time import monotonic
from typing import Callable

import numpy as np

from arena.application.executors import Executor, SerialExecutor
from arena.application.port.sentence_detector import SentenceDetector
from arena.application.port.speech_to_text import SpeechToText
from arena.application.single_flight import SingleFlight
from arena.application.stabilization import StabilizationEngine
from arena.domain.audio import PIPELINE_FORMAT, AudioBatch, AudioFormat
from arena.domain.backend import BackendConfig, BackendState, ConnectionStatus
from arena.domain.errors import ConfigurationError, ProtocolError
from arena.domain.transcript import last_line
from arena.infrastructure.audio.wav import encode_wav
from arena.utils.logger import Logger


@dataclass(frozen=True)
class _Request:
    sequence: int
    generation: int
    epoch: int
    batch_count: int
    audio_seconds: float
    size_bytes: int
    prompt: str | None


class BatchBackend:
    """Uploads the whole buffered recording on every round and stabilizes the answers.

    Internal state is only touched from `context`. Requests and sentence
    checks run on `network` and hand their results back to `context`.
    """

    def __init__(
        self,
        config: BackendConfig,
        stt: SpeechToText,
        *,
        sentence_detector: SentenceDetector | None = None,
        audio_format: AudioFormat = PIPELINE_FORMAT,
        engine: StabilizationEngine | None = None,
        context: Executor | None = None,
        network: Executor | None = None,
        on_state: Callable[[BackendState], None] | None = None,
        logger: Logger | None = None,
        clock: Callable[[], float] = monotonic,
    ) -> None:
        self.config = config
        self.stt = stt
        self.sentence_detector = sentence_detector
        self.audio_format = audio_format
        self.engine = engine or StabilizationEngine()
        self._logger = logger
        self._clock = clock
        self._on_state = on_state

        # Executors created here are shut down by close(); injected ones belong to the caller.
        self._owned_executors: list[SerialExecutor | ThreadPoolExecutor] = []
        if context is None:
            context = SerialExecutor(f"batch-{config.name}", logger=logger)
            self._owned_executors.append(context)
        if network is None:
            network = ThreadPoolExecutor(max_workers=2, thread_name_prefix=f"net-{config.name}")
            self._owned_executors.append(network)
        self._context = context
        self._network = network

        self._state = BackendState()
        self._batches: list[np.ndarray] = []
        self._flight = SingleFlight()
        self._sequence = 0
        # Bumped by reset(): late results of an older generation are dropped.
        self._generation = 0
        # Bumped when a line is finalized: the buffer those requests covered is gone.
        self._epoch = 0
        self._pending_check: str | None = None
        self._started = False

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def buffered_batches(self) -> int:
        return len(self._batches)

    def state(self) -> BackendState:
        return self._state

    def start(self) -> None:
        if self.config.requires_api_key and not self.config.api_key:
            self._context.submit(self._on_missing_key)
            raise ConfigurationError(f"{self.name} requires an API key.")
        self._context.submit(self._on_start)

    def submit(self, batch: AudioBatch) -> None:
        if batch.format != self.audio_format:
            self._log(f"Dropping batch in unexpected format {batch.format}")
            return
        self._context.submit(self._on_batch, batch.samples(), self._generation)

    def stop(self) -> None:
        # Requests already in flight finish on their own.
        self._context.submit(self._on_stop)

    def reset(self) -> None:
        self._generation += 1
        self._context.submit(self._on_reset)

    def close(self) -> None:
        """Release worker threads once queued and in-flight work has finished.

        Results that arrive after this are discarded.
        """
        self._generation += 1
        owned, self._owned_executors = self._owned_executors, []
        for executor in owned:
            executor.shutdown(wait=False)

    def _on_batch(self, samples: np.ndarray, generation: int) -> None:
        if generation != self._generation:
            return
        if not self._started:
            self._log("Not started; dropping batch")
            return

        self._batches.append(samples)
        if self._flight.on_submit():
            self._issue_request()

    def _on_missing_key(self) -> None:
        self._started = False
        self._publish(status=ConnectionStatus.ERROR, error="Missing API key")

    def _on_start(self) -> None:
        if self._started:
            return
        self._started = True
        self._publish(status=ConnectionStatus.CONNECTED, error=None)

    def _on_stop(self) -> None:
        self._started = False
        if self._state.status is ConnectionStatus.CONNECTED:
            self._publish(status=ConnectionStatus.DISCONNECTED)

    def _on_reset(self) -> None:
        self._batches.clear()
        self._flight.reset()
        self.engine.reset()
        self._sequence = 0
        self._pending_check = None
        self._state = BackendState(status=self._state.status)
        self._notify()

    def _issue_request(self) -> None:
        if not self._batches:
            self._flight.reset()
            return

        samples = np.concatenate(self._batches, axis=0)
        wav_bytes = encode_wav(samples, self.audio_format)

        self._sequence += 1
        request = _Request(
            sequence=self._sequence,
            generation=self._generation,
            epoch=self._epoch,
            batch_count=len(self._batches),
            audio_seconds=len(samples) / self.audio_format.sample_rate,
            size_bytes=len(wav_bytes),
            prompt=self.engine.committed.strip() or None,
        )
        self._network.submit(self._run_request, request, wav_bytes)

    def _run_request(self, request: _Request, wav_bytes: bytes) -> None:
        started_at = self._clock()
        text: str | None = None
        try:
            text = self.stt.transcribe(wav_bytes, prompt=request.prompt)
        except ProtocolError as e:
            self._log(f"Request #{request.sequence:03d} got something unexpected: {e} payload={e.payload!r}")
        except (OSError, RuntimeError, ValueError) as e:
            self._log(f"Request #{request.sequence:03d} failed: {e}")
        finally:
            duration = self._clock() - started_at
            self._context.submit(self._on_response, request, text, duration)

    def _on_response(self, request: _Request, text: str | None, duration: float) -> None:
        if request.generation != self._generation:
            return

        if text is not None:
            self._apply_result(request, text, duration)

        if self._flight.on_complete():
            self._issue_request()

    def _apply_result(self, request: _Request, text: str, duration: float) -> None:
        accounting = self._state.accounting.record_request(
            duration,
            audio_seconds=request.audio_seconds,
            request_bytes=request.size_bytes,
        )

        if request.epoch != self._epoch:
            # The line was finalized while this request was in flight.
            self._publish(accounting=accounting)
            return

        update = self.engine.ingest(text, request.batch_count)
        if update.folded_batches:
            del self._batches[: update.folded_batches]

        self._publish(transcription=update.transcript, accounting=accounting)

        if update.completeness_check and self.sentence_detector is not None:
            self._request_sentence_check(update.completeness_check)

    def _request_sentence_check(self, snapshot: str) -> None:
        if self._pending_check == snapshot:
            return
        self._pending_check = snapshot
        self._network.submit(self._run_sentence_check, snapshot, self._generation)

    def _run_sentence_check(self, snapshot: str, generation: int) -> None:
        detector = self.sentence_detector
        if detector is None:
            return
        complete = False
        try:
            complete = detector.is_complete_sentence(last_line(snapshot))
        except (OSError, RuntimeError, ValueError) as e:
            self._log(f"Sentence check failed: {e}")
        finally:
            self._context.submit(self._on_sentence_checked, snapshot, generation, complete)

    def _on_sentence_checked(self, snapshot: str, generation: int, complete: bool) -> None:
        if generation != self._generation:
            return
        if self._pending_check == snapshot:
            self._pending_check = None
        if not complete:
            return

        if not self.engine.finalize(snapshot):
            # A newer transcript superseded the one that was checked.
            return

        self._batches.clear()
        self._epoch += 1
        self._publish(transcription=self.engine.committed)

    def _publish(self, **changes) -> None:
        self._state = replace(self._state, **changes)
        self._notify()

    def _notify(self) -> None:
        if self._on_state:
            self._on_state(self._state)

    def _log(self, message: str) -> None:
        if self._logger:
            self._logger.log(f"[Batch:{self.name}] {message}")
