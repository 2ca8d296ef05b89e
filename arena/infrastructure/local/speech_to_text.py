from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from arena.domain.errors import ConfigurationError, TransportError
from arena.infrastructure.audio.wav import decode_wav
from arena.utils.logger import Logger

if TYPE_CHECKING:
    from faster_whisper import WhisperModel


class SpeechToText:
    """On-device transcription with faster-whisper; needs no credential."""

    def __init__(
        self,
        *,
        model: str = "distil-large-v3",
        device: str = "cuda",
        compute_type: str = "float16",
        language: str = "en",
        logger: Logger | None = None,
    ) -> None:
        self.model_name = model
        self.language = language
        self._logger = logger

        self.device: str | None = None
        self.compute_type: str | None = None

        try:
            from faster_whisper import WhisperModel as _WhisperModel
        except ModuleNotFoundError as e:
            raise ConfigurationError(
                "The LOCAL backend requires 'faster-whisper'. "
                "Install it with: pip install 'transcriber-arena[local-stt]'"
            ) from e

        try:
            self._model: WhisperModel = _WhisperModel(
                self.model_name, device=device, compute_type=compute_type
            )
            self.device = device
            self.compute_type = compute_type
        except Exception as e:  # CTranslate2 raises plain RuntimeError/ValueError variants.
            if device != "cuda":
                raise ConfigurationError(f"Failed to load local model: {e}") from e

            self._log(f"Failed to initialize on CUDA; falling back to CPU (int8). Original error: {e}")
            try:
                self._model = _WhisperModel(self.model_name, device="cpu", compute_type="int8")
            except Exception as cpu_e:
                raise ConfigurationError(
                    f"Failed to load local model on GPU and CPU. GPU error: {e} | CPU error: {cpu_e}"
                ) from cpu_e
            self.device = "cpu"
            self.compute_type = "int8"

        self._log(
            f"Local model {self.model_name} ready: device={self.device}, compute_type={self.compute_type}"
        )

    def _log(self, message: str) -> None:
        if self._logger:
            self._logger.log(f"[Local] {message}")

    def transcribe(self, wav_bytes: bytes, *, prompt: str | None = None) -> str:
        _, samples = decode_wav(wav_bytes)

        audio = np.asarray(samples)
        if audio.ndim == 2:
            audio = audio.mean(axis=1)
        if audio.dtype == np.int16:
            audio = audio.astype(np.float32) / 32768.0
        audio = np.ascontiguousarray(np.clip(audio, -1.0, 1.0), dtype=np.float32)

        try:
            segments, _info = self._model.transcribe(
                audio,
                language=self.language,
                initial_prompt=prompt or None,
                vad_filter=False,
                without_timestamps=True,
                beam_size=5,
            )
            # `segments` is a generator; force evaluation.
            return "".join(segment.text for segment in segments).strip()
        except (RuntimeError, ValueError) as e:
            raise TransportError(str(e)) from e
