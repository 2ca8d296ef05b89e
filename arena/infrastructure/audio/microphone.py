from __future__ import annotations

from collections.abc import Callable

import numpy as np
import sounddevice as sd

from arena.domain.audio import AudioFormat, SampleWidth
from arena.domain.errors import ConversionError, TransportError
from arena.infrastructure.audio.format_converter import FormatConverter
from arena.utils.logger import Logger


def list_input_devices() -> list[str]:
    lines = []
    for idx, device in enumerate(sd.query_devices()):
        if device.get("max_input_channels", 0) <= 0:
            continue
        lines.append(
            f"#{idx} sr={device.get('default_samplerate', '?')} "
            f"in={device.get('max_input_channels')} name={device.get('name', '?')}"
        )
    return lines


class Microphone:
    """Captures the input device and hands converted frames to `on_frames`.

    The PortAudio callback only copies, converts and hands off; anything
    slower belongs to whoever consumes `on_frames`.
    """

    def __init__(
        self,
        *,
        converter: FormatConverter | None = None,
        capture_window: float = 0.4,
        device: int | None = None,
        logger: Logger | None = None,
    ):
        self.converter = converter or FormatConverter()
        self.capture_window = capture_window
        self.device = device
        self._logger = logger

        self.hardware_format: AudioFormat | None = None
        self._stream: sd.InputStream | None = None
        self._on_frames: Callable[[np.ndarray], None] | None = None

    @property
    def is_running(self) -> bool:
        return self._stream is not None

    def start(self, on_frames: Callable[[np.ndarray], None]) -> None:
        if self._stream is not None:
            return

        self._on_frames = on_frames
        self.hardware_format = self._query_hardware_format()
        blocksize = int(self.hardware_format.sample_rate * self.capture_window)

        try:
            stream = sd.InputStream(
                samplerate=self.hardware_format.sample_rate,
                channels=self.hardware_format.channels,
                dtype=self.hardware_format.sample_width.value,
                blocksize=blocksize,
                device=self.device,
                callback=self._audio_callback,
            )
            stream.start()
        except (sd.PortAudioError, OSError, ValueError) as e:
            raise TransportError(f"Could not open input device {self.device}: {e}") from e

        self._stream = stream
        self._log(
            f"Capturing {self.hardware_format.sample_rate}Hz x{self.hardware_format.channels} "
            f"-> {self.converter.target.sample_rate}Hz mono, {blocksize} frames per callback"
        )

    def stop(self) -> None:
        stream, self._stream = self._stream, None
        if stream is None:
            return
        try:
            stream.stop()
        finally:
            stream.close()
        self._log("Capture stopped")

    def _query_hardware_format(self) -> AudioFormat:
        try:
            info = sd.query_devices(self.device, "input")
            sample_rate = int(info["default_samplerate"])
            channels = max(1, min(int(info["max_input_channels"]), 2))
        except (sd.PortAudioError, ValueError, KeyError) as e:
            raise TransportError(f"Could not query input device {self.device}: {e}") from e
        return AudioFormat(
            sample_rate=sample_rate,
            channels=channels,
            sample_width=SampleWidth.FLOAT32,
            interleaved=True,
        )

    def _audio_callback(self, indata, frames, time_info, status) -> None:
        if status:
            self._log(f"Status: {status}")

        try:
            converted = self.converter.convert(indata.copy(), self.hardware_format)
        except ConversionError as e:
            self._log(f"Dropping {frames} frames: {e}")
            return

        if self._on_frames is not None:
            self._on_frames(converted)

    def _log(self, message: str) -> None:
        if self._logger:
            self._logger.log(f"[Mic] {message}")
