from __future__ import annotations

import io

import numpy as np
from scipy.io.wavfile import read, write

from arena.domain.audio import AudioFormat
from arena.domain.errors import ConversionError


def encode_wav(samples: np.ndarray, audio_format: AudioFormat) -> bytes:
    """Serialize PCM samples into a self-contained RIFF/WAVE container."""
    audio = np.asarray(samples)
    if audio.dtype != audio_format.sample_width.dtype:
        raise ConversionError(
            f"Expected {audio_format.sample_width.value} samples, got {audio.dtype}."
        )
    if audio_format.channels > 1 and audio.ndim != 2:
        audio = audio.reshape(-1, audio_format.channels)

    wav_buffer = io.BytesIO()
    write(wav_buffer, audio_format.sample_rate, audio)
    return wav_buffer.getvalue()


def decode_wav(data: bytes) -> tuple[int, np.ndarray]:
    """Return (sample_rate, samples) from a WAV container."""
    try:
        sample_rate, samples = read(io.BytesIO(data))
    except ValueError as e:
        raise ConversionError(f"Invalid WAV container: {e}") from e
    return int(sample_rate), samples
