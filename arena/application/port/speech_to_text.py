from __future__ import annotations

from typing import Protocol


class SpeechToText(Protocol):
    def transcribe(self, wav_bytes: bytes, *, prompt: str | None = None) -> str:
        """Transcribe a complete WAV container into text.

        Raises TransportError when the request fails and ProtocolError when
        the answer carries no transcript.
        """
        ...
