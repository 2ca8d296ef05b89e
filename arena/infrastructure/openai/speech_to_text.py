from __future__ import annotations

from openai import OpenAI, OpenAIError

from arena.domain.errors import ProtocolError, TransportError

TRANSCRIPTIONS_PATH = "/audio/transcriptions"


def base_url_for(api_url: str) -> str:
    """Turn a full transcription endpoint into the SDK's base URL."""
    api_url = api_url.rstrip("/")
    if api_url.endswith(TRANSCRIPTIONS_PATH):
        return api_url[: -len(TRANSCRIPTIONS_PATH)]
    return api_url


class SpeechToText:
    """Whisper-style transcription against any OpenAI-compatible endpoint (OpenAI, Groq)."""

    def __init__(
        self,
        *,
        client: OpenAI,
        model: str = "whisper-1",
        language: str = "en",
        filename: str = "audio.wav",
    ):
        self.client = client
        self.model = model
        self.language = language
        self.filename = filename

    def transcribe(self, wav_bytes: bytes, *, prompt: str | None = None) -> str:
        request = {
            "file": (self.filename, wav_bytes, "audio/wav"),
            "model": self.model,
            "language": self.language,
        }
        if prompt:
            request["prompt"] = prompt

        try:
            response = self.client.audio.transcriptions.create(**request)
        except OpenAIError as e:
            raise TransportError(str(e)) from e

        text = getattr(response, "text", None)
        if not isinstance(text, str):
            raise ProtocolError("Transcription response has no 'text' field.", payload=response)
        return text.strip()
