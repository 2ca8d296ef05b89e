from __future__ import annotations

import json
from urllib.parse import urlencode

import numpy as np

from arena.application.port.stream_protocol import StreamConnection, StreamEvent, StreamEventType
from arena.domain.errors import ConfigurationError, ProtocolError

DEFAULT_URL = "wss://api.deepgram.com/v1/listen"


class DeepgramStreamProtocol:
    def __init__(
        self,
        *,
        api_key: str | None,
        url: str = DEFAULT_URL,
        model: str | None = None,
        sample_rate: int = 16_000,
        channels: int = 1,
    ) -> None:
        self.api_key = api_key
        self.url = url
        self.model = model
        self.sample_rate = sample_rate
        self.channels = channels

    def handshake(self) -> StreamConnection:
        # Deepgram authenticates the socket itself; no token exchange.
        if not self.api_key:
            raise ConfigurationError("Deepgram requires an API key.")

        params = {
            "encoding": "linear16",
            "sample_rate": str(self.sample_rate),
            "channels": str(self.channels),
            "punctuate": "true",
            "smart_format": "true",
            "numerals": "true",
        }
        if self.model:
            params["model"] = self.model

        return StreamConnection(
            url=f"{self.url}?{urlencode(params)}",
            headers={"Authorization": f"Token {self.api_key}"},
        )

    def encode_audio(self, samples: np.ndarray) -> bytes:
        return np.asarray(samples, dtype="<i2").tobytes()

    def parse_message(self, message: str | bytes) -> StreamEvent:
        try:
            data = json.loads(message)
        except (TypeError, ValueError) as e:
            raise ProtocolError(f"Invalid JSON: {e}", payload=message) from e
        if not isinstance(data, dict):
            raise ProtocolError("Expected a JSON object.", payload=message)

        # Metadata, SpeechStarted, UtteranceEnd, ...
        if data.get("type", "Results") != "Results":
            return StreamEvent(type=StreamEventType.OTHER)

        try:
            transcript = data["channel"]["alternatives"][0]["transcript"]
        except (KeyError, IndexError, TypeError) as e:
            raise ProtocolError("Results message without a transcript.", payload=message) from e
        if not isinstance(transcript, str):
            raise ProtocolError("Transcript is not a string.", payload=message)

        # Without interim results every Results message is final.
        if data.get("is_final", True):
            return StreamEvent(type=StreamEventType.FINAL, text=transcript)
        return StreamEvent(type=StreamEventType.PARTIAL, text=transcript)

    def close_message(self) -> str:
        return json.dumps({"type": "CloseStream"})
