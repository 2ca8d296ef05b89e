from __future__ import annotations

import base64
import json
from urllib.parse import urlencode

import httpx
import numpy as np

from arena.application.port.stream_protocol import StreamConnection, StreamEvent, StreamEventType
from arena.domain.errors import ConfigurationError, ProtocolError, TransportError

DEFAULT_URL = "wss://api.assemblyai.com/v2/realtime/ws"
DEFAULT_TOKEN_URL = "https://api.assemblyai.com/v2/realtime/token"
TOKEN_TTL_SECONDS = 3600


class AssemblyAIStreamProtocol:
    def __init__(
        self,
        *,
        api_key: str | None,
        url: str = DEFAULT_URL,
        token_url: str = DEFAULT_TOKEN_URL,
        sample_rate: int = 16_000,
        http_client: httpx.Client | None = None,
        timeout_seconds: float = 10.0,
    ) -> None:
        self.api_key = api_key
        self.url = url
        self.token_url = token_url
        self.sample_rate = sample_rate
        self.timeout_seconds = timeout_seconds
        self._http = http_client or httpx.Client(timeout=timeout_seconds)

    def handshake(self) -> StreamConnection:
        token = self._fetch_token()
        params = {
            "sample_rate": str(self.sample_rate),
            "encoding": "pcm_s16le",
            "token": token,
        }
        return StreamConnection(url=f"{self.url}?{urlencode(params)}", headers={})

    def _fetch_token(self) -> str:
        if not self.api_key:
            raise ConfigurationError("AssemblyAI requires an API key.")

        try:
            response = self._http.post(
                self.token_url,
                json={"expires_in": TOKEN_TTL_SECONDS},
                headers={"Authorization": self.api_key},
            )
        except httpx.HTTPError as e:
            raise TransportError(f"Token request failed: {e}") from e

        if response.status_code in (401, 403):
            raise ConfigurationError(
                f"AssemblyAI rejected the API key (HTTP {response.status_code})."
            )
        if response.status_code >= 400:
            raise TransportError(f"Token request failed with HTTP {response.status_code}.")

        try:
            data = response.json()
        except ValueError as e:
            raise ProtocolError("Token response is not JSON.", payload=response.text) from e

        token = data.get("token") if isinstance(data, dict) else None
        if not isinstance(token, str) or not token:
            raise ProtocolError("Token not found in response.", payload=data)
        return token

    def encode_audio(self, samples: np.ndarray) -> str:
        pcm = np.asarray(samples, dtype="<i2").tobytes()
        return json.dumps({"audio_data": base64.b64encode(pcm).decode("utf-8")})

    def parse_message(self, message: str | bytes) -> StreamEvent:
        try:
            data = json.loads(message)
        except (TypeError, ValueError) as e:
            raise ProtocolError(f"Invalid JSON: {e}", payload=message) from e
        if not isinstance(data, dict):
            raise ProtocolError("Expected a JSON object.", payload=message)

        if "error" in data:
            raise ProtocolError(f"Session error: {data['error']}", payload=message)

        message_type = data.get("message_type")
        if message_type == "FinalTranscript":
            text = data.get("text")
            if not isinstance(text, str):
                raise ProtocolError("FinalTranscript without text.", payload=message)
            return StreamEvent(type=StreamEventType.FINAL, text=text)
        if message_type == "PartialTranscript":
            return StreamEvent(type=StreamEventType.PARTIAL, text=data.get("text") or "")
        if message_type is None:
            raise ProtocolError("Message type not found.", payload=message)
        # SessionBegins, SessionTerminated, ...
        return StreamEvent(type=StreamEventType.OTHER)

    def close_message(self) -> str:
        return json.dumps({"terminate_session": True})
