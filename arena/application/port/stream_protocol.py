from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Protocol

import numpy as np


class StreamEventType(str, Enum):
    PARTIAL = "partial"
    FINAL = "final"
    OTHER = "other"


@dataclass(frozen=True)
class StreamEvent:
    type: StreamEventType
    text: str = ""


@dataclass(frozen=True)
class StreamConnection:
    url: str
    headers: dict[str, str]


class StreamProtocol(Protocol):
    """Wire details of one streaming provider."""

    def handshake(self) -> StreamConnection:
        """Resolve the socket URL and headers, fetching a session token if needed.

        Raises ConfigurationError when the provider rejects the credential.
        """
        ...

    def encode_audio(self, samples: np.ndarray) -> str | bytes:
        ...

    def parse_message(self, message: str | bytes) -> StreamEvent:
        """Raises ProtocolError for payloads that are not valid messages."""
        ...

    def close_message(self) -> str | None:
        ...
