from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum

from arena.domain.latency_accounting import LatencyAccounting


class BackendKind(str, Enum):
    GROQ = "GROQ"
    OPENAI = "OPENAI"
    DEEPGRAM = "DEEPGRAM"
    ASSEMBLYAI = "ASSEMBLYAI"
    LOCAL = "LOCAL"

    @property
    def is_streaming(self) -> bool:
        return self in (BackendKind.DEEPGRAM, BackendKind.ASSEMBLYAI)


class ConnectionStatus(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    ERROR = "error"


@dataclass(frozen=True)
class BackendConfig:
    name: str
    kind: BackendKind
    requires_api_key: bool
    api_url: str | None = None
    model: str | None = None
    text_model: str | None = None
    token_url: str | None = None
    api_key: str | None = field(default=None, repr=False)
    is_selected: bool = False

    @property
    def can_be_selected(self) -> bool:
        return not self.requires_api_key or bool(self.api_key)

    def with_api_key(self, api_key: str | None) -> "BackendConfig":
        return replace(self, api_key=api_key or None)

    def with_selection(self, is_selected: bool) -> "BackendConfig":
        return replace(self, is_selected=is_selected)


@dataclass(frozen=True)
class BackendState:
    """What the UI layer reads. Replaced as a whole on every update."""

    transcription: str = ""
    accounting: LatencyAccounting = field(default_factory=LatencyAccounting)
    status: ConnectionStatus = ConnectionStatus.DISCONNECTED
    error: str | None = None

    @property
    def request_count(self) -> int:
        return self.accounting.request_count

    @property
    def total_latency(self) -> float:
        return self.accounting.total_latency

    @property
    def total_audio_seconds(self) -> float:
        return self.accounting.total_audio_seconds

    @property
    def average_latency(self) -> float:
        return self.accounting.average_latency

    @property
    def average_request_size_kb(self) -> float:
        return self.accounting.average_request_size_kb
