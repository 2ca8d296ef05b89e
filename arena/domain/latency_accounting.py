from __future__ import annotations

from dataclasses import dataclass, replace


@dataclass(frozen=True)
class LatencyAccounting:
    """Per-backend request/latency counters.

    Every update returns a new value, so a reader always sees a complete
    snapshot.
    """

    request_count: int = 0
    total_latency: float = 0.0
    total_audio_seconds: float = 0.0
    total_request_bytes: int = 0
    last_duration: float = 0.0

    def record_request(
        self,
        duration: float,
        *,
        audio_seconds: float = 0.0,
        request_bytes: int = 0,
    ) -> "LatencyAccounting":
        """Account for one request/response exchange."""
        return replace(
            self,
            request_count=self.request_count + 1,
            total_latency=self.total_latency + duration,
            total_audio_seconds=self.total_audio_seconds + audio_seconds,
            total_request_bytes=self.total_request_bytes + request_bytes,
            last_duration=duration,
        )

    def record_final(
        self,
        sequence: int,
        duration: float,
        *,
        audio_seconds: float = 0.0,
        request_bytes: int = 0,
    ) -> "LatencyAccounting":
        """Account for a streaming "final" event caused by submission `sequence`.

        A sequence seen for the first time adds its duration. A repeated
        sequence (several finals for one submission) replaces the duration
        added last time instead of counting it twice.
        """
        if sequence != self.request_count:
            total_latency = self.total_latency + duration
        else:
            total_latency = self.total_latency - self.last_duration + duration
        return replace(
            self,
            request_count=sequence,
            total_latency=total_latency,
            total_audio_seconds=self.total_audio_seconds + audio_seconds,
            total_request_bytes=self.total_request_bytes + request_bytes,
            last_duration=duration,
        )

    def add_usage(self, *, audio_seconds: float = 0.0, request_bytes: int = 0) -> "LatencyAccounting":
        return replace(
            self,
            total_audio_seconds=self.total_audio_seconds + audio_seconds,
            total_request_bytes=self.total_request_bytes + request_bytes,
        )

    @property
    def average_latency(self) -> float:
        if self.request_count <= 0:
            return 0.0
        return self.total_latency / self.request_count

    @property
    def average_request_size_kb(self) -> float:
        if self.request_count <= 0:
            return 0.0
        return self.total_request_bytes / 1024 / self.request_count
