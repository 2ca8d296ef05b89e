from __future__ import annotations


class ArenaError(RuntimeError):
    """Base class for transcription pipeline failures (never fatal to the process)."""


class ConfigurationError(ArenaError):
    """Raised when a backend is missing a credential, URL or model."""


class TransportError(ArenaError):
    """Raised when connecting to or sending to a backend fails."""


class ProtocolError(ArenaError):
    """Raised when a backend answers with an unexpected payload."""

    def __init__(self, message: str, *, payload: object = None) -> None:
        super().__init__(message)
        self.payload = payload


class ConversionError(ArenaError):
    """Raised when captured audio cannot be converted to the pipeline format."""
