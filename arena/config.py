from __future__ import annotations

import os
from dataclasses import dataclass, replace

from arena.domain.backend import BackendConfig, BackendKind

DEFAULT_LANGUAGE = "en"
DEFAULT_BATCH_SIZE = 5
DEFAULT_CAPTURE_WINDOW_SECONDS = 0.4
DEFAULT_LOCAL_MODEL = "distil-large-v3"
MAX_SELECTED_BACKENDS = 3

API_KEY_ENV = {
    BackendKind.GROQ: "GROQ_API_KEY",
    BackendKind.OPENAI: "OPENAI_API_KEY",
    BackendKind.DEEPGRAM: "DEEPGRAM_API_KEY",
    BackendKind.ASSEMBLYAI: "ASSEMBLYAI_API_KEY",
}


def default_backend_configs() -> list[BackendConfig]:
    return [
        BackendConfig(
            name="GROQ",
            kind=BackendKind.GROQ,
            requires_api_key=True,
            api_url="https://api.groq.com/openai/v1/audio/transcriptions",
            model="whisper-large-v3",
            text_model="llama-3.1-8b-instant",
        ),
        BackendConfig(
            name="OPENAI",
            kind=BackendKind.OPENAI,
            requires_api_key=True,
            api_url="https://api.openai.com/v1/audio/transcriptions",
            model="whisper-1",
            text_model="gpt-4o-mini",
        ),
        BackendConfig(
            name="DEEPGRAM",
            kind=BackendKind.DEEPGRAM,
            requires_api_key=True,
            api_url="wss://api.deepgram.com/v1/listen",
            model="nova-2-general",
        ),
        BackendConfig(
            name="ASSEMBLYAI",
            kind=BackendKind.ASSEMBLYAI,
            requires_api_key=True,
            api_url="wss://api.assemblyai.com/v2/realtime/ws",
            token_url="https://api.assemblyai.com/v2/realtime/token",
        ),
        BackendConfig(
            name="LOCAL",
            kind=BackendKind.LOCAL,
            requires_api_key=False,
            model=DEFAULT_LOCAL_MODEL,
        ),
    ]


@dataclass(frozen=True)
class PipelineConfig:
    batch_size: int = DEFAULT_BATCH_SIZE
    capture_window_seconds: float = DEFAULT_CAPTURE_WINDOW_SECONDS
    language: str = DEFAULT_LANGUAGE
    input_device: int | None = None


@dataclass(frozen=True)
class AppConfig:
    backends: tuple[BackendConfig, ...]
    pipeline: PipelineConfig = PipelineConfig()

    @property
    def selected_backends(self) -> list[BackendConfig]:
        return [backend for backend in self.backends if backend.is_selected]

    @staticmethod
    def from_env(selected: list[str] | None = None) -> "AppConfig":
        """Build the configuration from environment variables.

        `selected` overrides `ARENA_BACKENDS`. Without either, every backend
        with a credential is selected (up to MAX_SELECTED_BACKENDS).
        """
        pipeline = PipelineConfig(
            batch_size=_int_env("ARENA_BATCH_SIZE", DEFAULT_BATCH_SIZE, minimum=1),
            capture_window_seconds=_float_env(
                "ARENA_CAPTURE_WINDOW_SECONDS", DEFAULT_CAPTURE_WINDOW_SECONDS
            ),
            language=os.getenv("ARENA_LANGUAGE") or DEFAULT_LANGUAGE,
            input_device=_optional_int_env("ARENA_INPUT_DEVICE"),
        )

        local_model = os.getenv("ARENA_LOCAL_MODEL") or DEFAULT_LOCAL_MODEL
        configs = []
        for config in default_backend_configs():
            env_name = API_KEY_ENV.get(config.kind)
            if env_name:
                config = config.with_api_key((os.getenv(env_name) or "").strip())
            if config.kind is BackendKind.LOCAL:
                config = replace(config, model=local_model)
            configs.append(config)

        if selected is None:
            raw = os.getenv("ARENA_BACKENDS")
            selected = _split_names(raw) if raw else None

        if selected is None:
            names = [
                c.name for c in configs if c.requires_api_key and c.can_be_selected
            ][:MAX_SELECTED_BACKENDS]
        else:
            names = [name.upper() for name in selected]

        known = {config.name for config in configs}
        unknown = [name for name in names if name not in known]
        if unknown:
            raise ValueError(
                f"Unknown backend(s): {', '.join(unknown)}. Choose from {', '.join(sorted(known))}."
            )
        if not names:
            raise ValueError(
                "No backend selected. Set an API key (e.g. GROQ_API_KEY) or ARENA_BACKENDS=LOCAL."
            )
        if len(names) > MAX_SELECTED_BACKENDS:
            raise ValueError(f"At most {MAX_SELECTED_BACKENDS} backends can be compared at once.")

        resolved = []
        for config in configs:
            if config.name in names:
                if not config.can_be_selected:
                    raise ValueError(f"{config.name} requires {API_KEY_ENV[config.kind]}.")
                config = config.with_selection(True)
            resolved.append(config)

        return AppConfig(backends=tuple(resolved), pipeline=pipeline)


def _split_names(raw: str) -> list[str]:
    return [part.strip() for part in raw.split(",") if part.strip()]


def _int_env(name: str, default: int, *, minimum: int | None = None) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer.") from exc
    if minimum is not None and value < minimum:
        raise ValueError(f"{name} must be at least {minimum}.")
    return value


def _optional_int_env(name: str) -> int | None:
    raw = os.getenv(name)
    if not raw:
        return None
    return _int_env(name, 0)


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number (seconds).") from exc
    if value <= 0:
        raise ValueError(f"{name} must be positive.")
    return value
