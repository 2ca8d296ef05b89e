from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from openai import OpenAI

from arena.application.batch_backend import BatchBackend
from arena.application.orchestrator import AudioSource, Orchestrator
from arena.application.port.transcriber import TranscriberBackend
from arena.application.streaming_backend import StreamingBackend
from arena.config import AppConfig, PipelineConfig
from arena.domain.backend import BackendConfig, BackendKind, BackendState
from arena.domain.errors import ConfigurationError
from arena.infrastructure.assemblyai.stream_protocol import AssemblyAIStreamProtocol
from arena.infrastructure.audio.microphone import Microphone
from arena.infrastructure.deepgram.stream_protocol import DeepgramStreamProtocol
from arena.infrastructure.openai.sentence_detector import OpenAISentenceDetector
from arena.infrastructure.openai.speech_to_text import SpeechToText as OpenAISpeechToText
from arena.infrastructure.openai.speech_to_text import base_url_for
from arena.utils.logger import Logger

DEFAULT_TIMEOUT_SECONDS = 60.0


@dataclass(frozen=True)
class AppContainer:
    config: AppConfig
    logger: Logger
    audio_source: AudioSource
    orchestrator: Orchestrator


def create_backend(
    config: BackendConfig,
    on_state: Callable[[BackendState], None],
    *,
    pipeline: PipelineConfig,
    logger: Logger | None = None,
) -> TranscriberBackend:
    if config.requires_api_key and not config.api_key:
        raise ConfigurationError(f"{config.name} requires an API key.")

    if config.kind in (BackendKind.GROQ, BackendKind.OPENAI):
        if not config.api_url or not config.model:
            raise ConfigurationError(f"{config.name} needs an endpoint URL and a model.")
        client = OpenAI(
            api_key=config.api_key,
            base_url=base_url_for(config.api_url),
            timeout=DEFAULT_TIMEOUT_SECONDS,
        )
        detector = (
            OpenAISentenceDetector(client=client, model=config.text_model)
            if config.text_model
            else None
        )
        return BatchBackend(
            config,
            OpenAISpeechToText(client=client, model=config.model, language=pipeline.language),
            sentence_detector=detector,
            on_state=on_state,
            logger=logger,
        )

    if config.kind is BackendKind.LOCAL:
        from arena.infrastructure.local.speech_to_text import SpeechToText as LocalSpeechToText

        stt = LocalSpeechToText(
            model=config.model or "distil-large-v3",
            language=pipeline.language,
            logger=logger,
        )
        return BatchBackend(config, stt, on_state=on_state, logger=logger)

    if config.kind is BackendKind.DEEPGRAM:
        protocol = DeepgramStreamProtocol(
            api_key=config.api_key,
            url=config.api_url or "wss://api.deepgram.com/v1/listen",
            model=config.model,
        )
        return StreamingBackend(config, protocol, on_state=on_state, logger=logger)

    if config.kind is BackendKind.ASSEMBLYAI:
        protocol = AssemblyAIStreamProtocol(
            api_key=config.api_key,
            url=config.api_url or "wss://api.assemblyai.com/v2/realtime/ws",
            token_url=config.token_url or "https://api.assemblyai.com/v2/realtime/token",
        )
        return StreamingBackend(config, protocol, on_state=on_state, logger=logger)

    raise ConfigurationError(f"Unsupported backend kind: {config.kind}")


def build_container(
    config: AppConfig,
    *,
    logger: Logger | None = None,
    audio_source: AudioSource | None = None,
) -> AppContainer:
    logger = logger or Logger()
    audio_source = audio_source or Microphone(
        capture_window=config.pipeline.capture_window_seconds,
        device=config.pipeline.input_device,
        logger=logger,
    )

    def backend_factory(
        backend_config: BackendConfig, on_state: Callable[[BackendState], None]
    ) -> TranscriberBackend:
        return create_backend(
            backend_config, on_state, pipeline=config.pipeline, logger=logger
        )

    orchestrator = Orchestrator(
        backend_factory=backend_factory,
        audio_source=audio_source,
        batch_size=config.pipeline.batch_size,
        logger=logger,
    )

    return AppContainer(
        config=config,
        logger=logger,
        audio_source=audio_source,
        orchestrator=orchestrator,
    )
