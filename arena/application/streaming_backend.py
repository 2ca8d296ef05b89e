from __future__ import annotations

import asyncio
import concurrent.futures
from dataclasses import replace
from threading import Thread
from time import monotonic
from typing import Any, Callable

import numpy as np
import websockets
from websockets.exceptions import ConnectionClosed, WebSocketException

from arena.application.port.stream_protocol import StreamEventType, StreamProtocol
from arena.domain.audio import AudioBatch
from arena.domain.backend import BackendConfig, BackendState, ConnectionStatus
from arena.domain.errors import ArenaError, ConfigurationError, ProtocolError
from arena.domain.transcript import join_transcript
from arena.utils.logger import Logger

CLOSE_TIMEOUT_SECONDS = 3.0


class StreamingBackend:
    """Pushes every batch over one persistent socket and appends the finals it hears back.

    All connection and state handling runs on a private event loop thread,
    which is this backend's serialized context.
    """

    def __init__(
        self,
        config: BackendConfig,
        protocol: StreamProtocol,
        *,
        on_state: Callable[[BackendState], None] | None = None,
        logger: Logger | None = None,
        clock: Callable[[], float] = monotonic,
        connect: Callable[..., Any] = websockets.connect,
    ) -> None:
        self.config = config
        self.protocol = protocol
        self._on_state = on_state
        self._logger = logger
        self._clock = clock
        self._connect_fn = connect

        self._state = BackendState()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._loop_thread: Thread | None = None
        self._socket: Any = None
        self._opening: asyncio.Task | None = None
        self._receiver: asyncio.Task | None = None

        self._sequence = 0
        # (sequence, sent_at) of the most recent submission.
        self._outstanding: tuple[int, float] | None = None

    @property
    def name(self) -> str:
        return self.config.name

    def state(self) -> BackendState:
        return self._state

    def start(self) -> None:
        if self.config.requires_api_key and not self.config.api_key:
            self._set_status(ConnectionStatus.ERROR, error="Missing API key")
            raise ConfigurationError(f"{self.name} requires an API key.")

        if self._state.status in (ConnectionStatus.CONNECTING, ConnectionStatus.CONNECTED):
            return

        self._ensure_loop_started()
        self._set_status(ConnectionStatus.CONNECTING)
        self._loop.call_soon_threadsafe(self._begin_open)

    def submit(self, batch: AudioBatch) -> None:
        loop = self._loop
        if loop is None or not loop.is_running():
            self._log("Not connected; dropping batch")
            return
        asyncio.run_coroutine_threadsafe(
            self._send(batch.samples(), batch.duration_seconds), loop
        )

    def stop(self) -> None:
        loop = self._loop
        if loop is None:
            return

        future = asyncio.run_coroutine_threadsafe(self._close(), loop)
        try:
            future.result(timeout=CLOSE_TIMEOUT_SECONDS + 1.0)
        except concurrent.futures.TimeoutError:
            self._log("Timed out while closing the connection")

        loop.call_soon_threadsafe(loop.stop)
        if self._loop_thread is not None:
            self._loop_thread.join(timeout=1.0)
        self._loop = None
        self._loop_thread = None
        self._opening = None
        self._socket = None
        self._mark_disconnected()

    def close(self) -> None:
        self.stop()

    def reset(self) -> None:
        loop = self._loop
        if loop is not None and loop.is_running():
            loop.call_soon_threadsafe(self._clear)
        else:
            self._clear()

    def _ensure_loop_started(self) -> None:
        if self._loop is not None and self._loop.is_running():
            return

        self._loop = asyncio.new_event_loop()
        self._loop_thread = Thread(
            target=self._run_loop,
            args=(self._loop,),
            name=f"stream-{self.name}",
            daemon=True,
        )
        self._loop_thread.start()

    @staticmethod
    def _run_loop(loop: asyncio.AbstractEventLoop) -> None:
        asyncio.set_event_loop(loop)
        try:
            loop.run_forever()
        finally:
            loop.close()

    def _begin_open(self) -> None:
        self._opening = asyncio.get_running_loop().create_task(self._open())

    async def _open(self) -> None:
        try:
            # The handshake is a plain blocking HTTP call.
            connection = await asyncio.to_thread(self.protocol.handshake)
        except ConfigurationError as e:
            self._log(f"Authentication failed: {e}")
            self._set_status(ConnectionStatus.ERROR, error=str(e))
            return
        except ArenaError as e:
            self._log(f"Handshake failed: {e}")
            self._set_status(ConnectionStatus.ERROR, error=str(e))
            return

        try:
            self._socket = await self._connect_fn(
                connection.url, additional_headers=connection.headers
            )
        except (OSError, WebSocketException) as e:
            self._log(f"Connection failed: {e}")
            self._set_status(ConnectionStatus.ERROR, error=str(e))
            return

        self._log("Connected")
        self._set_status(ConnectionStatus.CONNECTED)
        self._receiver = asyncio.get_running_loop().create_task(self._receive_loop())

    async def _send(self, samples: np.ndarray, audio_seconds: float) -> None:
        if self._state.status is not ConnectionStatus.CONNECTED or self._socket is None:
            self._log("Not connected; dropping batch")
            return

        payload = self.protocol.encode_audio(samples)
        self._mark_sent(audio_seconds=audio_seconds, request_bytes=len(payload))
        try:
            await self._socket.send(payload)
        except (OSError, ConnectionClosed) as e:
            self._log(f"Send failed: {e}")
            self._set_status(ConnectionStatus.DISCONNECTED, error=str(e))

    async def _receive_loop(self) -> None:
        socket = self._socket
        try:
            async for message in socket:
                self.handle_message(message)
        except ConnectionClosed as e:
            self._log(f"Connection closed: {e}")
        finally:
            if self._socket is socket:
                self._socket = None
            if self._state.status is ConnectionStatus.CONNECTED:
                self._set_status(ConnectionStatus.DISCONNECTED)

    async def _close(self) -> None:
        opening, self._opening = self._opening, None
        if opening is not None and not opening.done():
            # Stopped during the handshake or connect: abandon the attempt.
            opening.cancel()
            await asyncio.gather(opening, return_exceptions=True)

        socket = self._socket
        if socket is None:
            self._mark_disconnected()
            return

        close_message = self.protocol.close_message()
        try:
            if close_message is not None:
                await socket.send(close_message)
                # Let the provider flush its last finals before hanging up.
                if self._receiver is not None:
                    await asyncio.wait_for(asyncio.shield(self._receiver), CLOSE_TIMEOUT_SECONDS)
        except (OSError, ConnectionClosed, asyncio.TimeoutError) as e:
            self._log(f"Closing: {e!r}")
        finally:
            await socket.close()
            self._socket = None
            self._mark_disconnected()

    def _mark_disconnected(self) -> None:
        # An error status stays visible until the next start.
        if self._state.status in (ConnectionStatus.CONNECTING, ConnectionStatus.CONNECTED):
            self._set_status(ConnectionStatus.DISCONNECTED)

    def _mark_sent(self, *, audio_seconds: float = 0.0, request_bytes: int = 0) -> None:
        self._sequence += 1
        self._outstanding = (self._sequence, self._clock())
        self._publish(
            accounting=self._state.accounting.add_usage(
                audio_seconds=audio_seconds, request_bytes=request_bytes
            )
        )

    def handle_message(self, message: str | bytes) -> None:
        try:
            event = self.protocol.parse_message(message)
        except ProtocolError as e:
            self._log(f"Unexpected message: {e} payload={e.payload!r}")
            return

        if event.type is StreamEventType.FINAL:
            self._on_final(event.text)

    def _on_final(self, text: str) -> None:
        accounting = self._state.accounting
        if self._outstanding is not None:
            sequence, sent_at = self._outstanding
            accounting = accounting.record_final(sequence, self._clock() - sent_at)

        self._publish(
            transcription=join_transcript(self._state.transcription, text),
            accounting=accounting,
        )

    def _clear(self) -> None:
        self._sequence = 0
        self._outstanding = None
        self._state = BackendState(status=self._state.status)
        self._notify()

    def _set_status(self, status: ConnectionStatus, *, error: str | None = None) -> None:
        self._publish(status=status, error=error)

    def _publish(self, **changes) -> None:
        self._state = replace(self._state, **changes)
        self._notify()

    def _notify(self) -> None:
        if self._on_state:
            self._on_state(self._state)

    def _log(self, message: str) -> None:
        if self._logger:
            self._logger.log(f"[Stream:{self.name}] {message}")
