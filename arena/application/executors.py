from __future__ import annotations

from queue import Queue
from threading import Event, Lock, Thread
from typing import Any, Callable, Protocol

from arena.utils.logger import Logger


class Executor(Protocol):
    def submit(self, fn: Callable[..., Any], /, *args: Any) -> Any:
        ...


class SerialExecutor:
    """Runs submitted callables one at a time, in order, on a single daemon thread."""

    _SHUTDOWN = object()

    def __init__(self, name: str, *, logger: Logger | None = None) -> None:
        self.name = name
        self._logger = logger
        self._queue: Queue[Any] = Queue()
        self._shutdown_event = Event()
        self._worker_thread: Thread | None = None
        self._start_lock = Lock()

    def submit(self, fn: Callable[..., Any], /, *args: Any) -> None:
        if self._shutdown_event.is_set():
            return
        self._ensure_worker_started()
        self._queue.put((fn, args))

    def join(self) -> None:
        """Block until everything submitted so far has run."""
        if self._worker_thread is not None:
            self._queue.join()

    def shutdown(self, *, wait: bool = True) -> None:
        if self._shutdown_event.is_set():
            return
        self._shutdown_event.set()
        if self._worker_thread is None:
            return
        # Unblock the worker if it is waiting for work.
        self._queue.put(self._SHUTDOWN)
        if wait:
            self._worker_thread.join(timeout=1.0)

    def _ensure_worker_started(self) -> None:
        with self._start_lock:
            if self._worker_thread is not None:
                return

            self._worker_thread = Thread(
                target=self._worker_loop, name=self.name, daemon=True
            )
            self._worker_thread.start()

    def _worker_loop(self) -> None:
        while True:
            item = self._queue.get()
            try:
                if item is self._SHUTDOWN:
                    return
                fn, args = item
                try:
                    fn(*args)
                except Exception as e:  # Keep the context alive for the next task.
                    if self._logger:
                        self._logger.log(f"[{self.name}] Task failed: {e!r}")
            finally:
                self._queue.task_done()
