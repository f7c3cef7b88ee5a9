"""Single-consumer worker that serializes every browser call of a session."""

from __future__ import annotations

import logging
import queue
import threading
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Any, Callable, Generic, Optional, TypeVar

from ..errors import SessionNotFoundError

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

_STOP = object()


@dataclass
class PrimitiveResult(Generic[T]):
    """Outcome of a primitive call: either a value or the error it raised."""

    value: Optional[T] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> Optional[T]:
        if self.error is not None:
            raise self.error
        return self.value


class SessionWorker:
    """Run submitted calls one at a time on a dedicated thread.

    Playwright's sync API binds its objects to the thread that created them,
    so browser start, every primitive and close all go through here.
    """

    def __init__(self, session_id: str) -> None:
        self._session_id = session_id
        self._queue: "queue.Queue[Any]" = queue.Queue()
        self._lock = threading.Lock()
        self._stopped = False
        self._thread = threading.Thread(
            target=self._loop,
            name=f"session-{session_id[:8]}",
            daemon=True,
        )

    def start(self) -> None:
        self._thread.start()

    @property
    def stopped(self) -> bool:
        with self._lock:
            return self._stopped

    def call(self, fn: Callable[..., T], *args: Any) -> PrimitiveResult[T]:
        """Run ``fn(*args)`` on the worker thread and wait for its outcome."""

        if threading.current_thread() is self._thread:
            return _invoke(fn, args)
        future: Future = Future()
        with self._lock:
            if self._stopped or not self._thread.is_alive():
                raise SessionNotFoundError(self._session_id)
            self._queue.put((fn, args, future))
        return future.result()

    def stop(self, timeout: Optional[float] = None) -> None:
        """Finish queued calls, then end the thread."""

        with self._lock:
            if self._stopped:
                return
            self._stopped = True
            self._queue.put(_STOP)
        if self._thread.is_alive() and threading.current_thread() is not self._thread:
            self._thread.join(timeout=timeout)

    def _loop(self) -> None:
        while True:
            item = self._queue.get()
            if item is _STOP:
                break
            fn, args, future = item
            try:
                outcome = _invoke(fn, args)
            except BaseException as exc:
                self._abandon(future, exc)
                raise
            future.set_result(outcome)
        LOGGER.debug("Worker for session %s exited", self._session_id)

    def _abandon(self, current: Future, exc: BaseException) -> None:
        LOGGER.error("Worker for session %s stopped by %r", self._session_id, exc)
        with self._lock:
            self._stopped = True
            pending = []
            while True:
                try:
                    pending.append(self._queue.get_nowait())
                except queue.Empty:
                    break
        current.set_result(PrimitiveResult(error=exc))
        for item in pending:
            if item is not _STOP:
                item[2].set_result(PrimitiveResult(error=SessionNotFoundError(self._session_id)))


def _invoke(fn: Callable[..., T], args: tuple[Any, ...]) -> PrimitiveResult[T]:
    try:
        return PrimitiveResult(value=fn(*args))
    except Exception as exc:
        return PrimitiveResult(error=exc)
