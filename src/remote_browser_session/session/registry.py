"""Process-scoped registry owning every live browser session."""

from __future__ import annotations

import base64
import logging
import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, ContextManager, Dict, List, Optional, TypeVar

from ..browser.base import BrowserSession
from ..config import LimitsConfig
from ..errors import ResourceAcquisitionError
from ..models import DebugInfo, SessionInfo
from .worker import PrimitiveResult, SessionWorker

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

BrowserFactory = Callable[[], BrowserSession]


@dataclass
class Session:
    """A live session: one browser, one context, one page, one worker."""

    id: str
    browser: BrowserSession
    worker: SessionWorker
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    actions_run: int = 0

    def execute(self, fn: Callable[..., T], *args: Any) -> PrimitiveResult[T]:
        """Run ``fn`` against this session's browser, serialized with other calls."""

        def _counted() -> T:
            self.actions_run += 1
            return fn(*args)

        return self.worker.call(_counted)

    def info(self) -> SessionInfo:
        return SessionInfo(id=self.id, created_at=self.created_at, actions_run=self.actions_run)


class SessionRegistry:
    """Create, look up and tear down sessions by id."""

    def __init__(
        self,
        browser_factory: BrowserFactory,
        *,
        limits: Optional[LimitsConfig] = None,
        lock: Optional[ContextManager[Any]] = None,
    ) -> None:
        self._browser_factory = browser_factory
        self._limits = limits or LimitsConfig()
        self._lock = lock if lock is not None else threading.RLock()
        self._sessions: Dict[str, Session] = {}

    def __enter__(self) -> "SessionRegistry":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close_all()

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def create_session(self) -> str:
        """Start a browser and register it under a fresh id."""

        self._check_capacity()
        session_id = uuid.uuid4().hex
        worker = SessionWorker(session_id)
        worker.start()
        try:
            browser = self._browser_factory()
        except Exception as exc:
            worker.stop()
            raise ResourceAcquisitionError(f"Could not build browser: {exc}") from exc
        outcome = worker.call(browser.start)
        if not outcome.ok:
            worker.stop()
            error = outcome.error
            LOGGER.warning("Failed to create session %s: %s", session_id, error)
            if isinstance(error, ResourceAcquisitionError):
                raise error
            raise ResourceAcquisitionError(f"Could not start browser: {error}") from error

        session = Session(id=session_id, browser=browser, worker=worker)
        # Another caller may have filled the last slot while the browser started.
        with self._lock:
            registered = not self._at_capacity()
            if registered:
                self._sessions[session_id] = session
        if not registered:
            self._release(session)
            raise ResourceAcquisitionError(
                f"Session limit of {self._limits.max_sessions} reached"
            )
        LOGGER.info("Created session %s", session_id)
        return session_id

    def get_session(self, session_id: str) -> Optional[Session]:
        with self._lock:
            return self._sessions.get(session_id)

    def list_sessions(self) -> List[SessionInfo]:
        with self._lock:
            sessions = list(self._sessions.values())
        return [session.info() for session in sessions]

    def end_session(self, session_id: str) -> None:
        """Tear a session down; unknown ids are ignored."""

        with self._lock:
            session = self._sessions.pop(session_id, None)
        if session is None:
            LOGGER.debug("Session %s already ended", session_id)
            return
        self._release(session)
        LOGGER.info("Ended session %s", session_id)

    def get_debug_info(self, session_id: str) -> DebugInfo:
        """Capture the current page of a session; empty if it cannot."""

        session = self.get_session(session_id)
        if session is None:
            return DebugInfo()
        try:
            outcome = session.worker.call(session.browser.screenshot)
        except Exception as exc:
            LOGGER.debug("Debug capture skipped for session %s: %s", session_id, exc)
            return DebugInfo()
        if not outcome.ok or outcome.value is None:
            LOGGER.warning("Debug capture failed for session %s: %s", session_id, outcome.error)
            return DebugInfo()
        return DebugInfo(screenshot=base64.b64encode(outcome.value).decode("ascii"))

    def close_all(self) -> None:
        """End every live session."""

        with self._lock:
            session_ids = list(self._sessions)
        if session_ids:
            LOGGER.info("Closing %d live session(s)", len(session_ids))
        for session_id in session_ids:
            self.end_session(session_id)

    # Internal helpers --------------------------------------------------------

    def _check_capacity(self) -> None:
        with self._lock:
            full = self._at_capacity()
        if full:
            raise ResourceAcquisitionError(
                f"Session limit of {self._limits.max_sessions} reached"
            )

    def _at_capacity(self) -> bool:
        limit = self._limits.max_sessions
        return limit is not None and len(self._sessions) >= limit

    def _release(self, session: Session) -> None:
        try:
            outcome = session.worker.call(session.browser.close)
        except Exception as exc:
            LOGGER.warning("Could not schedule release for session %s: %s", session.id, exc)
        else:
            if not outcome.ok:
                LOGGER.warning(
                    "Error while releasing session %s: %s", session.id, outcome.error
                )
        finally:
            session.worker.stop()
