from __future__ import annotations

import threading
import time
from typing import Callable, Optional

import pytest

from remote_browser_session.browser.base import BrowserSession
from remote_browser_session.config import LimitsConfig
from remote_browser_session.errors import PrimitiveExecutionError, ResourceAcquisitionError
from remote_browser_session.session.dispatcher import ActionDispatcher
from remote_browser_session.session.registry import SessionRegistry


class StubBrowser(BrowserSession):
    """In-memory browser that records every primitive call."""

    def __init__(
        self,
        *,
        elements: Optional[dict[str, str]] = None,
        fail_start: bool = False,
        fail_close: bool = False,
        fail_screenshot: bool = False,
        wait_gate: Optional[threading.Event] = None,
    ) -> None:
        self.elements = {"h1": "Example Domain"} if elements is None else elements
        self.fail_start = fail_start
        self.fail_close = fail_close
        self.fail_screenshot = fail_screenshot
        self.wait_gate = wait_gate
        self.calls: list[tuple] = []
        self.threads: set[int] = set()
        self.started = False
        self.closed = False
        self._active = 0
        self.max_active = 0
        self._counter_lock = threading.Lock()

    def _record(self, *call: object) -> None:
        self.calls.append(call)
        self.threads.add(threading.get_ident())

    def start(self) -> None:
        self._record("start")
        if self.fail_start:
            raise ResourceAcquisitionError("chromium executable not found")
        self.started = True

    def close(self) -> None:
        self._record("close")
        self.closed = True
        if self.fail_close:
            raise RuntimeError("browser already crashed")

    @property
    def page_count(self) -> int:
        return 1 if self.started and not self.closed else 0

    def goto(self, url: str, timeout_ms: Optional[int] = None) -> None:
        self._record("goto", url, timeout_ms)
        with self._counter_lock:
            self._active += 1
            self.max_active = max(self.max_active, self._active)
        try:
            time.sleep(0.01)
            if "unreachable" in url:
                raise PrimitiveExecutionError(f"net::ERR_NAME_NOT_RESOLVED at {url}")
        finally:
            with self._counter_lock:
                self._active -= 1

    def click(self, selector: str, timeout_ms: Optional[int] = None) -> None:
        self._record("click", selector, timeout_ms)
        self._require(selector, timeout_ms)

    def fill(self, selector: str, text: str, timeout_ms: Optional[int] = None) -> None:
        self._record("fill", selector, text, timeout_ms)
        self._require(selector, timeout_ms)

    def text_content(self, selector: str) -> Optional[str]:
        self._record("text_content", selector)
        return self.elements.get(selector)

    def wait_for_selector(self, selector: str, timeout_ms: Optional[int] = None) -> None:
        self._record("wait_for_selector", selector, timeout_ms)
        self._require(selector, timeout_ms)

    def wait_for_timeout(self, milliseconds: int) -> None:
        self._record("wait_for_timeout", milliseconds)
        if self.wait_gate is not None:
            self.wait_gate.wait(timeout=5)
        else:
            time.sleep(milliseconds / 1000)

    def go_back(self, timeout_ms: Optional[int] = None) -> None:
        self._record("go_back", timeout_ms)

    def screenshot(self) -> bytes:
        self._record("screenshot")
        if self.fail_screenshot:
            raise PrimitiveExecutionError("Target page, context or browser has been closed")
        return b"\x89PNG-stub"

    def _require(self, selector: str, timeout_ms: Optional[int]) -> None:
        if selector not in self.elements:
            raise PrimitiveExecutionError(f"Timeout {timeout_ms}ms exceeded waiting for {selector}")


@pytest.fixture
def browsers() -> list[StubBrowser]:
    return []


@pytest.fixture
def make_registry(browsers: list[StubBrowser]) -> Callable[..., SessionRegistry]:
    created: list[SessionRegistry] = []

    def _make(limits: Optional[LimitsConfig] = None, **stub_kwargs: object) -> SessionRegistry:
        def factory() -> StubBrowser:
            browser = StubBrowser(**stub_kwargs)  # type: ignore[arg-type]
            browsers.append(browser)
            return browser

        registry = SessionRegistry(factory, limits=limits)
        created.append(registry)
        return registry

    yield _make
    for registry in created:
        registry.close_all()


@pytest.fixture
def registry(make_registry: Callable[..., SessionRegistry]) -> SessionRegistry:
    return make_registry()


@pytest.fixture
def dispatcher(registry: SessionRegistry) -> ActionDispatcher:
    return ActionDispatcher(registry)
