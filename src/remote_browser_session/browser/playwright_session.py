"""Playwright-powered browser session implementation."""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from playwright.sync_api import Error, sync_playwright

from ..config import BrowserConfig
from ..errors import PrimitiveExecutionError, ResourceAcquisitionError
from .base import BrowserSession

LOGGER = logging.getLogger(__name__)


class PlaywrightBrowserSession(BrowserSession):
    """Browser session backed by Playwright's sync API.

    Every method must be called from the thread that called :meth:`start`.
    """

    def __init__(self, config: Optional[BrowserConfig] = None) -> None:
        self._config = config or BrowserConfig()
        self._playwright = None
        self._browser = None
        self._context = None
        self._page = None

    def start(self) -> None:
        LOGGER.debug("Starting Playwright browser session")
        try:
            self._playwright = sync_playwright().start()
            self._browser = self._playwright.chromium.launch(
                headless=self._config.headless,
                args=list(self._config.launch_args),
            )
            self._context = self._browser.new_context(
                viewport={
                    "width": self._config.viewport_width,
                    "height": self._config.viewport_height,
                }
            )
            self._page = self._context.new_page()
        except Exception as exc:
            LOGGER.warning("Failed to acquire browser resources: %s", exc)
            try:
                self.close()
            except Exception:
                LOGGER.exception("Failed to release partially acquired browser resources")
            raise ResourceAcquisitionError(f"Could not start browser: {exc}") from exc

    def close(self) -> None:
        LOGGER.debug("Stopping Playwright browser session")
        errors: list[Exception] = []
        for name, release in (
            ("context", self._context.close if self._context else None),
            ("browser", self._browser.close if self._browser else None),
            ("playwright", self._playwright.stop if self._playwright else None),
        ):
            if release is None:
                continue
            try:
                release()
            except Exception as exc:
                LOGGER.warning("Failed to release %s: %s", name, exc)
                errors.append(exc)
        self._page = None
        self._context = None
        self._browser = None
        self._playwright = None
        if errors:
            raise errors[0]

    @property
    def page_count(self) -> int:
        if not self._context:
            return 0
        return len(self._context.pages)

    def goto(self, url: str, timeout_ms: Optional[int] = None) -> None:
        self._run(lambda page: page.goto(url, wait_until="load", timeout=timeout_ms))

    def click(self, selector: str, timeout_ms: Optional[int] = None) -> None:
        self._run(lambda page: page.click(selector, timeout=timeout_ms))

    def fill(self, selector: str, text: str, timeout_ms: Optional[int] = None) -> None:
        self._run(lambda page: page.fill(selector, text, timeout=timeout_ms))

    def text_content(self, selector: str) -> Optional[str]:
        def _extract(page: Any) -> Optional[str]:
            element = page.query_selector(selector)
            if element is None:
                return None
            return element.text_content()

        return self._run(_extract)

    def wait_for_selector(self, selector: str, timeout_ms: Optional[int] = None) -> None:
        self._run(lambda page: page.wait_for_selector(selector, timeout=timeout_ms))

    def wait_for_timeout(self, milliseconds: int) -> None:
        self._run(lambda page: page.wait_for_timeout(milliseconds))

    def go_back(self, timeout_ms: Optional[int] = None) -> None:
        self._run(lambda page: page.go_back(timeout=timeout_ms))

    def screenshot(self) -> bytes:
        return self._run(lambda page: page.screenshot(type=self._config.screenshot_type))

    def _run(self, operation: Callable[[Any], Any]) -> Any:
        if not self._page:
            raise PrimitiveExecutionError("Browser session is not started")
        try:
            return operation(self._page)
        except Error as exc:
            raise PrimitiveExecutionError(str(exc)) from exc
