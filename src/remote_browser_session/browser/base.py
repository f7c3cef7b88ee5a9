"""Browser primitive abstractions."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional


class BrowserSession(ABC):
    """One browser, one isolated context and one active page.

    Implementations are not thread-safe; callers serialize access.
    """

    @abstractmethod
    def start(self) -> None:
        """Acquire browser, context and page, or raise ``ResourceAcquisitionError``."""

    @abstractmethod
    def close(self) -> None:
        """Release the context, then the browser."""

    @property
    @abstractmethod
    def page_count(self) -> int:
        """Number of open pages in the session context."""

    @abstractmethod
    def goto(self, url: str, timeout_ms: Optional[int] = None) -> None:
        """Navigate and block until the page fires ``load``."""

    @abstractmethod
    def click(self, selector: str, timeout_ms: Optional[int] = None) -> None:
        """Click the first element matching ``selector``."""

    @abstractmethod
    def fill(self, selector: str, text: str, timeout_ms: Optional[int] = None) -> None:
        """Replace the value of the input matching ``selector``."""

    @abstractmethod
    def text_content(self, selector: str) -> Optional[str]:
        """Return the text of the first match, or ``None`` when nothing matches."""

    @abstractmethod
    def wait_for_selector(self, selector: str, timeout_ms: Optional[int] = None) -> None:
        """Block until ``selector`` resolves."""

    @abstractmethod
    def wait_for_timeout(self, milliseconds: int) -> None:
        """Suspend for ``milliseconds``."""

    @abstractmethod
    def go_back(self, timeout_ms: Optional[int] = None) -> None:
        """Traverse one entry back in the page history."""

    @abstractmethod
    def screenshot(self) -> bytes:
        """Capture the current page rendering."""
