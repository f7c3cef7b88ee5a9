"""Translate action requests into browser primitives with fail-closed teardown."""

from __future__ import annotations

import base64
import logging
from typing import Any, Callable, Optional, Union

from ..browser.base import BrowserSession
from ..config import LimitsConfig, TimeoutConfig
from ..errors import InvalidInstructionError, SessionNotFoundError
from ..instructions import coerce_method, parse_instruction
from ..models import (
    ActionMethod,
    ActionRequest,
    ClickInstruction,
    ExtractInstruction,
    Instruction,
    NavigateInstruction,
    ObservedResult,
    ObserveInstruction,
    TypeInstruction,
    WaitInstruction,
)
from .registry import SessionRegistry

LOGGER = logging.getLogger(__name__)


class ActionDispatcher:
    """Run one action at a time against a session's single page."""

    def __init__(
        self,
        registry: SessionRegistry,
        *,
        timeouts: Optional[TimeoutConfig] = None,
        limits: Optional[LimitsConfig] = None,
    ) -> None:
        self._registry = registry
        self._timeouts = timeouts or TimeoutConfig()
        self._limits = limits or LimitsConfig()

    def run(self, request: ActionRequest) -> Any:
        return self.run_action(request.session_id, request.method, request.instruction)

    def run_action(
        self,
        session_id: str,
        method: Union[ActionMethod, str],
        instruction: Optional[str] = None,
    ) -> Any:
        """Execute ``method`` on the session and return its method-specific result.

        Any primitive failure ends the session before the original error is
        re-raised; callers must create a new session rather than retry. An
        invalid instruction ends it too unless
        ``limits.teardown_on_invalid_instruction`` is off.
        """

        session = self._registry.get_session(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)

        try:
            method = coerce_method(method)
            payload = parse_instruction(
                method,
                instruction,
                max_wait_ms=self._limits.max_wait_ms,
            )
        except InvalidInstructionError as exc:
            if self._limits.teardown_on_invalid_instruction:
                LOGGER.info("Ending session %s after invalid instruction: %s", session_id, exc)
                self._registry.end_session(session_id)
            raise

        LOGGER.info("Session %s: %s %s", session_id, method.value, instruction or "")
        if method is ActionMethod.CLOSE:
            self._registry.end_session(session_id)
            return None

        operation = self._build_operation(method, payload)
        outcome = session.execute(operation, session.browser)
        if not outcome.ok:
            LOGGER.warning(
                "Session %s: %s failed, ending session: %s",
                session_id,
                method.value,
                outcome.error,
            )
            self._registry.end_session(session_id)
            raise outcome.error  # type: ignore[misc]
        return outcome.value

    def _build_operation(
        self,
        method: ActionMethod,
        payload: Optional[Instruction],
    ) -> Callable[[BrowserSession], Any]:
        timeouts = self._timeouts
        if isinstance(payload, NavigateInstruction):
            return lambda browser: browser.goto(payload.url, timeouts.navigate_ms)
        if isinstance(payload, ClickInstruction):
            return lambda browser: browser.click(payload.selector, timeouts.action_ms)
        if isinstance(payload, TypeInstruction):
            return lambda browser: browser.fill(payload.selector, payload.text, timeouts.action_ms)
        if isinstance(payload, ExtractInstruction):
            return lambda browser: browser.text_content(payload.selector)
        if isinstance(payload, ObserveInstruction):
            return lambda browser: _observe(browser, payload.selector, timeouts.observe_ms)
        if isinstance(payload, WaitInstruction):
            return lambda browser: browser.wait_for_timeout(payload.milliseconds)
        if method is ActionMethod.SCREENSHOT:
            return _screenshot
        if method is ActionMethod.NAVIGATE_BACK:
            return lambda browser: browser.go_back(timeouts.navigate_ms)
        raise InvalidInstructionError(f"No primitive for {method.value}", method=method.value)


def _observe(browser: BrowserSession, selector: str, timeout_ms: int) -> dict[str, str]:
    browser.wait_for_selector(selector, timeout_ms)
    return ObservedResult(observed=selector).model_dump()


def _screenshot(browser: BrowserSession) -> str:
    return base64.b64encode(browser.screenshot()).decode("ascii")

