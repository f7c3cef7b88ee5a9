"""Parse instruction strings into typed payloads before dispatch."""

from __future__ import annotations

from typing import Optional, Union
from urllib.parse import urlsplit

from .errors import InvalidInstructionError
from .models import (
    ActionMethod,
    ClickInstruction,
    ExtractInstruction,
    Instruction,
    NavigateInstruction,
    ObserveInstruction,
    TypeInstruction,
    WaitInstruction,
)

DEFAULT_MAX_WAIT_MS = 60_000
_HOSTLESS_SCHEMES = frozenset({"about", "data", "file"})
# Selectors are taken verbatim, so EXTRACT and OBSERVE never drop a leading token.
_KEYWORD_PREFIXED = frozenset({ActionMethod.NAVIGATE, ActionMethod.ACT, ActionMethod.WAIT})


def coerce_method(method: Union[ActionMethod, str]) -> ActionMethod:
    """Return ``method`` as an :class:`ActionMethod` or raise."""

    if isinstance(method, ActionMethod):
        return method
    try:
        return ActionMethod(method)
    except ValueError:
        raise InvalidInstructionError(
            f"Unknown action method: {method!r}",
            method=str(method),
        ) from None


def parse_command(line: str) -> tuple[ActionMethod, Optional[str]]:
    """Split a full command line such as ``"EXTRACT h1"`` into its parts."""

    stripped = line.strip()
    if not stripped:
        raise InvalidInstructionError("Empty command")
    keyword, _, rest = stripped.partition(" ")
    method = coerce_method(keyword)
    rest = rest.strip()
    return method, rest or None


def parse_instruction(
    method: Union[ActionMethod, str],
    instruction: Optional[str],
    *,
    max_wait_ms: int = DEFAULT_MAX_WAIT_MS,
) -> Optional[Instruction]:
    """Validate ``instruction`` for ``method`` and return its typed payload.

    Methods without a payload (SCREENSHOT, NAVBACK, CLOSE) ignore the
    instruction and return ``None``. GOTO, ACT and WAIT instructions may repeat
    the method keyword as their first token. Text typed by ``ACT type`` keeps
    its trailing whitespace.
    """

    method = coerce_method(method)
    if not method.requires_instruction:
        return None
    text = (instruction or "").lstrip()
    if method in _KEYWORD_PREFIXED:
        text = _strip_keyword(method, text)
    if not text.strip():
        raise InvalidInstructionError(
            f"{method.value} requires an instruction",
            method=method.value,
            instruction=instruction,
        )
    if method is ActionMethod.ACT:
        return _parse_act(text, instruction)
    text = text.strip()
    if method is ActionMethod.NAVIGATE:
        return _parse_url(text, instruction)
    if method is ActionMethod.EXTRACT:
        return ExtractInstruction(selector=text)
    if method is ActionMethod.OBSERVE:
        return ObserveInstruction(selector=text)
    return _parse_wait(text, instruction, max_wait_ms)


def _strip_keyword(method: ActionMethod, text: str) -> str:
    keyword, separator, rest = text.partition(" ")
    if separator and keyword.upper() == method.value and rest.strip():
        return rest.lstrip()
    return text


def _parse_url(text: str, raw: Optional[str]) -> NavigateInstruction:
    parts = urlsplit(text)
    if not parts.scheme or (not parts.netloc and parts.scheme.lower() not in _HOSTLESS_SCHEMES):
        raise InvalidInstructionError(
            f"GOTO requires an absolute URL, got {text!r}",
            method=ActionMethod.NAVIGATE.value,
            instruction=raw,
        )
    return NavigateInstruction(url=text)


def _parse_act(text: str, raw: Optional[str]) -> Union[ClickInstruction, TypeInstruction]:
    verb, _, remainder = text.partition(" ")
    verb = verb.lower()
    if verb == "click":
        selector = remainder.strip()
        if selector:
            return ClickInstruction(selector=selector)
    elif verb == "type":
        parts = remainder.lstrip().split(" ", 1)
        selector = parts[0]
        if selector:
            return TypeInstruction(selector=selector, text=parts[1] if len(parts) > 1 else "")
    raise InvalidInstructionError(
        "ACT expects 'click <selector>' or 'type <selector> <text>'",
        method=ActionMethod.ACT.value,
        instruction=raw,
    )


def _parse_wait(text: str, raw: Optional[str], max_wait_ms: int) -> WaitInstruction:
    if not (text.isascii() and text.isdigit()):
        raise InvalidInstructionError(
            f"WAIT expects a non-negative integer of milliseconds, got {text!r}",
            method=ActionMethod.WAIT.value,
            instruction=raw,
        )
    milliseconds = int(text)
    if milliseconds > max_wait_ms:
        raise InvalidInstructionError(
            f"WAIT of {milliseconds}ms exceeds the {max_wait_ms}ms limit",
            method=ActionMethod.WAIT.value,
            instruction=raw,
        )
    return WaitInstruction(milliseconds=milliseconds)
