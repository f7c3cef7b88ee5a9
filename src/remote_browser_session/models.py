"""Shared models used across the remote browser session service."""

from __future__ import annotations

import enum
from datetime import datetime, timezone
from typing import Literal, Optional, Union

from pydantic import BaseModel, Field


class ActionMethod(str, enum.Enum):
    """Closed set of actions a caller can run against a session."""

    NAVIGATE = "GOTO"
    ACT = "ACT"
    EXTRACT = "EXTRACT"
    OBSERVE = "OBSERVE"
    SCREENSHOT = "SCREENSHOT"
    WAIT = "WAIT"
    NAVIGATE_BACK = "NAVBACK"
    CLOSE = "CLOSE"

    @classmethod
    def _missing_(cls, value: object) -> Optional["ActionMethod"]:
        # Accept wire keywords and member names in any case.
        if not isinstance(value, str):
            return None
        normalized = value.strip().upper().replace("-", "_")
        for member in cls:
            if normalized in {member.value, member.name}:
                return member
        return None

    @property
    def requires_instruction(self) -> bool:
        return self in _METHODS_WITH_INSTRUCTION


_METHODS_WITH_INSTRUCTION = frozenset(
    {
        ActionMethod.NAVIGATE,
        ActionMethod.ACT,
        ActionMethod.EXTRACT,
        ActionMethod.OBSERVE,
        ActionMethod.WAIT,
    }
)


class NavigateInstruction(BaseModel):
    kind: Literal["navigate"] = "navigate"
    url: str


class ClickInstruction(BaseModel):
    kind: Literal["click"] = "click"
    selector: str


class TypeInstruction(BaseModel):
    kind: Literal["type"] = "type"
    selector: str
    text: str = ""


class ExtractInstruction(BaseModel):
    kind: Literal["extract"] = "extract"
    selector: str


class ObserveInstruction(BaseModel):
    kind: Literal["observe"] = "observe"
    selector: str


class WaitInstruction(BaseModel):
    kind: Literal["wait"] = "wait"
    milliseconds: int = Field(ge=0)


Instruction = Union[
    NavigateInstruction,
    ClickInstruction,
    TypeInstruction,
    ExtractInstruction,
    ObserveInstruction,
    WaitInstruction,
]


class ActionRequest(BaseModel):
    """A single action addressed to a session."""

    session_id: str
    method: ActionMethod
    instruction: Optional[str] = None


class ObservedResult(BaseModel):
    """Result of an OBSERVE action."""

    observed: str


class DebugInfo(BaseModel):
    """Introspection data for a session; empty when the session is absent."""

    screenshot: Optional[str] = Field(default=None, description="Base64 encoded page capture.")


class SessionInfo(BaseModel):
    """Public summary of a live session."""

    id: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    actions_run: int = 0
