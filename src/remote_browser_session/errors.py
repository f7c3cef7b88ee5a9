"""Error taxonomy shared by the session registry and the action dispatcher."""

from __future__ import annotations

from typing import Optional


class SessionError(RuntimeError):
    """Base class for all session control errors."""


class ResourceAcquisitionError(SessionError):
    """Raised when a browser, context or page cannot be acquired."""


class SessionNotFoundError(SessionError):
    """Raised when an action references an unknown or closed session."""

    def __init__(self, session_id: str) -> None:
        super().__init__(f"Session not found: {session_id}")
        self.session_id = session_id


class InvalidInstructionError(SessionError, ValueError):
    """Raised when an instruction is missing or malformed for its method."""

    def __init__(
        self,
        message: str,
        *,
        method: Optional[str] = None,
        instruction: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.method = method
        self.instruction = instruction


class PrimitiveExecutionError(SessionError):
    """Raised when a browser primitive fails or times out."""
