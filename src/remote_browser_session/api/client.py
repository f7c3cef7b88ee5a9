"""HTTP client for talking to a remote browser session service."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

import httpx

from ..errors import (
    InvalidInstructionError,
    PrimitiveExecutionError,
    ResourceAcquisitionError,
    SessionNotFoundError,
)
from ..models import ActionMethod, DebugInfo, SessionInfo


class SessionClient:
    """Wrapper around the session service HTTP API."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 90.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    async def get_health(self) -> Dict[str, Any]:
        async with self._client() as client:
            response = await client.get("/health")
            response.raise_for_status()
            return dict(response.json())

    async def list_sessions(self) -> List[SessionInfo]:
        async with self._client() as client:
            response = await client.get("/sessions")
            response.raise_for_status()
            data = response.json()
        return [SessionInfo.model_validate(item) for item in data]

    async def create_session(self) -> str:
        async with self._client() as client:
            response = await client.post("/sessions")
            if response.status_code == 503:
                raise ResourceAcquisitionError(_detail(response))
            response.raise_for_status()
            return str(response.json()["session_id"])

    async def end_session(self, session_id: str) -> None:
        async with self._client() as client:
            response = await client.delete(f"/sessions/{session_id}")
            response.raise_for_status()

    async def get_debug_info(self, session_id: str) -> DebugInfo:
        async with self._client() as client:
            response = await client.get(f"/sessions/{session_id}/debug")
            response.raise_for_status()
            return DebugInfo.model_validate(response.json())

    async def run_action(
        self,
        session_id: str,
        method: Union[ActionMethod, str],
        instruction: Optional[str] = None,
    ) -> Any:
        method_value = method.value if isinstance(method, ActionMethod) else method
        payload = {"method": method_value, "instruction": instruction}
        async with self._client() as client:
            response = await client.post(f"/sessions/{session_id}/actions", json=payload)
        if response.status_code == 404:
            raise SessionNotFoundError(session_id)
        if response.status_code == 400:
            raise InvalidInstructionError(
                _detail(response),
                method=method_value,
                instruction=instruction,
            )
        if response.status_code == 502:
            raise PrimitiveExecutionError(_detail(response))
        response.raise_for_status()
        return response.json().get("result")

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout,
            transport=self._transport,
        )


def _detail(response: httpx.Response) -> str:
    try:
        detail = response.json().get("detail")
    except ValueError:
        return response.text
    if isinstance(detail, dict):
        return str(detail.get("error", detail))
    return str(detail)
