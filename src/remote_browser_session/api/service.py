"""HTTP service exposing session management and actions."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, FastAPI, HTTPException
from pydantic import BaseModel

from ..errors import (
    InvalidInstructionError,
    PrimitiveExecutionError,
    ResourceAcquisitionError,
    SessionNotFoundError,
)
from ..models import DebugInfo, SessionInfo
from ..session.dispatcher import ActionDispatcher
from ..session.registry import SessionRegistry

LOGGER = logging.getLogger(__name__)


# Pydantic request/response models --------------------------------------------


class SessionCreatedModel(BaseModel):
    session_id: str


class ActionPayload(BaseModel):
    method: str
    instruction: Optional[str] = None


class ActionResultModel(BaseModel):
    result: Any = None


class HealthModel(BaseModel):
    status: str
    sessions: int


# Application factory ---------------------------------------------------------


class SessionApplication:
    def __init__(self, registry: SessionRegistry, dispatcher: ActionDispatcher) -> None:
        self._registry = registry
        self._dispatcher = dispatcher

    def create_app(self) -> FastAPI:
        registry = self._registry

        @asynccontextmanager
        async def lifespan(_: FastAPI) -> AsyncIterator[None]:
            yield
            registry.close_all()

        app = FastAPI(title="Remote Browser Session", lifespan=lifespan)
        app.include_router(self._build_router())
        return app

    def _build_router(self) -> APIRouter:
        router = APIRouter()
        registry = self._registry
        dispatcher = self._dispatcher

        @router.get("/health", response_model=HealthModel)
        def get_health() -> HealthModel:
            return HealthModel(status="ok", sessions=len(registry))

        @router.get("/sessions", response_model=List[SessionInfo])
        def list_sessions() -> List[SessionInfo]:
            return registry.list_sessions()

        @router.post("/sessions", response_model=SessionCreatedModel)
        def create_session() -> SessionCreatedModel:
            try:
                session_id = registry.create_session()
            except ResourceAcquisitionError as exc:
                raise HTTPException(status_code=503, detail=str(exc)) from exc
            return SessionCreatedModel(session_id=session_id)

        @router.delete("/sessions/{session_id}")
        def end_session(session_id: str) -> Dict[str, str]:
            registry.end_session(session_id)
            return {"status": "closed"}

        @router.get(
            "/sessions/{session_id}/debug",
            response_model=DebugInfo,
            response_model_exclude_none=True,
        )
        def get_debug_info(session_id: str) -> DebugInfo:
            return registry.get_debug_info(session_id)

        @router.post("/sessions/{session_id}/actions", response_model=ActionResultModel)
        def run_action(session_id: str, payload: ActionPayload) -> ActionResultModel:
            try:
                result = dispatcher.run_action(session_id, payload.method, payload.instruction)
            except SessionNotFoundError as exc:
                raise HTTPException(status_code=404, detail=str(exc)) from None
            except InvalidInstructionError as exc:
                raise HTTPException(
                    status_code=400,
                    detail=_error_detail(exc, registry, session_id),
                ) from None
            except PrimitiveExecutionError as exc:
                raise HTTPException(
                    status_code=502,
                    detail=_error_detail(exc, registry, session_id),
                ) from None
            return ActionResultModel(result=result)

        return router


def _error_detail(
    exc: Exception,
    registry: SessionRegistry,
    session_id: str,
) -> Dict[str, Any]:
    return {
        "error": str(exc),
        "session_closed": registry.get_session(session_id) is None,
    }


def create_app(registry: SessionRegistry, dispatcher: ActionDispatcher) -> FastAPI:
    return SessionApplication(registry, dispatcher).create_app()
