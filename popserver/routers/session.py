"""Session lifecycle and stimulus endpoints."""

import logging
from typing import Any, Dict

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from popserver.models import (
    ActivateAtRequest,
    ActivateRequest,
    MoveRequest,
    SessionStateData,
    StartRequest,
)
from popserver.session_runner import SessionRunner

logger = logging.getLogger(__name__)


def _respond(response: Dict[str, Any]) -> JSONResponse:
    return JSONResponse(response, status_code=200 if response.get("success") else 409)


def setup_router(runner: SessionRunner) -> APIRouter:
    """Create the session router.

    Endpoints:
        GET  /api/session
        GET  /api/session/status
        POST /api/session/start
        POST /api/session/pause
        POST /api/session/resume
        POST /api/session/toggle_pause
        POST /api/session/reset
        POST /api/session/activate
        POST /api/session/activate_at
        POST /api/session/move
    """
    router = APIRouter(prefix="/api/session", tags=["session"])

    @router.get("", response_model=SessionStateData)
    async def get_session():
        """Current snapshot."""
        snapshot = await runner.get_snapshot_async()
        return snapshot.to_dict()

    @router.get("/status")
    async def get_status():
        return JSONResponse(runner.get_status())

    @router.post("/start")
    async def start_session(request: StartRequest):
        response = await runner.handle_command_async("start", request.model_dump())
        if not response["success"] and "state" not in response:
            return JSONResponse(response, status_code=400)
        return _respond(response)

    @router.post("/pause")
    async def pause_session():
        return _respond(await runner.handle_command_async("pause"))

    @router.post("/resume")
    async def resume_session():
        return _respond(await runner.handle_command_async("resume"))

    @router.post("/toggle_pause")
    async def toggle_pause():
        return _respond(await runner.handle_command_async("toggle_pause"))

    @router.post("/reset")
    async def reset_session():
        return _respond(await runner.handle_command_async("reset"))

    @router.post("/activate")
    async def activate(request: ActivateRequest):
        return _respond(await runner.handle_command_async("activate", request.model_dump()))

    @router.post("/activate_at")
    async def activate_at(request: ActivateAtRequest):
        return _respond(await runner.handle_command_async("activate_at", request.model_dump()))

    @router.post("/move")
    async def move(request: MoveRequest):
        return _respond(await runner.handle_command_async("move", request.model_dump()))

    return router
