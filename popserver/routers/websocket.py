"""``/ws``: pushes binary snapshots out, takes JSON commands in.

Snapshots go out as orjson bytes frames from the broadcast task. Command
replies go back on the same socket as text frames, so a client can tell
the two apart by frame type alone.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Union

import orjson
from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from popserver.models import Command
from popserver.session_runner import SessionRunner

logger = logging.getLogger(__name__)

_BAD_SHAPE = 'Expected {"command": str, "data": object}.'


def _client_label(websocket: WebSocket) -> str:
    forwarded_for = websocket.headers.get("x-forwarded-for")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    return websocket.client.host if websocket.client else "unknown"


def _parse_command(message: Dict[str, Any]) -> Union[Command, str, None]:
    """Turn one receive event into a ``Command``, an error string, or None to ignore."""
    raw: Optional[Union[str, bytes]] = message.get("text")
    if raw is None:
        raw = message.get("bytes")
    if not raw:
        return None
    try:
        payload = orjson.loads(raw)
    except orjson.JSONDecodeError:
        return "Invalid JSON payload."
    try:
        return Command.model_validate(payload)
    except ValidationError:
        return _BAD_SHAPE


async def _reply(websocket: WebSocket, body: Dict[str, Any]) -> None:
    await websocket.send_text(orjson.dumps(body).decode())


async def _serve_client(websocket: WebSocket, runner: SessionRunner) -> None:
    label = _client_label(websocket)
    registered = False
    try:
        await websocket.accept()
        runner.add_client(websocket)
        registered = True

        try:
            snapshot = await runner.get_snapshot_async()
            await websocket.send_bytes(runner.serialize_state(snapshot))
        except Exception as exc:
            logger.warning("Initial snapshot to %s failed: %s", label, exc)

        while True:
            try:
                message = await websocket.receive()
            except WebSocketDisconnect:
                break
            if message["type"] == "websocket.disconnect":
                break
            if message["type"] != "websocket.receive":
                continue

            parsed = _parse_command(message)
            if parsed is None:
                continue
            if isinstance(parsed, str):
                await _reply(websocket, {"success": False, "error": parsed})
                continue
            await _reply(websocket, await runner.handle_command_async(parsed.command, parsed.data))
    except Exception:
        logger.exception("WebSocket session for %s failed", label)
    finally:
        if registered:
            runner.remove_client(websocket)


def setup_router(runner: SessionRunner) -> APIRouter:
    router = APIRouter()

    @router.websocket("/ws")
    async def websocket_session(websocket: WebSocket) -> None:
        await _serve_client(websocket, runner)

    return router
