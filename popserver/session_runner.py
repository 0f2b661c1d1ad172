"""Background session runner thread."""

import asyncio
import logging
import threading
import time
from typing import Any, Dict, Optional, Set

import orjson
from pydantic import ValidationError

from popcore.commands import ActivateAtCommand, ActivateCommand, Direction, MoveCommand
from popcore.config.display import FRAME_RATE
from popcore.entity_ids import EntityId
from popcore.exceptions import ConfigurationError
from popcore.modes import GameMode
from popcore.session import SessionSnapshot
from popcore.session_controller import SessionController
from popserver.models import ActivateAtRequest, ActivateRequest, MoveRequest, StartRequest

logger = logging.getLogger(__name__)


class SessionRunner:
    """Advances a session controller from a background thread.

    Every call into the controller (frame advance, commands, snapshots)
    happens under ``self.lock``, so frames never interleave with commands.
    Stimuli that act on entities are queued on the controller and applied
    at the start of the next frame.
    """

    # Frames lagging more than this reset the drift target
    MAX_LAG_SECONDS = 0.1

    def __init__(self, controller: SessionController, fps: int = FRAME_RATE) -> None:
        self.controller = controller
        self.lock = threading.Lock()
        self.running = False
        self.thread: Optional[threading.Thread] = None
        self.fps = fps
        self.frame_time = 1.0 / fps
        self.frame = 0
        self.connected_clients: Set[Any] = set()
        self._carry_ms = 0.0

    # ------------------------------------------------------------------
    # Thread lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start the frame loop in a background thread."""
        if not self.running:
            self.running = True
            self.thread = threading.Thread(target=self._run_loop, name="session-runner", daemon=True)
            self.thread.start()

    def stop(self) -> None:
        self.running = False
        if self.thread:
            self.thread.join(timeout=2.0)
            self.thread = None

    def _run_loop(self) -> None:
        """Main frame loop with drift correction."""
        logger.info("Session loop: Starting at %d FPS", self.fps)
        next_frame_start_time = time.time()
        last_frame_time = time.perf_counter()

        try:
            while self.running:
                try:
                    next_frame_start_time += self.frame_time

                    now_perf = time.perf_counter()
                    elapsed_ms = self._elapsed_ms(now_perf - last_frame_time)
                    last_frame_time = now_perf
                    self.step(elapsed_ms)

                    now = time.time()
                    sleep_time = next_frame_start_time - now
                    if sleep_time > 0:
                        time.sleep(sleep_time)
                    elif sleep_time < -self.MAX_LAG_SECONDS:
                        # Too far behind; resync instead of bursting zero-delay frames
                        next_frame_start_time = now
                    else:
                        time.sleep(0)

                except Exception as e:
                    logger.error(f"Session loop: Unexpected error at frame {self.frame}: {e}", exc_info=True)
                    time.sleep(self.frame_time)
                    next_frame_start_time = time.time()
                    last_frame_time = time.perf_counter()

        except Exception as e:
            logger.error(f"Session loop: Fatal error, loop exiting: {e}", exc_info=True)
        finally:
            logger.info(f"Session loop: Ended after {self.frame} frames")

    def _elapsed_ms(self, seconds: float) -> int:
        # Keep sub-millisecond remainders so the clock does not drift slow
        total = seconds * 1000 + self._carry_ms
        whole = int(total)
        self._carry_ms = total - whole
        return whole

    # ------------------------------------------------------------------
    # Frame and state access
    # ------------------------------------------------------------------

    def step(self, elapsed_ms: int) -> SessionSnapshot:
        """Advance the controller by one frame."""
        with self.lock:
            self.frame += 1
            return self.controller.advance(elapsed_ms)

    def get_snapshot(self) -> SessionSnapshot:
        with self.lock:
            return self.controller.snapshot()

    async def get_snapshot_async(self) -> SessionSnapshot:
        """Fetch a snapshot without blocking the event loop."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self.get_snapshot)

    def serialize_state(self, snapshot: SessionSnapshot) -> bytes:
        """Serialize a snapshot for WebSocket clients."""
        payload = {"type": "update", "frame": self.frame, **snapshot.to_dict()}
        return orjson.dumps(payload)

    def get_status(self) -> Dict[str, Any]:
        with self.lock:
            return {
                "running": self.running,
                "frame": self.frame,
                "fps": self.fps,
                "clients": len(self.connected_clients),
                "controller": self.controller.get_debug_info(),
            }

    def add_client(self, client: Any) -> None:
        self.connected_clients.add(client)

    def remove_client(self, client: Any) -> None:
        self.connected_clients.discard(client)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def handle_command(self, command: str, data: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Handle a command from an HTTP or WebSocket client.

        Args:
            command: Command name ('start', 'pause', 'resume', 'toggle_pause',
                'reset', 'activate', 'activate_at', 'move')
            data: Command payload, validated against the matching request model

        Returns:
            Response dictionary with ``success`` and the current state
        """
        handlers = {
            "start": self._cmd_start,
            "pause": self._cmd_pause,
            "resume": self._cmd_resume,
            "toggle_pause": self._cmd_toggle_pause,
            "reset": self._cmd_reset,
            "activate": self._cmd_activate,
            "activate_at": self._cmd_activate_at,
            "move": self._cmd_move,
        }

        handler = handlers.get(command)
        if handler is None:
            logger.warning(f"Unknown command received: {command}")
            return self._create_error_response(f"Unknown command: {command}")

        try:
            with self.lock:
                response = handler(data or {})
                response["state"] = self.controller.snapshot().to_dict()
                return response
        except ValidationError as e:
            return self._create_error_response(f"Invalid data for {command}: {e.errors()[0]['msg']}")
        except ConfigurationError as e:
            return self._create_error_response(str(e))

    async def handle_command_async(self, command: str, data: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Run ``handle_command`` in the default executor so the lock never blocks the loop."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self.handle_command, command, data)

    def _create_error_response(self, error_msg: str) -> Dict[str, Any]:
        return {"success": False, "error": error_msg}

    @staticmethod
    def _from_result(result) -> Dict[str, Any]:
        if result.is_err():
            return {"success": False, "error": result.error}
        return {"success": True}

    def _cmd_start(self, data: Dict[str, Any]) -> Dict[str, Any]:
        request = StartRequest.model_validate(data)
        return self._from_result(self.controller.start(GameMode.parse(request.mode)))

    def _cmd_pause(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return self._from_result(self.controller.pause())

    def _cmd_resume(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return self._from_result(self.controller.resume())

    def _cmd_toggle_pause(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return self._from_result(self.controller.toggle_pause())

    def _cmd_reset(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return self._from_result(self.controller.reset())

    def _cmd_activate(self, data: Dict[str, Any]) -> Dict[str, Any]:
        request = ActivateRequest.model_validate(data)
        queued = self.controller.submit(
            ActivateCommand(entity_id=EntityId(request.entity_id), session_id=request.session_id)
        )
        return {"success": True, "queued": queued}

    def _cmd_activate_at(self, data: Dict[str, Any]) -> Dict[str, Any]:
        request = ActivateAtRequest.model_validate(data)
        queued = self.controller.submit(
            ActivateAtCommand(x=request.x, y=request.y, session_id=request.session_id)
        )
        return {"success": True, "queued": queued}

    def _cmd_move(self, data: Dict[str, Any]) -> Dict[str, Any]:
        request = MoveRequest.model_validate(data)
        queued = self.controller.submit(
            MoveCommand(direction=Direction(request.direction), session_id=request.session_id)
        )
        return {"success": True, "queued": queued}
