"""Stimulus commands and the queue that serializes them.

Input collaborators (HTTP handlers, WebSocket clients, a keyboard loop)
never touch session state. They submit commands, and the controller
drains the queue at the start of its next advance, in FIFO order, before
any timer fires.
"""

from __future__ import annotations

import threading
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Deque, List, Optional, Union

from popcore.entity_ids import EntityId


class Direction(Enum):
    """Horizontal actor movement."""

    LEFT = "left"
    RIGHT = "right"

    @property
    def sign(self) -> int:
        return -1 if self is Direction.LEFT else 1


@dataclass(frozen=True)
class ActivateCommand:
    """Tap a specific entity."""

    entity_id: EntityId
    session_id: Optional[str] = None


@dataclass(frozen=True)
class ActivateAtCommand:
    """Tap a point on the field; resolves the newest entity under it."""

    x: float
    y: float
    session_id: Optional[str] = None


@dataclass(frozen=True)
class MoveCommand:
    """Move the actor one step."""

    direction: Direction
    session_id: Optional[str] = None


@dataclass(frozen=True)
class PauseToggleCommand:
    """Pause a running session or resume a paused one."""

    session_id: Optional[str] = None


Command = Union[ActivateCommand, ActivateAtCommand, MoveCommand, PauseToggleCommand]


class CommandQueue:
    """Thread-safe FIFO of pending commands.

    Submission may happen from any thread; draining happens on the thread
    that drives the controller. Duplicate activations of the same entity
    within one drain window are collapsed.
    """

    def __init__(self, max_pending: int = 1024) -> None:
        self._lock = threading.Lock()
        self._pending: Deque[Command] = deque()
        self._activation_ids: set[EntityId] = set()
        self._max_pending = max_pending
        self.dropped = 0

    def submit(self, command: Command) -> bool:
        """Queue a command.

        Returns:
            False if the command was dropped (duplicate activation or full queue)
        """
        with self._lock:
            if len(self._pending) >= self._max_pending:
                self.dropped += 1
                return False
            if isinstance(command, ActivateCommand):
                if command.entity_id in self._activation_ids:
                    self.dropped += 1
                    return False
                self._activation_ids.add(command.entity_id)
            self._pending.append(command)
            return True

    def drain(self) -> List[Command]:
        """Return and clear pending commands in submission order."""
        with self._lock:
            commands = list(self._pending)
            self._pending.clear()
            self._activation_ids.clear()
            return commands

    def clear(self) -> int:
        with self._lock:
            count = len(self._pending)
            self._pending.clear()
            self._activation_ids.clear()
            return count

    def __len__(self) -> int:
        with self._lock:
            return len(self._pending)
