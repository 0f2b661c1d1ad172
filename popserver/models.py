"""Request and response models for the HTTP and WebSocket API."""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field


class StartRequest(BaseModel):
    """Start a new session."""

    mode: str = "classic"  # 'classic', 'time_attack' (or 'timeAttack'), 'survival'


class ActivateRequest(BaseModel):
    """Tap an entity by id."""

    entity_id: int = Field(ge=0)
    session_id: Optional[str] = None


class ActivateAtRequest(BaseModel):
    """Tap a point on the field."""

    x: float
    y: float
    session_id: Optional[str] = None


class MoveRequest(BaseModel):
    """Move the actor one step."""

    direction: Literal["left", "right"]
    session_id: Optional[str] = None


class EntityData(BaseModel):
    """An entity as rendered by the client."""

    id: int
    category: str  # 'normal', 'bonus', 'hazard', 'freeze'
    x: float
    y: float
    size: float
    points: int


class ActorData(BaseModel):
    x: float
    size: float


class SessionStateData(BaseModel):
    """Snapshot of the session."""

    phase: str
    revision: int
    best_score: int
    session_id: Optional[str] = None
    mode: Optional[str] = None
    score: int = 0
    lives: int = 0
    time_left: Optional[int] = None
    freeze_active: bool = False
    warmed_up: bool = False
    actor: Optional[ActorData] = None
    entities: List[EntityData] = []


class CommandResponse(BaseModel):
    """Uniform response for commands."""

    success: bool
    error: Optional[str] = None
    queued: bool = False
    state: Optional[SessionStateData] = None


class Command(BaseModel):
    """Command from a WebSocket client."""

    command: str  # 'start', 'pause', 'resume', 'toggle_pause', 'reset', 'activate', 'activate_at', 'move'
    data: Optional[Dict[str, Any]] = None
