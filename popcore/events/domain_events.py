"""Domain event definitions for session telemetry.

These events represent significant occurrences during a play session.
They are data-only (frozen dataclasses) and carry all context handlers
need, so a handler never has to reach back into session state.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ScoreEventKind(Enum):
    """Why the score changed."""

    SCORE = "score"  # Normal object resolved
    BONUS = "bonus"  # Bonus object resolved
    PENALTY = "penalty"  # Hazard resolved


@dataclass(frozen=True)
class ScoreEvent:
    """The score changed because of a resolution.

    Attributes:
        session_id: Session the change belongs to
        kind: What kind of resolution changed the score
        score: New total score (already floored at zero)
        entity_id: Raw id of the resolved entity
        tick: Physics tick count when this occurred
    """

    session_id: str
    kind: ScoreEventKind
    score: int
    entity_id: int
    tick: int


@dataclass(frozen=True)
class EntityResolvedEvent:
    """An entity was resolved by a tap or by touching the actor.

    Attributes:
        session_id: Session the entity belonged to
        entity_id: Raw id of the resolved entity
        category: Category value ("normal", "bonus", "hazard", "freeze")
        cause: "activate" for taps, "actor" for actor contact
        score_delta: Applied score change (after flooring)
        life_delta: Applied lives change (after flooring)
        tick: Physics tick count when this occurred
    """

    session_id: str
    entity_id: int
    category: str
    cause: str
    score_delta: int
    life_delta: int
    tick: int


@dataclass(frozen=True)
class EntityEscapedEvent:
    """An entity left the field unresolved."""

    session_id: str
    entity_id: int
    category: str
    life_lost: bool
    tick: int


@dataclass(frozen=True)
class SessionStartedEvent:
    """A new session began."""

    session_id: str
    mode: str
    generation: int


@dataclass(frozen=True)
class SessionEndedEvent:
    """A session terminated because lives or time ran out.

    Attributes:
        session_id: Session that ended
        mode: Mode value of the session
        final_score: Score at termination
        reason: "lives_exhausted" or "time_up"
        best_score: Best score after recording this session (None if unknown)
    """

    session_id: str
    mode: str
    final_score: int
    reason: str
    best_score: Optional[int] = None
