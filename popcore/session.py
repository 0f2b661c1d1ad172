"""Authoritative session state and its read-only snapshot.

``SessionState`` is owned by exactly one ``SessionController``; systems
receive it as an argument for the duration of a tick and never keep a
reference. Score and lives only change through ``apply_score_delta`` and
``apply_life_delta``, which enforce the non-negative floors.

``SessionSnapshot`` is the immutable view handed to renderers and the
service layer after every tick and command.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from popcore.entities import Actor, Entity
from popcore.entity_ids import EntityIdAllocator
from popcore.entity_set import EntitySet
from popcore.modes import GameMode, ModeRules
from popcore.state_machine import SessionPhase


@dataclass
class SessionState:
    """Mutable state of one play session."""

    session_id: str
    generation: int
    mode: GameMode
    rules: ModeRules
    field_width: float
    field_height: float
    actor: Actor
    lives: int
    time_left: Optional[int] = None
    score: int = 0
    warmed_up: bool = False
    freeze_remaining_ms: int = 0
    since_last_spawn_ms: int = 0
    # Per-timer time since last firing, saved when the clock is torn down on pause
    timer_progress_ms: Dict[str, int] = field(default_factory=dict)
    elapsed_ms: int = 0
    tick: int = 0
    entities: EntitySet = field(default_factory=EntitySet)
    ids: EntityIdAllocator = field(default_factory=EntityIdAllocator)

    @classmethod
    def fresh(
        cls,
        session_id: str,
        generation: int,
        mode: GameMode,
        rules: ModeRules,
        field_width: float,
        field_height: float,
        actor_size: float,
    ) -> "SessionState":
        """Create the state for a newly started session."""
        return cls(
            session_id=session_id,
            generation=generation,
            mode=mode,
            rules=rules,
            field_width=field_width,
            field_height=field_height,
            actor=Actor.centered(field_width, actor_size),
            lives=rules.initial_lives,
            time_left=rules.time_limit_seconds,
        )

    @property
    def freeze_active(self) -> bool:
        return self.freeze_remaining_ms > 0

    def apply_score_delta(self, delta: int) -> int:
        """Add ``delta`` to the score, flooring at zero.

        Returns:
            The change actually applied
        """
        before = self.score
        self.score = max(0, self.score + delta)
        return self.score - before

    def apply_life_delta(self, delta: int) -> int:
        """Add ``delta`` to lives, clamped to [0, initial_lives].

        Returns:
            The change actually applied
        """
        before = self.lives
        self.lives = min(max(0, self.lives + delta), self.rules.initial_lives)
        return self.lives - before

    def lives_exhausted(self) -> bool:
        return self.lives <= 0

    def time_exhausted(self) -> bool:
        return self.rules.timed and self.time_left is not None and self.time_left <= 0


@dataclass(frozen=True)
class EntitySnapshot:
    """Minimal snapshot of an entity for client rendering."""

    id: int
    category: str
    x: float
    y: float
    size: float
    points: int

    @classmethod
    def of(cls, entity: Entity) -> "EntitySnapshot":
        return cls(
            id=entity.entity_id.value,
            category=entity.category.value,
            x=entity.x,
            y=entity.y,
            size=entity.size,
            points=entity.points,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "category": self.category,
            "x": round(self.x, 2),
            "y": round(self.y, 2),
            "size": round(self.size, 2),
            "points": self.points,
        }


@dataclass(frozen=True)
class SessionSnapshot:
    """Read-only view of the session after a tick or command."""

    phase: SessionPhase
    revision: int
    best_score: int
    session_id: Optional[str] = None
    mode: Optional[GameMode] = None
    score: int = 0
    lives: int = 0
    time_left: Optional[int] = None
    freeze_active: bool = False
    warmed_up: bool = False
    actor_x: Optional[float] = None
    actor_size: Optional[float] = None
    entities: Tuple[EntitySnapshot, ...] = ()

    @classmethod
    def capture(
        cls,
        state: Optional[SessionState],
        phase: SessionPhase,
        revision: int,
        best_score: int,
    ) -> "SessionSnapshot":
        if state is None:
            return cls(phase=phase, revision=revision, best_score=best_score)
        return cls(
            phase=phase,
            revision=revision,
            best_score=best_score,
            session_id=state.session_id,
            mode=state.mode,
            score=state.score,
            lives=state.lives,
            time_left=state.time_left,
            freeze_active=state.freeze_active,
            warmed_up=state.warmed_up,
            actor_x=state.actor.x,
            actor_size=state.actor.size,
            entities=tuple(EntitySnapshot.of(entity) for entity in state.entities),
        )

    @property
    def running(self) -> bool:
        return self.phase is SessionPhase.RUNNING

    @property
    def paused(self) -> bool:
        return self.phase is SessionPhase.PAUSED

    @property
    def ended(self) -> bool:
        return self.phase is SessionPhase.ENDED

    def same_world(self, other: "SessionSnapshot") -> bool:
        """Compare everything a player can observe, ignoring phase and revision."""
        return (
            self.session_id == other.session_id
            and self.score == other.score
            and self.lives == other.lives
            and self.time_left == other.time_left
            and self.freeze_active == other.freeze_active
            and self.actor_x == other.actor_x
            and self.entities == other.entities
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "phase": self.phase.value,
            "revision": self.revision,
            "best_score": self.best_score,
            "session_id": self.session_id,
            "mode": self.mode.value if self.mode else None,
            "score": self.score,
            "lives": self.lives,
            "time_left": self.time_left,
            "freeze_active": self.freeze_active,
            "warmed_up": self.warmed_up,
            "actor": (
                {"x": round(self.actor_x, 2), "size": self.actor_size}
                if self.actor_x is not None
                else None
            ),
            "entities": [entity.to_dict() for entity in self.entities],
        }
