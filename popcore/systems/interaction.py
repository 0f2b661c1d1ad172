"""Interaction resolution.

Resolves entities hit by a stimulus: a tap on an entity id, a tap at a
point, or contact with the actor. Resolution pops the entity from the live
set before applying its outcome, so the same id can never be scored twice.

Tie-break: when several entities match one stimulus (overlapping entities
under a tap point, or several entities touching the actor) the most
recently spawned entity is resolved first. Entity ids increase with spawn
order, so this is a total order.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from popcore.config.session import FREEZE_DURATION_MS
from popcore.entities import EntityCategory, rects_overlap
from popcore.entity_ids import EntityId
from popcore.events import EntityResolvedEvent, EventBus, ScoreEvent, ScoreEventKind

if TYPE_CHECKING:
    from popcore.session import SessionState

logger = logging.getLogger(__name__)

_SCORE_KINDS = {
    EntityCategory.NORMAL: ScoreEventKind.SCORE,
    EntityCategory.BONUS: ScoreEventKind.BONUS,
    EntityCategory.HAZARD: ScoreEventKind.PENALTY,
}


class ResolutionCause(Enum):
    """What resolved an entity."""

    ACTIVATE = "activate"
    ACTOR = "actor"


@dataclass(frozen=True)
class Resolution:
    """Outcome of resolving one entity."""

    entity_id: EntityId
    category: EntityCategory
    cause: ResolutionCause
    score_delta: int
    life_delta: int
    score: int
    lives: int


class InteractionResolver:
    """Applies resolution outcomes to the session state.

    Every resolution of a score-bearing entity (normal, bonus, hazard)
    emits exactly one ``ScoreEvent`` carrying the new total score; the
    event reporter subscribes to those on the bus.
    """

    def __init__(self, event_bus: EventBus, freeze_duration_ms: int = FREEZE_DURATION_MS) -> None:
        self.event_bus = event_bus
        self.freeze_duration_ms = freeze_duration_ms
        self.resolved_count = 0

    def resolve(
        self,
        state: "SessionState",
        entity_id: EntityId,
        cause: ResolutionCause = ResolutionCause.ACTIVATE,
    ) -> Optional[Resolution]:
        """Resolve the entity with ``entity_id`` if it is still live.

        Returns:
            The resolution, or None when the id is not in the live set
            (already resolved, escaped, or from another session)
        """
        entity = state.entities.pop(entity_id)
        if entity is None:
            logger.debug("Ignoring stale stimulus for %s", entity_id)
            return None

        score_delta = 0
        life_delta = 0
        if entity.category is EntityCategory.FREEZE:
            state.freeze_remaining_ms = self.freeze_duration_ms
        else:
            score_delta = state.apply_score_delta(entity.points)
            if entity.category is EntityCategory.HAZARD:
                life_delta = state.apply_life_delta(-1)
        state.warmed_up = True
        self.resolved_count += 1

        resolution = Resolution(
            entity_id=entity.entity_id,
            category=entity.category,
            cause=cause,
            score_delta=score_delta,
            life_delta=life_delta,
            score=state.score,
            lives=state.lives,
        )
        self._publish(state, resolution)
        return resolution

    def hit_test(self, state: "SessionState", x: float, y: float) -> Optional[EntityId]:
        """Return the id of the newest entity containing the point, if any."""
        for entity in state.entities.newest_first():
            if entity.contains_point(x, y):
                return entity.entity_id
        return None

    def resolve_at(self, state: "SessionState", x: float, y: float) -> Optional[Resolution]:
        """Resolve whatever entity is under the point."""
        entity_id = self.hit_test(state, x, y)
        if entity_id is None:
            return None
        return self.resolve(state, entity_id, ResolutionCause.ACTIVATE)

    def resolve_actor_contacts(self, state: "SessionState") -> List[Resolution]:
        """Resolve every entity overlapping the actor, newest first.

        Stops as soon as the lives run out; the rest stay live for the
        ended snapshot and are never scored.
        """
        actor_rect = state.actor.get_rect()
        touching = [
            entity.entity_id
            for entity in state.entities.newest_first()
            if rects_overlap(actor_rect, entity.get_rect())
        ]
        resolutions = []
        for entity_id in touching:
            resolution = self.resolve(state, entity_id, ResolutionCause.ACTOR)
            if resolution is not None:
                resolutions.append(resolution)
                if state.lives_exhausted():
                    break
        return resolutions

    def _publish(self, state: "SessionState", resolution: Resolution) -> None:
        raw_id = resolution.entity_id.value
        self.event_bus.emit(
            EntityResolvedEvent(
                session_id=state.session_id,
                entity_id=raw_id,
                category=resolution.category.value,
                cause=resolution.cause.value,
                score_delta=resolution.score_delta,
                life_delta=resolution.life_delta,
                tick=state.tick,
            )
        )
        kind = _SCORE_KINDS.get(resolution.category)
        if kind is not None:
            self.event_bus.emit(
                ScoreEvent(
                    session_id=state.session_id,
                    kind=kind,
                    score=state.score,
                    entity_id=raw_id,
                    tick=state.tick,
                )
            )
