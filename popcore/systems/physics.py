"""Per-tick physics step.

One firing advances every live entity, resolves actor contacts, removes
escaped entities and applies the escape penalty, all against the same
state inside one serialized call. Nothing else can observe the entity set
between those sub-steps.
"""

import logging
from typing import TYPE_CHECKING

from popcore.config.session import WARMUP_MS
from popcore.events import EntityEscapedEvent, EventBus
from popcore.systems.base import BaseSystem, SystemResult
from popcore.systems.interaction import InteractionResolver

if TYPE_CHECKING:
    from popcore.session import SessionState

logger = logging.getLogger(__name__)


class PhysicsSystem(BaseSystem):
    """Moves entities towards the exit edge and handles what reaches it.

    Sub-steps, in order:
        1. Move every entity by its speed (halved while freeze is active),
           then count down the freeze effect.
        2. Resolve entities overlapping the actor (newest first).
        3. Remove entities that fully left the field; in modes with the
           escape penalty each escaped non-hazard entity costs one life.
        4. Advance session time and the warm-up flag.
    """

    def __init__(
        self,
        resolver: InteractionResolver,
        event_bus: EventBus,
        *,
        actor_enabled: bool = True,
        warmup_ms: int = WARMUP_MS,
    ) -> None:
        super().__init__("Physics")
        self.resolver = resolver
        self.event_bus = event_bus
        self.actor_enabled = actor_enabled
        self.warmup_ms = warmup_ms

    def _do_update(self, state: "SessionState", interval_ms: int) -> SystemResult:
        state.tick += 1

        moved = self._move_entities(state, interval_ms)

        contacts = []
        if self.actor_enabled:
            contacts = self.resolver.resolve_actor_contacts(state)

        escaped, lives_lost = self._remove_escaped(state)

        state.elapsed_ms += interval_ms
        if not state.warmed_up and state.elapsed_ms >= self.warmup_ms:
            state.warmed_up = True

        return SystemResult(
            entities_affected=moved,
            entities_removed=len(contacts) + escaped,
            events_emitted=escaped,
            details={
                "actor_contacts": len(contacts),
                "escaped": escaped,
                "lives_lost": lives_lost,
            },
        )

    def _move_entities(self, state: "SessionState", interval_ms: int) -> int:
        slowed = state.freeze_active
        moved = 0
        for entity in state.entities:
            speed = entity.speed / 2 if slowed else entity.speed
            entity.y -= speed
            moved += 1
        if slowed:
            state.freeze_remaining_ms = max(0, state.freeze_remaining_ms - interval_ms)
            if not state.freeze_active:
                logger.debug("Freeze expired at tick %d", state.tick)
        return moved

    def _remove_escaped(self, state: "SessionState") -> tuple[int, int]:
        escaped_ids = [entity.entity_id for entity in state.entities if entity.has_escaped()]
        if not escaped_ids:
            return 0, 0

        lives_lost = 0
        for entity in state.entities.remove_many(escaped_ids):
            life_lost = False
            if state.rules.escape_penalty and entity.category.escape_penalized:
                life_lost = state.apply_life_delta(-1) != 0
                lives_lost += int(life_lost)
            self.event_bus.emit(
                EntityEscapedEvent(
                    session_id=state.session_id,
                    entity_id=entity.entity_id.value,
                    category=entity.category.value,
                    life_lost=life_lost,
                    tick=state.tick,
                )
            )
        return len(escaped_ids), lives_lost
