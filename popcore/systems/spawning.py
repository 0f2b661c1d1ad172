"""Entity spawning system.

This module injects new entities into the live set at a rate driven by the
difficulty curve. The spawn interval is recomputed from the current score
on every decision, so difficulty ramps live during a session.
"""

import logging
import random
from typing import TYPE_CHECKING, Optional

from popcore.config.difficulty import (
    BONUS_PROBABILITY,
    FREEZE_PROBABILITY,
    MAX_PLACEMENT_ATTEMPTS,
    MIN_ENTITY_SIZE,
    SIZE_JITTER,
    SPAWN_SKIP_CHANCE,
    SPEED_JITTER,
)
from popcore.difficulty import DEFAULT_CURVE, DifficultyCurve
from popcore.entities import Entity, EntityCategory, rects_overlap
from popcore.scoring import points_for
from popcore.systems.base import BaseSystem, SystemResult
from popcore.util.rng import require_rng_param

if TYPE_CHECKING:
    from popcore.session import SessionState

logger = logging.getLogger(__name__)


class EntitySpawner(BaseSystem):
    """Time-gated generator of new entities.

    The spawner accumulates the time of each firing and, once the
    accumulated time reaches the current spawn interval, attempts one
    spawn. Placement is retried a bounded number of times; when no valid
    position exists the spawn is skipped for this decision.

    Attributes:
        curve: Difficulty curve sampled at the current score
        rng: Session RNG for deterministic spawning
    """

    def __init__(
        self,
        rng: Optional[random.Random],
        curve: DifficultyCurve = DEFAULT_CURVE,
        *,
        skip_chance: float = SPAWN_SKIP_CHANCE,
        bonus_probability: float = BONUS_PROBABILITY,
        freeze_probability: float = FREEZE_PROBABILITY,
        max_placement_attempts: int = MAX_PLACEMENT_ATTEMPTS,
    ) -> None:
        """Initialize the spawner.

        Args:
            rng: Session RNG (required)
            curve: Difficulty curve to sample
            skip_chance: Chance to skip a due spawn while entities are live
            bonus_probability: Fixed chance of a bonus entity
            freeze_probability: Fixed chance of a freeze entity
            max_placement_attempts: Placement retries before giving up
        """
        super().__init__("Spawner")
        self.rng = require_rng_param(rng, "EntitySpawner.__init__")
        self.curve = curve
        self.skip_chance = skip_chance
        self.bonus_probability = bonus_probability
        self.freeze_probability = freeze_probability
        self.max_placement_attempts = max(1, max_placement_attempts)

    def choose_category(self, hazard_probability: float, roll: float) -> EntityCategory:
        """Map one uniform roll in [0, 1) to a category.

        Hazard takes the first slice, then bonus, then freeze; the rest is
        normal. The hazard ceiling keeps the normal slice non-empty.
        """
        if roll < hazard_probability:
            return EntityCategory.HAZARD
        if roll < hazard_probability + self.bonus_probability:
            return EntityCategory.BONUS
        if roll < hazard_probability + self.bonus_probability + self.freeze_probability:
            return EntityCategory.FREEZE
        return EntityCategory.NORMAL

    def _do_update(self, state: "SessionState", interval_ms: int) -> SystemResult:
        state.since_last_spawn_ms += interval_ms
        spawn_interval = self.curve.spawn_interval_ms(state.score)
        if state.since_last_spawn_ms < spawn_interval:
            return SystemResult.empty()

        state.since_last_spawn_ms = 0

        if len(state.entities) > 0 and self.rng.random() < self.skip_chance:
            return SystemResult(details={"skipped_roll": 1})

        entity = self.create_entity(state)
        if entity is None:
            logger.debug(
                "Spawn skipped: no valid placement (field=%.0fx%.0f, live=%d)",
                state.field_width,
                state.field_height,
                len(state.entities),
            )
            return SystemResult(details={"placement_failed": 1})

        state.entities.add(entity)
        return SystemResult(entities_spawned=1, details={"category": entity.category.value})

    def create_entity(self, state: "SessionState") -> Optional[Entity]:
        """Build a new entity from the curve at the current score.

        Returns:
            The entity, or None when it cannot be placed on the field
        """
        params = self.curve.sample(state.score)
        category = self.choose_category(params.hazard_probability, self.rng.random())
        size = max(MIN_ENTITY_SIZE, params.size + self.rng.uniform(-SIZE_JITTER, SIZE_JITTER))
        speed = params.speed + self.rng.random() * SPEED_JITTER

        x = self._find_position(state, size)
        if x is None:
            return None

        return Entity(
            entity_id=state.ids.allocate(),
            x=x,
            y=state.field_height,
            size=size,
            speed=speed,
            category=category,
            points=points_for(category, size),
        )

    def _find_position(self, state: "SessionState", size: float) -> Optional[float]:
        """Pick an x so the entity is fully on-field and clear of the spawn band."""
        span = state.field_width - size
        if span < 0:
            return None

        spawn_y = state.field_height
        for _ in range(self.max_placement_attempts):
            x = self.rng.uniform(0, span)
            candidate = (x, spawn_y, size, size)
            if not any(rects_overlap(candidate, other.get_rect()) for other in state.entities):
                return x
        return None
