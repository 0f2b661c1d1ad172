"""Scenario helper: put a chosen entity on the field without the spawner."""

from typing import Optional

from popcore.entities import Entity, EntityCategory
from popcore.entity_ids import EntityId
from popcore.exceptions import SessionError
from popcore.scoring import points_for
from popcore.session_controller import SessionController
from popcore.state_machine import SessionPhase


def place_entity(
    controller: SessionController,
    category: EntityCategory,
    x: float,
    y: Optional[float] = None,
    size: Optional[float] = None,
    speed: Optional[float] = None,
) -> EntityId:
    """Add an entity to the live set. Unset values follow the curve at the current score."""
    state = controller.state
    if state is None or controller.phase not in (SessionPhase.RUNNING, SessionPhase.PAUSED):
        raise SessionError("placing an entity requires an active session")
    params = controller.config.curve.sample(state.score)
    size = float(size if size is not None else params.size)
    entity = Entity(
        entity_id=state.ids.allocate(),
        x=x,
        y=state.field_height if y is None else y,
        size=size,
        speed=float(speed if speed is not None else params.speed),
        category=category,
        points=points_for(category, size),
    )
    state.entities.add(entity)
    return entity.entity_id
