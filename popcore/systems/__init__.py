"""Session systems.

Each system has a single responsibility and follows the BaseSystem
contract. The session controller fires them from its clock in a fixed
order on every advance:

    physics  -> move, actor contacts, escapes
    spawn    -> maybe add one entity
    countdown (timed modes) -> decrement the remaining time

Stimulus-driven resolution (taps) goes through the same controller queue
and the InteractionResolver, so it is serialized with the timers.
"""

from popcore.systems.base import BaseSystem, SystemResult
from popcore.systems.interaction import InteractionResolver, Resolution, ResolutionCause
from popcore.systems.physics import PhysicsSystem
from popcore.systems.spawning import EntitySpawner

__all__ = [
    "BaseSystem",
    "EntitySpawner",
    "InteractionResolver",
    "PhysicsSystem",
    "Resolution",
    "ResolutionCause",
    "SystemResult",
]
