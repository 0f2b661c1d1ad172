"""Container for the live entities of one session.

Entities are kept in spawn order (ids are allocated from an increasing
sequence), which gives every iteration over the set a deterministic order
and lets callers pick "most recently spawned" without sorting.
"""

from typing import Dict, Iterator, List, Optional

from popcore.entities import Entity
from popcore.entity_ids import EntityId


class EntitySet:
    """Ordered, id-unique set of live entities."""

    def __init__(self) -> None:
        self._entities: Dict[EntityId, Entity] = {}

    def add(self, entity: Entity) -> None:
        """Insert a freshly spawned entity.

        Raises:
            ValueError: If the id is already live or older than the newest entity
        """
        if entity.entity_id in self._entities:
            raise ValueError(f"duplicate entity id: {entity.entity_id}")
        newest = self.newest()
        if newest is not None and entity.entity_id < newest.entity_id:
            raise ValueError(
                f"entity {entity.entity_id} is older than newest live entity {newest.entity_id}"
            )
        self._entities[entity.entity_id] = entity

    def get(self, entity_id: EntityId) -> Optional[Entity]:
        return self._entities.get(entity_id)

    def pop(self, entity_id: EntityId) -> Optional[Entity]:
        """Remove and return the entity, or None if it is not live."""
        return self._entities.pop(entity_id, None)

    def remove_many(self, entity_ids: List[EntityId]) -> List[Entity]:
        removed = []
        for entity_id in entity_ids:
            entity = self._entities.pop(entity_id, None)
            if entity is not None:
                removed.append(entity)
        return removed

    def newest(self) -> Optional[Entity]:
        if not self._entities:
            return None
        return self._entities[next(reversed(self._entities))]

    def newest_first(self) -> List[Entity]:
        return list(reversed(self._entities.values()))

    def clear(self) -> None:
        self._entities.clear()

    def __contains__(self, entity_id: object) -> bool:
        return entity_id in self._entities

    def __iter__(self) -> Iterator[Entity]:
        return iter(list(self._entities.values()))

    def __len__(self) -> int:
        return len(self._entities)

    def __repr__(self) -> str:
        return f"EntitySet(size={len(self._entities)})"
