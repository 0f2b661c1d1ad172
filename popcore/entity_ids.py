"""Entity identifiers and the per-session allocator that issues them.

Ids come from one increasing sequence per session, so a larger id always
means a later spawn. Overlap tie-breaks in the interaction resolver lean on
that ordering. Ids compare and hash like plain ints, which lets client
payloads (``{"entity_id": 12}``) be matched without conversion.
"""

from dataclasses import dataclass
from functools import total_ordering
from typing import Any, Optional, Union


def _as_int(other: Any) -> Optional[int]:
    if isinstance(other, EntityId):
        return other.value
    if isinstance(other, int) and not isinstance(other, bool):
        return other
    return None


@total_ordering
@dataclass(frozen=True, eq=False)
class EntityId:
    value: int

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise TypeError(f"entity id must be an int, got {type(self.value).__name__}")
        if self.value < 0:
            raise ValueError(f"entity id must be >= 0, got {self.value}")

    @classmethod
    def coerce(cls, raw: Union["EntityId", int, str]) -> "EntityId":
        """Accept whatever a client sent: an id, an int or a numeric string."""
        if isinstance(raw, EntityId):
            return raw
        return cls(int(raw.strip()) if isinstance(raw, str) else raw)

    def __eq__(self, other: Any) -> bool:
        raw = _as_int(other)
        return NotImplemented if raw is None else self.value == raw

    def __lt__(self, other: Any) -> bool:
        raw = _as_int(other)
        return NotImplemented if raw is None else self.value < raw

    def __hash__(self) -> int:
        return hash(self.value)

    def __int__(self) -> int:
        return self.value

    def __str__(self) -> str:
        return f"Entity#{self.value}"


class EntityIdAllocator:
    """Strictly increasing ids for one session, starting at ``start``."""

    def __init__(self, start: int = 1) -> None:
        self._start = start
        self._next = start

    def allocate(self) -> EntityId:
        self._next += 1
        return EntityId(self._next - 1)

    @property
    def issued(self) -> int:
        return self._next - self._start
