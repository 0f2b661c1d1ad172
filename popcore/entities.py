"""Entities of the arcade play field.

Coordinates follow screen conventions: ``x`` grows to the right, ``y``
grows downwards and ``(x, y)`` is the top-left corner of an entity's
bounding square. Entities enter at the bottom edge (``y == field_height``)
and travel towards ``y == 0``; the actor sits on that exit edge.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Tuple

from popcore.entity_ids import EntityId

# (x, y, width, height)
Rect = Tuple[float, float, float, float]


class EntityCategory(Enum):
    """What happens when an entity is resolved."""

    NORMAL = "normal"  # Points scaled inversely with size
    BONUS = "bonus"  # Large fixed points
    HAZARD = "hazard"  # Point penalty and one life
    FREEZE = "freeze"  # Slows everything down for a while

    @property
    def escape_penalized(self) -> bool:
        """Whether letting this category escape can cost a life."""
        return self is not EntityCategory.HAZARD


@dataclass(slots=True)
class Entity:
    """A single live object on the field.

    Only ``y`` changes after creation, and only in the physics step.
    """

    entity_id: EntityId
    x: float
    y: float
    size: float
    speed: float
    category: EntityCategory
    points: int

    def __post_init__(self) -> None:
        if self.size <= 0:
            raise ValueError(f"size must be > 0, got {self.size}")
        if self.speed < 0:
            raise ValueError(f"speed must be >= 0, got {self.speed}")

    def get_rect(self) -> Rect:
        return (self.x, self.y, self.size, self.size)

    def contains_point(self, px: float, py: float) -> bool:
        return self.x <= px <= self.x + self.size and self.y <= py <= self.y + self.size

    def has_escaped(self) -> bool:
        """True once the entity is entirely past the exit edge."""
        return self.y + self.size < 0

    def __repr__(self) -> str:
        return (
            f"Entity({self.entity_id}, {self.category.value}, "
            f"x={self.x:.1f}, y={self.y:.1f}, size={self.size:.1f})"
        )


@dataclass(slots=True)
class Actor:
    """The controllable catcher anchored to the exit edge."""

    x: float
    size: float
    field_width: float

    @property
    def y(self) -> float:
        return 0.0

    def get_rect(self) -> Rect:
        return (self.x, self.y, self.size, self.size)

    def move(self, dx: float) -> None:
        """Shift horizontally, clamped to the field."""
        self.x = min(max(0.0, self.x + dx), max(0.0, self.field_width - self.size))

    @classmethod
    def centered(cls, field_width: float, size: float) -> "Actor":
        return cls(x=max(0.0, field_width / 2 - size / 2), size=size, field_width=field_width)


def rects_overlap(a: Rect, b: Rect) -> bool:
    """Axis-aligned overlap test on both axes.

    Touching edges do not count as overlap.
    """
    ax, ay, aw, ah = a
    bx, by, bw, bh = b
    return ax < bx + bw and bx < ax + aw and ay < by + bh and by < ay + ah
