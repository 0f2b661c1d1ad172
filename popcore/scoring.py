"""Point values for resolved entities."""

import math

from popcore.config.session import (
    BONUS_POINTS,
    HAZARD_PENALTY,
    NORMAL_BASE_POINTS,
    NORMAL_REFERENCE_SIZE,
    NORMAL_SIZE_SCALE,
)
from popcore.entities import EntityCategory


def normal_points(size: float) -> int:
    """Points for a normal entity; smaller entities are worth more."""
    return NORMAL_BASE_POINTS + math.floor(NORMAL_SIZE_SCALE * (NORMAL_REFERENCE_SIZE - size))


def points_for(category: EntityCategory, size: float) -> int:
    """Signed score change for resolving an entity of ``category``."""
    if category is EntityCategory.BONUS:
        return BONUS_POINTS
    if category is EntityCategory.HAZARD:
        return -HAZARD_PENALTY
    if category is EntityCategory.FREEZE:
        return 0
    return normal_points(size)
