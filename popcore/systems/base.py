"""System contract shared by the spawner and the physics step.

A system keeps its collaborators (RNG, difficulty curve, resolver) but
never a ``SessionState``. The controller hands the state in for one timer
firing and takes it back, so a system is effectively a function of
(state, interval) driven serially from the session clock.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, Optional

if TYPE_CHECKING:
    from popcore.session import SessionState

__all__ = ["BaseSystem", "SystemResult"]


@dataclass
class SystemResult:
    """What one firing of a system did.

    Attributes:
        entities_affected: Live entities touched (moved, re-aimed)
        entities_spawned: Entities added to the live set
        entities_removed: Entities resolved or escaped
        events_emitted: Domain events published on the bus
        skipped: True when the system was disabled for this firing
        details: Per-system counters, e.g. ``{"escaped": 2}``
    """

    entities_affected: int = 0
    entities_spawned: int = 0
    entities_removed: int = 0
    events_emitted: int = 0
    skipped: bool = False
    details: Dict[str, Any] = field(default_factory=dict)

    @staticmethod
    def skipped_result() -> "SystemResult":
        return SystemResult(skipped=True)

    @staticmethod
    def empty() -> "SystemResult":
        return SystemResult()

    def __add__(self, other: "SystemResult") -> "SystemResult":
        """Sum two results; numeric details add up, others keep the latest."""
        if other.skipped:
            return self
        merged = dict(self.details)
        for key, value in other.details.items():
            previous = merged.get(key)
            if isinstance(value, (int, float)) and isinstance(previous, (int, float)):
                merged[key] = previous + value
            else:
                merged[key] = value
        return SystemResult(
            entities_affected=self.entities_affected + other.entities_affected,
            entities_spawned=self.entities_spawned + other.entities_spawned,
            entities_removed=self.entities_removed + other.entities_removed,
            events_emitted=self.events_emitted + other.events_emitted,
            details=merged,
        )


class BaseSystem(ABC):
    """Base for systems fired by the session clock.

    Subclasses implement ``_do_update``. ``update`` wraps it with the
    enabled switch and keeps running totals for ``get_debug_info``.
    """

    def __init__(self, name: str) -> None:
        self._name = name
        self._enabled = True
        self._update_count = 0
        self._totals = SystemResult()

    @property
    def name(self) -> str:
        return self._name

    @property
    def enabled(self) -> bool:
        return self._enabled

    @enabled.setter
    def enabled(self, value: bool) -> None:
        self._enabled = value

    @property
    def update_count(self) -> int:
        return self._update_count

    @property
    def totals(self) -> SystemResult:
        """Sum of every result since construction."""
        return self._totals

    def update(self, state: "SessionState", interval_ms: int) -> SystemResult:
        if not self._enabled:
            return SystemResult.skipped_result()
        result = self._do_update(state, interval_ms) or SystemResult.empty()
        self._update_count += 1
        self._totals = self._totals + result
        return result

    @abstractmethod
    def _do_update(self, state: "SessionState", interval_ms: int) -> Optional[SystemResult]:
        """Run one firing against ``state``."""

    def get_debug_info(self) -> Dict[str, Any]:
        totals = self._totals
        return {
            "name": self._name,
            "enabled": self._enabled,
            "updates": self._update_count,
            "spawned": totals.entities_spawned,
            "removed": totals.entities_removed,
            "details": {k: v for k, v in totals.details.items() if isinstance(v, (int, float))},
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._name!r}, updates={self._update_count})"
