"""Game modes and their rule sets.

Modes differ only in starting lives, whether a countdown runs and whether
unresolved entities cost a life when they escape the field. Everything
else (difficulty curve, scoring, spawning) is shared.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

from popcore.config.session import SURVIVAL_LIVES, TIME_ATTACK_SECONDS, UNLIMITED_LIVES
from popcore.exceptions import ConfigurationError


class GameMode(Enum):
    """Selectable game modes."""

    CLASSIC = "classic"
    TIME_ATTACK = "time_attack"
    SURVIVAL = "survival"

    @classmethod
    def parse(cls, raw: str) -> "GameMode":
        """Parse a mode name, accepting the client's camelCase spelling."""
        normalized = raw.strip().lower().replace("-", "_")
        if normalized == "timeattack":
            normalized = "time_attack"
        try:
            return cls(normalized)
        except ValueError:
            valid = ", ".join(mode.value for mode in cls)
            raise ConfigurationError(f"Unknown game mode {raw!r}. Valid modes: {valid}") from None


@dataclass(frozen=True)
class ModeRules:
    """Rules that vary by mode.

    Attributes:
        initial_lives: Lives at session start (also the maximum)
        time_limit_seconds: Countdown length, or None when time is not tracked
        escape_penalty: Whether escaping non-hazard entities cost a life
    """

    initial_lives: int
    time_limit_seconds: Optional[int] = None
    escape_penalty: bool = False

    def __post_init__(self) -> None:
        if self.initial_lives <= 0:
            raise ConfigurationError("initial_lives must be > 0")
        if self.time_limit_seconds is not None and self.time_limit_seconds <= 0:
            raise ConfigurationError("time_limit_seconds must be > 0")

    @property
    def timed(self) -> bool:
        return self.time_limit_seconds is not None


DEFAULT_RULES: Dict[GameMode, ModeRules] = {
    GameMode.CLASSIC: ModeRules(initial_lives=UNLIMITED_LIVES),
    GameMode.TIME_ATTACK: ModeRules(
        initial_lives=UNLIMITED_LIVES, time_limit_seconds=TIME_ATTACK_SECONDS
    ),
    GameMode.SURVIVAL: ModeRules(initial_lives=SURVIVAL_LIVES, escape_penalty=True),
}
