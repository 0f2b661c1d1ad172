"""Score-driven difficulty curve.

Four pure functions map the cumulative score to spawn interval, object
speed, object size and hazard probability. Each is monotonic in score
(difficulty never decreases) and saturates at a documented bound, so the
curve stays well defined for arbitrarily large scores.
"""

from dataclasses import dataclass

from popcore.config.difficulty import (
    BASE_HAZARD_PROBABILITY,
    BASE_OBJECT_SIZE,
    BASE_OBJECT_SPEED,
    BASE_SPAWN_INTERVAL_MS,
    HAZARD_PROBABILITY_PER_POINT,
    MAX_HAZARD_PROBABILITY,
    MAX_OBJECT_SPEED,
    MIN_OBJECT_SIZE,
    MIN_SPAWN_INTERVAL_MS,
    OBJECT_SIZE_SCORE_STEP,
    OBJECT_SIZE_STEP,
    OBJECT_SPEED_SCORE_STEP,
    SPAWN_INTERVAL_SCORE_STEP,
    SPAWN_INTERVAL_STEP_MS,
)
from popcore.exceptions import ConfigurationError


@dataclass(frozen=True)
class DifficultyParams:
    """Difficulty parameters sampled at one score."""

    spawn_interval_ms: int
    speed: int
    size: int
    hazard_probability: float


@dataclass(frozen=True)
class DifficultyCurve:
    """Tunable difficulty curve.

    Attributes:
        base_spawn_interval_ms: Spawn interval at score 0
        spawn_interval_step_ms: Interval reduction per score step
        spawn_interval_score_step: Points per interval step
        min_spawn_interval_ms: Interval floor
        base_speed: Object speed at score 0
        speed_score_step: Points per +1 speed
        max_speed: Speed ceiling
        base_size: Object size at score 0
        size_step: Size reduction per score step
        size_score_step: Points per size step
        min_size: Size floor (strictly positive)
        base_hazard_probability: Hazard chance at score 0
        hazard_probability_per_point: Linear growth of hazard chance
        max_hazard_probability: Hazard chance ceiling (< 1)
    """

    base_spawn_interval_ms: int = BASE_SPAWN_INTERVAL_MS
    spawn_interval_step_ms: int = SPAWN_INTERVAL_STEP_MS
    spawn_interval_score_step: int = SPAWN_INTERVAL_SCORE_STEP
    min_spawn_interval_ms: int = MIN_SPAWN_INTERVAL_MS
    base_speed: int = BASE_OBJECT_SPEED
    speed_score_step: int = OBJECT_SPEED_SCORE_STEP
    max_speed: int = MAX_OBJECT_SPEED
    base_size: int = BASE_OBJECT_SIZE
    size_step: int = OBJECT_SIZE_STEP
    size_score_step: int = OBJECT_SIZE_SCORE_STEP
    min_size: int = MIN_OBJECT_SIZE
    base_hazard_probability: float = BASE_HAZARD_PROBABILITY
    hazard_probability_per_point: float = HAZARD_PROBABILITY_PER_POINT
    max_hazard_probability: float = MAX_HAZARD_PROBABILITY

    def __post_init__(self) -> None:
        if self.min_spawn_interval_ms <= 0:
            raise ConfigurationError("min_spawn_interval_ms must be > 0")
        if self.min_size <= 0:
            raise ConfigurationError("min_size must be > 0")
        if not 0.0 <= self.max_hazard_probability < 1.0:
            raise ConfigurationError("max_hazard_probability must be in [0, 1)")
        if min(self.spawn_interval_score_step, self.speed_score_step, self.size_score_step) <= 0:
            raise ConfigurationError("score steps must be > 0")

    def spawn_interval_ms(self, score: int) -> int:
        steps = _clamp_score(score) // self.spawn_interval_score_step
        interval = self.base_spawn_interval_ms - steps * self.spawn_interval_step_ms
        return max(interval, self.min_spawn_interval_ms)

    def speed(self, score: int) -> int:
        steps = _clamp_score(score) // self.speed_score_step
        return min(self.base_speed + steps, self.max_speed)

    def size(self, score: int) -> int:
        steps = _clamp_score(score) // self.size_score_step
        return max(self.base_size - steps * self.size_step, self.min_size)

    def hazard_probability(self, score: int) -> float:
        chance = self.base_hazard_probability + _clamp_score(score) * self.hazard_probability_per_point
        return min(chance, self.max_hazard_probability)

    def sample(self, score: int) -> DifficultyParams:
        """Sample all four parameters at ``score``."""
        return DifficultyParams(
            spawn_interval_ms=self.spawn_interval_ms(score),
            speed=self.speed(score),
            size=self.size(score),
            hazard_probability=self.hazard_probability(score),
        )


def _clamp_score(score: int) -> int:
    return max(0, int(score))


DEFAULT_CURVE = DifficultyCurve()


def spawn_interval_ms(score: int) -> int:
    """Milliseconds between spawns at ``score`` (non-increasing, floored)."""
    return DEFAULT_CURVE.spawn_interval_ms(score)


def object_speed(score: int) -> int:
    """Pixels per physics tick at ``score`` (non-decreasing, capped)."""
    return DEFAULT_CURVE.speed(score)


def object_size(score: int) -> int:
    """Object size in pixels at ``score`` (non-increasing, floored)."""
    return DEFAULT_CURVE.size(score)


def hazard_probability(score: int) -> float:
    """Chance that a spawned object is a hazard (non-decreasing, capped)."""
    return DEFAULT_CURVE.hazard_probability(score)
