"""Tests for the score-driven difficulty curve."""

import pytest

from popcore.difficulty import (
    DEFAULT_CURVE,
    DifficultyCurve,
    hazard_probability,
    object_size,
    object_speed,
    spawn_interval_ms,
)
from popcore.exceptions import ConfigurationError

SCORES = list(range(0, 3001, 7)) + [10_000, 1_000_000]


class TestCurveValues:
    """Known values at specific scores."""

    def test_values_at_zero(self) -> None:
        assert spawn_interval_ms(0) == 1000
        assert object_speed(0) == 2
        assert object_size(0) == 60
        assert hazard_probability(0) == pytest.approx(0.08)

    def test_step_boundaries(self) -> None:
        """Interval and size step every 50 points, speed every 100."""
        assert spawn_interval_ms(49) == 1000
        assert spawn_interval_ms(50) == 930
        assert object_size(50) == 56
        assert object_speed(99) == 2
        assert object_speed(100) == 3

    def test_bounds_are_reached(self) -> None:
        assert spawn_interval_ms(10_000) == 350
        assert object_speed(10_000) == 7
        assert object_size(10_000) == 18
        assert hazard_probability(10_000) == pytest.approx(0.25)

    def test_negative_score_treated_as_zero(self) -> None:
        assert DEFAULT_CURVE.sample(-500) == DEFAULT_CURVE.sample(0)


class TestCurveMonotonicity:
    """Difficulty never eases as the score grows."""

    def test_spawn_interval_non_increasing(self) -> None:
        values = [spawn_interval_ms(s) for s in SCORES]
        assert all(a >= b for a, b in zip(values, values[1:]))
        assert min(values) >= 350

    def test_speed_non_decreasing(self) -> None:
        values = [object_speed(s) for s in SCORES]
        assert all(a <= b for a, b in zip(values, values[1:]))
        assert max(values) <= 7

    def test_size_non_increasing_and_positive(self) -> None:
        values = [object_size(s) for s in SCORES]
        assert all(a >= b for a, b in zip(values, values[1:]))
        assert min(values) >= 18

    def test_hazard_probability_non_decreasing(self) -> None:
        values = [hazard_probability(s) for s in SCORES]
        assert all(a <= b for a, b in zip(values, values[1:]))
        assert max(values) <= 0.25


class TestCustomCurve:
    def test_custom_parameters(self) -> None:
        curve = DifficultyCurve(base_spawn_interval_ms=500, min_spawn_interval_ms=100, spawn_interval_step_ms=100)
        assert curve.spawn_interval_ms(0) == 500
        assert curve.spawn_interval_ms(200) == 100

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"min_spawn_interval_ms": 0},
            {"min_size": 0},
            {"max_hazard_probability": 1.0},
            {"speed_score_step": 0},
        ],
    )
    def test_invalid_parameters_rejected(self, kwargs) -> None:
        with pytest.raises(ConfigurationError):
            DifficultyCurve(**kwargs)
