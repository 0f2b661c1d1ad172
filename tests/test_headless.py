"""Smoke tests for the headless auto-pilot runs in main.py."""

from main import run_headless, run_snake_headless
from popcore import SessionPhase


class TestHeadless:
    def test_arcade_run_is_reproducible(self) -> None:
        first = run_headless("survival", max_frames=600, stats_interval=200, tap_every=5, seed=11)
        second = run_headless("survival", max_frames=600, stats_interval=200, tap_every=5, seed=11)

        assert first.phase in (SessionPhase.RUNNING, SessionPhase.ENDED)
        assert (first.score, first.lives, first.entities) == (second.score, second.lives, second.entities)

    def test_time_attack_ends_on_time(self) -> None:
        snapshot = run_headless("time_attack", max_frames=2000, stats_interval=500, tap_every=3, seed=5)
        assert snapshot.ended
        assert snapshot.time_left == 0

    def test_snake_autopilot_eats(self) -> None:
        snapshot = run_snake_headless(max_frames=500, stats_interval=100, seed=1)
        assert snapshot.score >= 10
