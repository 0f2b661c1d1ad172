"""Tests for the session clock."""

import pytest

from popcore.scheduler import SessionClock


def _recording_clock(*timers, max_firings=64):
    clock = SessionClock(generation=1, max_firings_per_advance=max_firings)
    fired = []
    for name, interval in timers:
        clock.add_timer(name, interval, lambda ms, name=name: fired.append(name))
    return clock, fired


class TestSessionClock:
    def test_fires_after_full_interval(self) -> None:
        clock, fired = _recording_clock(("physics", 50))
        assert clock.advance(49) == 0
        assert clock.advance(1) == 1
        assert fired == ["physics"]

    def test_catches_up_in_one_advance(self) -> None:
        clock, fired = _recording_clock(("physics", 50))
        assert clock.advance(250) == 5
        assert clock.fired_count("physics") == 5

    def test_chronological_order_with_registration_tiebreak(self) -> None:
        clock, fired = _recording_clock(("physics", 50), ("spawn", 50), ("countdown", 100))
        clock.advance(100)
        assert fired == ["physics", "spawn", "physics", "spawn", "countdown"]

    def test_callback_receives_interval(self) -> None:
        clock = SessionClock(generation=3)
        received = []
        clock.add_timer("countdown", 1000, received.append)
        clock.advance(2000)
        assert received == [1000, 1000]

    def test_cancel_is_idempotent(self) -> None:
        clock, fired = _recording_clock(("physics", 50))
        assert clock.cancel() is True
        assert clock.cancel() is False
        assert clock.advance(500) == 0
        assert fired == []

    def test_cancel_from_callback_stops_due_timers(self) -> None:
        clock = SessionClock(generation=1)
        fired = []

        def end_session(ms: int) -> None:
            fired.append("physics")
            clock.cancel()

        clock.add_timer("physics", 50, end_session)
        clock.add_timer("spawn", 50, lambda ms: fired.append("spawn"))
        clock.advance(200)
        assert fired == ["physics"]
        assert clock.cancelled

    def test_backlog_is_capped(self) -> None:
        clock, fired = _recording_clock(("physics", 10), max_firings=5)
        assert clock.advance(1000) == 5
        assert clock.dropped_firings == 95
        assert clock.advance(10) == 1

    def test_invalid_timers_rejected(self) -> None:
        clock = SessionClock(generation=1)
        with pytest.raises(ValueError):
            clock.add_timer("physics", 0, lambda ms: None)
        clock.add_timer("physics", 50, lambda ms: None)
        with pytest.raises(ValueError):
            clock.add_timer("physics", 50, lambda ms: None)

    def test_negative_elapsed_rejected(self) -> None:
        clock = SessionClock(generation=1)
        with pytest.raises(ValueError):
            clock.advance(-1)

    def test_progress_carries_into_new_clock(self) -> None:
        clock, _ = _recording_clock(("physics", 50), ("countdown", 1000))
        clock.advance(930)
        assert clock.progress() == {"physics": 30, "countdown": 930}

        resumed, fired = _recording_clock()
        resumed.add_timer("countdown", 1000, lambda ms: fired.append("countdown"), carried_ms=930)
        assert resumed.advance(69) == 0
        assert resumed.advance(1) == 1
        assert fired == ["countdown"]

    def test_carried_progress_is_clamped(self) -> None:
        clock = SessionClock(generation=1)
        clock.add_timer("countdown", 1000, lambda ms: None, carried_ms=5000)
        assert clock.advance(0) == 0
        assert clock.advance(1) == 1
