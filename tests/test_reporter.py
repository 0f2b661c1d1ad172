"""Tests for the background event reporter."""

import time

import pytest

from popcore.entities import EntityCategory
from popcore.events import ScoreEvent, ScoreEventKind
from popcore.modes import GameMode
from popcore.telemetry import EventReporter, LoggingSink, ReportRecord
from tests.fakes.recording_sink import FailingSink, RecordingSink
from tests.fakes.scenario import place_entity


@pytest.fixture
def reporter_factory():
    started = []

    def _make(sink, **kwargs):
        reporter = EventReporter(sink, **kwargs)
        reporter.start()
        started.append(reporter)
        return reporter

    yield _make
    for reporter in started:
        reporter.stop()


def _event(score: int, kind: ScoreEventKind = ScoreEventKind.SCORE) -> ScoreEvent:
    return ScoreEvent(session_id="f" * 32, kind=kind, score=score, entity_id=1, tick=0)


class TestEventReporter:
    def test_record_from_event(self) -> None:
        record = ReportRecord.from_event(_event(30, ScoreEventKind.PENALTY))
        assert record.to_payload() == {"gid": "f" * 32, "score": 30, "event": "penalty"}

    def test_dispatch_delivers(self, reporter_factory) -> None:
        sink = RecordingSink()
        reporter = reporter_factory(sink)

        assert reporter.dispatch(_event(10))
        assert reporter.flush(timeout=5.0)

        assert sink.records == [ReportRecord(session_id="f" * 32, kind="score", score=10)]
        assert reporter.get_stats()["delivered"] == 1

    def test_reports_overlap_in_flight(self, reporter_factory) -> None:
        """Ten 50 ms reports settle far faster than back to back."""
        sink = RecordingSink(delay=0.05)
        reporter = reporter_factory(sink, max_in_flight=16)

        started = time.perf_counter()
        for score in range(10):
            reporter.dispatch(_event(score))
        assert reporter.flush(timeout=5.0)
        elapsed = time.perf_counter() - started

        assert elapsed < 0.3
        assert sink.max_active > 1

        assert sorted(r.score for r in sink.records) == list(range(10))
        assert reporter.get_stats()["in_flight"] == 0

    def test_dispatch_returns_immediately_with_slow_sink(self, reporter_factory) -> None:
        reporter = reporter_factory(RecordingSink(delay=1.0))

        started = time.perf_counter()
        for score in range(20):
            assert reporter.dispatch(_event(score))
        assert time.perf_counter() - started < 0.2
        assert reporter.get_stats()["dispatched"] == 20

    def test_failures_are_counted_not_raised(self, reporter_factory) -> None:
        reporter = reporter_factory(FailingSink())

        assert reporter.dispatch(_event(10))
        assert reporter.flush(timeout=5.0)

        stats = reporter.get_stats()
        assert stats["failed"] == 1
        assert stats["delivered"] == 0

    def test_dispatch_before_start_is_dropped(self) -> None:
        reporter = EventReporter(LoggingSink())
        assert not reporter.dispatch(_event(10))
        assert reporter.get_stats()["dropped"] == 1

    def test_stop_closes_sink(self) -> None:
        sink = RecordingSink()
        reporter = EventReporter(sink)
        reporter.start()
        reporter.dispatch(_event(5))
        reporter.stop()

        assert sink.closed
        assert len(sink.records) == 1
        assert not reporter.running
        assert not reporter.dispatch(_event(6))

    def test_invalid_max_in_flight(self) -> None:
        with pytest.raises(ValueError):
            EventReporter(LoggingSink(), max_in_flight=0)


class TestReporterWithController:
    def test_bonus_at_one_thousand(self, controller, event_bus, reporter_factory) -> None:
        """One bonus resolution at score 1000 yields exactly one report of 1050."""
        session_id = controller.start(GameMode.CLASSIC).unwrap()
        for _ in range(20):
            controller.activate(place_entity(controller, EntityCategory.BONUS, x=10.0, y=300.0))
        assert controller.snapshot().score == 1000

        sink = RecordingSink()
        reporter = reporter_factory(sink)
        reporter.attach(event_bus)
        bonus = place_entity(controller, EntityCategory.BONUS, x=10.0, y=300.0)
        controller.activate(bonus)
        assert reporter.flush(timeout=5.0)

        assert controller.snapshot().score == 1050
        assert sink.records == [ReportRecord(session_id=session_id, kind="bonus", score=1050)]

    def test_detach_stops_reports(self, controller, event_bus, reporter_factory) -> None:
        sink = RecordingSink()
        reporter = reporter_factory(sink)
        reporter.attach(event_bus)
        reporter.detach(event_bus)

        controller.start()
        controller.activate(place_entity(controller, EntityCategory.BONUS, x=10.0, y=300.0))
        reporter.flush(timeout=5.0)
        assert sink.records == []

    def test_slow_ledger_does_not_delay_resolution(self, controller, event_bus, reporter_factory) -> None:
        sink = RecordingSink(delay=1.0)
        reporter = reporter_factory(sink)
        reporter.attach(event_bus)
        controller.start()
        placed = [place_entity(controller, EntityCategory.BONUS, x=10.0 + 60 * i, y=300.0) for i in range(5)]

        started = time.perf_counter()
        for entity_id in placed:
            assert controller.activate(entity_id) is not None
        controller.advance(50)
        elapsed = time.perf_counter() - started

        assert elapsed < 0.2
        assert controller.snapshot().score == 250
        assert sink.records == []
        assert reporter.flush(timeout=5.0)
        assert sorted(r.score for r in sink.records) == [50, 100, 150, 200, 250]
