"""Tests for the interaction resolver."""

from popcore.entities import EntityCategory
from popcore.entity_ids import EntityId
from popcore.events import EntityResolvedEvent, ScoreEvent, ScoreEventKind
from popcore.modes import GameMode
from popcore.systems import InteractionResolver, ResolutionCause


class TestResolve:
    def test_normal_entity_scores(self, event_bus, recorded, make_state, make_entity) -> None:
        state = make_state()
        entity = make_entity(state, size=40.0)
        resolver = InteractionResolver(event_bus)

        resolution = resolver.resolve(state, entity.entity_id)

        assert resolution is not None
        assert resolution.score_delta == 26
        assert state.score == 26
        assert entity.entity_id not in state.entities
        assert state.warmed_up
        (event,) = recorded[ScoreEvent]
        assert event.kind is ScoreEventKind.SCORE
        assert event.score == 26
        assert event.entity_id == entity.entity_id.value

    def test_no_double_resolution(self, event_bus, recorded, make_state, make_entity) -> None:
        """A second stimulus for the same id is a silent no-op."""
        state = make_state()
        entity = make_entity(state, category=EntityCategory.BONUS)
        resolver = InteractionResolver(event_bus)

        assert resolver.resolve(state, entity.entity_id) is not None
        assert resolver.resolve(state, entity.entity_id) is None

        assert state.score == 50
        assert len(recorded[ScoreEvent]) == 1
        assert len(recorded[EntityResolvedEvent]) == 1

    def test_unknown_id_is_noop(self, event_bus, make_state) -> None:
        state = make_state()
        resolver = InteractionResolver(event_bus)
        assert resolver.resolve(state, EntityId(999)) is None
        assert state.score == 0

    def test_hazard_floors_score_and_costs_life(self, event_bus, recorded, make_state, make_entity) -> None:
        state = make_state(GameMode.SURVIVAL)
        state.apply_score_delta(10)
        hazard = make_entity(state, category=EntityCategory.HAZARD)
        resolver = InteractionResolver(event_bus)

        resolution = resolver.resolve(state, hazard.entity_id)

        assert state.score == 0
        assert state.lives == 2
        assert resolution.score_delta == -10
        assert resolution.life_delta == -1
        (event,) = recorded[ScoreEvent]
        assert event.kind is ScoreEventKind.PENALTY
        assert event.score == 0

    def test_hazard_at_zero_lives_stays_zero(self, event_bus, make_state, make_entity) -> None:
        state = make_state(GameMode.SURVIVAL)
        state.apply_life_delta(-3)
        hazard = make_entity(state, category=EntityCategory.HAZARD)
        InteractionResolver(event_bus).resolve(state, hazard.entity_id)
        assert state.lives == 0
        assert state.score == 0

    def test_freeze_arms_and_rearms(self, event_bus, recorded, make_state, make_entity) -> None:
        state = make_state()
        resolver = InteractionResolver(event_bus, freeze_duration_ms=4000)
        first = make_entity(state, category=EntityCategory.FREEZE)
        resolver.resolve(state, first.entity_id)
        assert state.freeze_remaining_ms == 4000

        state.freeze_remaining_ms = 1000
        second = make_entity(state, category=EntityCategory.FREEZE)
        resolver.resolve(state, second.entity_id)
        assert state.freeze_remaining_ms == 4000
        assert state.score == 0
        assert recorded[ScoreEvent] == []
        assert len(recorded[EntityResolvedEvent]) == 2


class TestHitTest:
    def test_newest_overlapping_entity_wins(self, event_bus, make_state, make_entity) -> None:
        state = make_state()
        older = make_entity(state, x=100.0, y=100.0, size=50.0)
        newer = make_entity(state, x=120.0, y=120.0, size=50.0)
        resolver = InteractionResolver(event_bus)

        assert resolver.hit_test(state, 130.0, 130.0) == newer.entity_id
        assert resolver.hit_test(state, 105.0, 105.0) == older.entity_id
        assert resolver.hit_test(state, 300.0, 300.0) is None

    def test_resolve_at(self, event_bus, make_state, make_entity) -> None:
        state = make_state()
        make_entity(state, x=100.0, y=100.0, size=50.0)
        newer = make_entity(state, x=120.0, y=120.0, size=50.0)
        resolver = InteractionResolver(event_bus)

        resolution = resolver.resolve_at(state, 130.0, 130.0)

        assert resolution.entity_id == newer.entity_id
        assert resolution.cause is ResolutionCause.ACTIVATE
        assert len(state.entities) == 1

    def test_resolve_at_miss(self, event_bus, make_state) -> None:
        state = make_state()
        assert InteractionResolver(event_bus).resolve_at(state, 10.0, 10.0) is None


class TestActorContacts:
    def test_contacts_resolved_newest_first(self, event_bus, recorded, make_state, make_entity) -> None:
        state = make_state()
        actor_x = state.actor.x
        first = make_entity(state, x=actor_x, y=5.0, size=30.0)
        second = make_entity(state, x=actor_x + 5, y=10.0, size=30.0)
        make_entity(state, x=0.0, y=5.0, size=30.0)  # away from the actor

        resolutions = InteractionResolver(event_bus).resolve_actor_contacts(state)

        assert [r.entity_id for r in resolutions] == [second.entity_id, first.entity_id]
        assert all(r.cause is ResolutionCause.ACTOR for r in resolutions)
        assert [e.entity_id for e in recorded[EntityResolvedEvent]] == [
            second.entity_id.value,
            first.entity_id.value,
        ]
        assert len(state.entities) == 1

    def test_contacts_stop_when_lives_run_out(self, event_bus, recorded, make_state, make_entity) -> None:
        state = make_state(GameMode.SURVIVAL)
        state.lives = 1
        actor_x = state.actor.x
        normal = make_entity(state, x=actor_x, y=5.0, size=30.0)
        hazard = make_entity(state, category=EntityCategory.HAZARD, x=actor_x + 5, y=10.0, size=30.0)

        resolutions = InteractionResolver(event_bus).resolve_actor_contacts(state)

        assert [r.entity_id for r in resolutions] == [hazard.entity_id]
        assert state.lives == 0
        assert state.score == 0
        assert normal.entity_id in state.entities
        assert [e.kind for e in recorded[ScoreEvent]] == [ScoreEventKind.PENALTY]
