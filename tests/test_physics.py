"""Tests for the physics tick step."""

import pytest

from popcore.entities import EntityCategory
from popcore.events import EntityEscapedEvent
from popcore.modes import GameMode
from popcore.systems import InteractionResolver, PhysicsSystem


@pytest.fixture
def physics(event_bus):
    return PhysicsSystem(InteractionResolver(event_bus), event_bus)


class TestMovement:
    def test_entities_move_by_speed(self, physics, make_state, make_entity) -> None:
        state = make_state()
        entity = make_entity(state, y=300.0, speed=3.0)
        physics.update(state, 50)
        assert entity.y == pytest.approx(297.0)
        assert state.tick == 1
        assert state.elapsed_ms == 50

    def test_y_strictly_decreases(self, physics, make_state, make_entity) -> None:
        state = make_state()
        entity = make_entity(state, y=500.0, speed=2.5)
        previous = entity.y
        for _ in range(10):
            physics.update(state, 50)
            assert entity.y < previous
            previous = entity.y

    def test_freeze_halves_speed_and_expires(self, physics, make_state, make_entity) -> None:
        state = make_state()
        entity = make_entity(state, y=500.0, speed=4.0)
        state.freeze_remaining_ms = 100

        physics.update(state, 50)
        assert entity.y == pytest.approx(498.0)
        assert state.freeze_remaining_ms == 50

        physics.update(state, 50)
        assert entity.y == pytest.approx(496.0)
        assert not state.freeze_active

        physics.update(state, 50)
        assert entity.y == pytest.approx(492.0)

    def test_warmup_after_two_seconds(self, physics, make_state) -> None:
        state = make_state()
        for _ in range(39):
            physics.update(state, 50)
        assert not state.warmed_up
        physics.update(state, 50)
        assert state.warmed_up


class TestActorContact:
    def test_hazard_hits_actor(self, physics, make_state, make_entity) -> None:
        state = make_state(GameMode.SURVIVAL)
        make_entity(state, category=EntityCategory.HAZARD, x=state.actor.x, y=20.0, size=30.0)

        result = physics.update(state, 50)

        assert result.details["actor_contacts"] == 1
        assert len(state.entities) == 0
        assert state.lives == 2
        assert state.score == 0

    def test_actor_contact_disabled(self, event_bus, make_state, make_entity) -> None:
        physics = PhysicsSystem(InteractionResolver(event_bus), event_bus, actor_enabled=False)
        state = make_state()
        make_entity(state, x=state.actor.x, y=20.0, size=30.0)
        physics.update(state, 50)
        assert len(state.entities) == 1


class TestEscape:
    def test_survival_escape_costs_life(self, physics, recorded, make_state, make_entity) -> None:
        state = make_state(GameMode.SURVIVAL)
        make_entity(state, x=0.0, y=-29.0, size=30.0, speed=2.0)

        result = physics.update(state, 50)

        assert result.details["escaped"] == 1
        assert state.lives == 2
        (event,) = recorded[EntityEscapedEvent]
        assert event.life_lost

    def test_survival_hazard_escape_is_free(self, physics, recorded, make_state, make_entity) -> None:
        state = make_state(GameMode.SURVIVAL)
        make_entity(state, category=EntityCategory.HAZARD, x=0.0, y=-29.0, size=30.0)
        physics.update(state, 50)
        assert state.lives == 3
        assert len(state.entities) == 0
        assert not recorded[EntityEscapedEvent][0].life_lost

    def test_classic_escape_is_free(self, physics, make_state, make_entity) -> None:
        state = make_state(GameMode.CLASSIC)
        make_entity(state, x=0.0, y=-29.0, size=30.0)
        physics.update(state, 50)
        assert state.lives == 999
        assert len(state.entities) == 0

    def test_lives_never_negative(self, physics, make_state, make_entity) -> None:
        state = make_state(GameMode.SURVIVAL)
        for offset in range(5):
            make_entity(state, x=offset * 35.0, y=-29.0, size=30.0)
        result = physics.update(state, 50)
        assert state.lives == 0
        assert result.details["lives_lost"] == 3

    def test_partially_visible_entity_stays(self, physics, make_state, make_entity) -> None:
        state = make_state(GameMode.SURVIVAL)
        make_entity(state, x=0.0, y=-20.0, size=30.0, speed=2.0)
        physics.update(state, 50)
        assert len(state.entities) == 1
        assert state.lives == 3
