"""Pytest configuration and fixtures for arcade tests."""

import random

import pytest


@pytest.fixture
def seeded_rng():
    """Provide a deterministic RNG for tests."""
    return random.Random(42)


@pytest.fixture
def event_bus():
    from popcore.events import EventBus

    return EventBus()


@pytest.fixture
def make_state():
    """Factory for a fresh session state in a given mode."""
    from popcore.config.display import ACTOR_SIZE, FIELD_HEIGHT, FIELD_WIDTH
    from popcore.modes import DEFAULT_RULES, GameMode
    from popcore.session import SessionState

    def _make(mode=GameMode.CLASSIC, rules=None, session_id="session-1", generation=1):
        return SessionState.fresh(
            session_id=session_id,
            generation=generation,
            mode=mode,
            rules=rules or DEFAULT_RULES[mode],
            field_width=FIELD_WIDTH,
            field_height=FIELD_HEIGHT,
            actor_size=ACTOR_SIZE,
        )

    return _make


@pytest.fixture
def make_entity():
    """Factory that inserts an entity into a state with the next id."""
    from popcore.entities import Entity, EntityCategory
    from popcore.scoring import points_for

    def _make(state, category=EntityCategory.NORMAL, x=10.0, y=300.0, size=40.0, speed=2.0):
        entity = Entity(
            entity_id=state.ids.allocate(),
            x=x,
            y=y,
            size=size,
            speed=speed,
            category=category,
            points=points_for(category, size),
        )
        state.entities.add(entity)
        return entity

    return _make


@pytest.fixture
def controller(event_bus):
    """Seeded controller with an in-memory best score."""
    from popcore.best_score import InMemoryBestScoreStore
    from popcore.session_controller import SessionConfig, SessionController

    return SessionController(
        SessionConfig(seed=42),
        event_bus=event_bus,
        best_score_store=InMemoryBestScoreStore(),
    )


@pytest.fixture
def recorded(event_bus):
    """Record every domain event emitted on the shared bus, by type."""
    from popcore.events import (
        EntityEscapedEvent,
        EntityResolvedEvent,
        ScoreEvent,
        SessionEndedEvent,
        SessionStartedEvent,
    )

    events = {}
    for event_type in (
        ScoreEvent,
        EntityResolvedEvent,
        EntityEscapedEvent,
        SessionStartedEvent,
        SessionEndedEvent,
    ):
        bucket = events.setdefault(event_type, [])
        event_bus.subscribe(event_type, bucket.append)
    return events
