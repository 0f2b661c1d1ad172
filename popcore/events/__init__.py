"""Events module for domain event dispatch.

This module provides the EventBus that decouples session logic from
reporting and diagnostics, plus typed domain event definitions.
"""

from popcore.events.domain_events import (
    EntityEscapedEvent,
    EntityResolvedEvent,
    ScoreEvent,
    ScoreEventKind,
    SessionEndedEvent,
    SessionStartedEvent,
)
from popcore.events.event_bus import EventBus

__all__ = [
    "EntityEscapedEvent",
    "EntityResolvedEvent",
    "EventBus",
    "ScoreEvent",
    "ScoreEventKind",
    "SessionEndedEvent",
    "SessionStartedEvent",
]
