"""Core arcade simulation engine.

This package contains the pure simulation logic for the bubble arcade, with
no UI dependencies. Key modules include:

- difficulty: Score-driven difficulty curve
- entities / entity_set: Live falling/rising objects and their container
- systems: Spawning, physics and interaction systems run on each tick
- session_controller: Session state machine and tick scheduling
- telemetry: Fire-and-forget reporting of scoring events
- snake: Grid-based snake simulation sharing the same session phases

Design note: this module exposes a small, explicit public API via ``__all__``.
Use direct imports from submodules for internal helpers.
"""

from popcore.modes import GameMode
from popcore.session import SessionSnapshot
from popcore.session_controller import SessionConfig, SessionController
from popcore.state_machine import SessionPhase

# Public API of the core package. Keep this list intentionally small.
__all__ = [
    "GameMode",
    "SessionConfig",
    "SessionController",
    "SessionPhase",
    "SessionSnapshot",
]
