"""Session controller: the single owner of session state.

The controller is the only component that mutates a ``SessionState``. It
owns the phase state machine, the ``SessionClock`` of the running session
and the systems that run on that clock's timers.

All work is serialized through ``advance(elapsed_ms)``:

    1. Drain queued commands in FIFO order (stimuli from other threads).
    2. Fire due timers in deterministic order: physics, spawn, countdown.
    3. After every command and every timer firing, check termination.

The controller is not thread-safe on its own; the runner wraps every call
in one lock. Re-entering ``advance`` (e.g. from an event handler) is a
programming error and raises ``SessionError``.
"""

from __future__ import annotations

import logging
import random
import uuid
from dataclasses import dataclass, field
from typing import Callable, Dict, FrozenSet, Mapping, Optional, Set

from popcore.best_score import BestScoreStore, InMemoryBestScoreStore
from popcore.commands import (
    ActivateAtCommand,
    ActivateCommand,
    Command,
    CommandQueue,
    Direction,
    MoveCommand,
    PauseToggleCommand,
)
from popcore.config.difficulty import (
    BONUS_PROBABILITY,
    FREEZE_PROBABILITY,
    MAX_PLACEMENT_ATTEMPTS,
    SPAWN_SKIP_CHANCE,
)
from popcore.config.display import ACTOR_MOVE_STEP, ACTOR_SIZE, FIELD_HEIGHT, FIELD_WIDTH
from popcore.config.session import (
    COUNTDOWN_INTERVAL_MS,
    FREEZE_DURATION_MS,
    MAX_FIRINGS_PER_ADVANCE,
    PHYSICS_INTERVAL_MS,
    SPAWN_CHECK_INTERVAL_MS,
    WARMUP_MS,
)
from popcore.difficulty import DEFAULT_CURVE, DifficultyCurve
from popcore.entity_ids import EntityId
from popcore.events import EventBus, SessionEndedEvent, SessionStartedEvent
from popcore.exceptions import ConfigurationError, PersistenceError, SessionError
from popcore.modes import DEFAULT_RULES, GameMode, ModeRules
from popcore.result import Err, Ok, Result
from popcore.scheduler import SessionClock
from popcore.session import SessionSnapshot, SessionState
from popcore.state_machine import SessionPhase, create_session_state_machine
from popcore.systems import EntitySpawner, InteractionResolver, PhysicsSystem, Resolution
from popcore.util.rng import make_rng

logger = logging.getLogger(__name__)

END_REASON_LIVES = "lives_exhausted"
END_REASON_TIME = "time_up"


@dataclass
class SessionConfig:
    """Static configuration of a controller.

    Attributes:
        field_width: Play field width in pixels
        field_height: Play field height in pixels
        actor_size: Edge length of the actor
        actor_step: Pixels moved per move command
        actor_enabled: Whether actor contact resolves entities
        physics_interval_ms: Physics timer period
        spawn_check_interval_ms: Spawn timer period
        countdown_interval_ms: Countdown timer period (timed modes)
        freeze_duration_ms: How long a freeze entity slows the field
        warmup_ms: Session time before the warm-up flag is set
        max_firings_per_advance: Backlog cap for one advance call
        curve: Difficulty curve
        rules: Rule set per mode
        spawn_skip_chance: Chance to skip a due spawn while entities are live
        bonus_probability: Fixed bonus share of spawns
        freeze_probability: Fixed freeze share of spawns
        max_placement_attempts: Placement retries per spawn
        seed: RNG seed; None for a nondeterministic session
    """

    field_width: float = FIELD_WIDTH
    field_height: float = FIELD_HEIGHT
    actor_size: float = ACTOR_SIZE
    actor_step: float = ACTOR_MOVE_STEP
    actor_enabled: bool = True
    physics_interval_ms: int = PHYSICS_INTERVAL_MS
    spawn_check_interval_ms: int = SPAWN_CHECK_INTERVAL_MS
    countdown_interval_ms: int = COUNTDOWN_INTERVAL_MS
    freeze_duration_ms: int = FREEZE_DURATION_MS
    warmup_ms: int = WARMUP_MS
    max_firings_per_advance: int = MAX_FIRINGS_PER_ADVANCE
    curve: DifficultyCurve = DEFAULT_CURVE
    rules: Mapping[GameMode, ModeRules] = field(default_factory=lambda: dict(DEFAULT_RULES))
    spawn_skip_chance: float = SPAWN_SKIP_CHANCE
    bonus_probability: float = BONUS_PROBABILITY
    freeze_probability: float = FREEZE_PROBABILITY
    max_placement_attempts: int = MAX_PLACEMENT_ATTEMPTS
    seed: Optional[int] = None

    def __post_init__(self) -> None:
        if self.field_width <= 0 or self.field_height <= 0:
            raise ConfigurationError("field dimensions must be > 0")
        if self.actor_size <= 0:
            raise ConfigurationError("actor_size must be > 0")
        for name in ("physics_interval_ms", "spawn_check_interval_ms", "countdown_interval_ms"):
            if getattr(self, name) <= 0:
                raise ConfigurationError(f"{name} must be > 0")
        if not 0.0 <= self.spawn_skip_chance <= 1.0:
            raise ConfigurationError("spawn_skip_chance must be within [0, 1]")
        missing = [mode.value for mode in GameMode if mode not in self.rules]
        if missing:
            raise ConfigurationError(f"rules missing for modes: {', '.join(missing)}")


class SessionController:
    """Drives play sessions through their lifecycle.

    Example:
        controller = SessionController(SessionConfig(seed=42))
        controller.start(GameMode.SURVIVAL)
        snapshot = controller.advance(50)
    """

    def __init__(
        self,
        config: Optional[SessionConfig] = None,
        *,
        event_bus: Optional[EventBus] = None,
        best_score_store: Optional[BestScoreStore] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.config = config or SessionConfig()
        self.event_bus = event_bus or EventBus()
        self.best_score_store: BestScoreStore = best_score_store or InMemoryBestScoreStore()
        self.rng = rng if rng is not None else make_rng(self.config.seed)

        self.resolver = InteractionResolver(self.event_bus, self.config.freeze_duration_ms)
        self.physics = PhysicsSystem(
            self.resolver,
            self.event_bus,
            actor_enabled=self.config.actor_enabled,
            warmup_ms=self.config.warmup_ms,
        )
        self.spawner = EntitySpawner(
            self.rng,
            self.config.curve,
            skip_chance=self.config.spawn_skip_chance,
            bonus_probability=self.config.bonus_probability,
            freeze_probability=self.config.freeze_probability,
            max_placement_attempts=self.config.max_placement_attempts,
        )

        self._phases = create_session_state_machine()
        self._commands = CommandQueue()
        self._state: Optional[SessionState] = None
        self._clock: Optional[SessionClock] = None
        self._generation = 0
        self._issued_ids: Set[str] = set()
        self._revision = 0
        self._advancing = False
        self._end_reason: Optional[str] = None
        self._best_score = self._load_best_score()

    # =========================================================================
    # Read-only accessors
    # =========================================================================

    @property
    def phase(self) -> SessionPhase:
        return self._phases.state

    @property
    def session_id(self) -> Optional[str]:
        return self._state.session_id if self._state else None

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def best_score(self) -> int:
        return self._best_score

    @property
    def end_reason(self) -> Optional[str]:
        return self._end_reason

    @property
    def issued_session_ids(self) -> FrozenSet[str]:
        return frozenset(self._issued_ids)

    @property
    def state(self) -> Optional[SessionState]:
        """Live state, for inspection only. Mutate through commands."""
        return self._state

    @property
    def clock(self) -> Optional[SessionClock]:
        return self._clock

    @property
    def pending_commands(self) -> int:
        return len(self._commands)

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot.capture(self._state, self.phase, self._revision, self._best_score)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def start(self, mode: GameMode = GameMode.CLASSIC) -> Result[str, str]:
        """Start a fresh session from idle or after a session ended.

        Returns:
            Ok(session_id) or Err(message) when a session is in progress
        """
        with self._serialized("start"):
            if self.phase not in (SessionPhase.IDLE, SessionPhase.ENDED):
                return Err(f"Cannot start while {self.phase.value}")

            self._teardown_clock()
            self._generation += 1
            session_id = self._mint_session_id()
            rules = self.config.rules[mode]
            self._state = SessionState.fresh(
                session_id=session_id,
                generation=self._generation,
                mode=mode,
                rules=rules,
                field_width=self.config.field_width,
                field_height=self.config.field_height,
                actor_size=self.config.actor_size,
            )
            self._end_reason = None
            self._commands.clear()
            self._phases.transition(SessionPhase.RUNNING, reason=f"start {mode.value}")
            self._clock = self._build_clock(self._state)
            self._touch()

        logger.info(
            "Session %s started (mode=%s, generation=%d, lives=%d)",
            session_id[:8],
            mode.value,
            self._generation,
            rules.initial_lives,
        )
        self.event_bus.emit(
            SessionStartedEvent(session_id=session_id, mode=mode.value, generation=self._generation)
        )
        return Ok(session_id)

    def pause(self) -> Result[SessionPhase, str]:
        with self._serialized("pause"):
            return self._pause()

    def resume(self) -> Result[SessionPhase, str]:
        with self._serialized("resume"):
            return self._resume()

    def toggle_pause(self) -> Result[SessionPhase, str]:
        with self._serialized("toggle_pause"):
            return self._toggle_pause()

    def reset(self) -> Result[SessionPhase, str]:
        """Return to idle from any phase, discarding the current session."""
        with self._serialized("reset"):
            self._teardown_clock()
            self._commands.clear()
            self._state = None
            self._end_reason = None
            result = self._phases.try_transition(SessionPhase.IDLE, reason="reset")
            self._touch()
        logger.info("Session controller reset to idle")
        return result

    # =========================================================================
    # Stimuli
    # =========================================================================

    def submit(self, command: Command) -> bool:
        """Queue a command for the next ``advance``. Safe from any thread."""
        return self._commands.submit(command)

    def activate(self, entity_id) -> Optional[Resolution]:
        """Resolve an entity immediately. Stale or unknown ids are a no-op."""
        with self._serialized("activate"):
            return self._apply(ActivateCommand(entity_id=EntityId.coerce(entity_id)))

    def activate_at(self, x: float, y: float) -> Optional[Resolution]:
        with self._serialized("activate_at"):
            return self._apply(ActivateAtCommand(x=x, y=y))

    def move(self, direction: Direction) -> None:
        with self._serialized("move"):
            self._apply(MoveCommand(direction=direction))

    # =========================================================================
    # Time
    # =========================================================================

    def advance(self, elapsed_ms: int) -> SessionSnapshot:
        """Apply queued commands, then run every timer due within ``elapsed_ms``.

        Raises:
            SessionError: If called re-entrantly
        """
        with self._serialized("advance"):
            for command in self._commands.drain():
                self._apply(command)

            if self._clock is not None and self.phase is SessionPhase.RUNNING:
                if self._clock.advance(elapsed_ms):
                    self._touch()
        return self.snapshot()

    # =========================================================================
    # Internals
    # =========================================================================

    def _serialized(self, operation: str) -> "_ReentrancyGuard":
        return _ReentrancyGuard(self, operation)

    def _apply(self, command: Command) -> Optional[Resolution]:
        state = self._state
        if command.session_id is not None and (state is None or command.session_id != state.session_id):
            logger.debug("Dropping %s for superseded session %s", type(command).__name__, command.session_id)
            return None

        if isinstance(command, PauseToggleCommand):
            result = self._toggle_pause()
            if result.is_err():
                logger.debug("Pause toggle ignored: %s", result.error)
            return None

        if state is None or self.phase is not SessionPhase.RUNNING:
            logger.debug("Ignoring %s while %s", type(command).__name__, self.phase.value)
            return None

        resolution = None
        if isinstance(command, ActivateCommand):
            resolution = self.resolver.resolve(state, command.entity_id)
        elif isinstance(command, ActivateAtCommand):
            resolution = self.resolver.resolve_at(state, command.x, command.y)
        elif isinstance(command, MoveCommand):
            state.actor.move(command.direction.sign * self.config.actor_step)
        else:
            raise SessionError(f"Unknown command type: {type(command).__name__}")

        self._touch()
        self._check_termination()
        return resolution

    def _pause(self) -> Result[SessionPhase, str]:
        result = self._phases.try_transition(SessionPhase.PAUSED, tick=self._tick(), reason="pause")
        if result.is_ok():
            if self._clock is not None and self._state is not None:
                self._state.timer_progress_ms = self._clock.progress()
            self._teardown_clock()
            self._touch()
            logger.info("Session %s paused", self._short_id())
        return result

    def _resume(self) -> Result[SessionPhase, str]:
        if self.phase is not SessionPhase.PAUSED:
            return Err(f"Cannot resume while {self.phase.value}")
        result = self._phases.try_transition(SessionPhase.RUNNING, tick=self._tick(), reason="resume")
        if result.is_ok() and self._state is not None:
            self._clock = self._build_clock(self._state)
            self._state.timer_progress_ms = {}
            self._touch()
            logger.info("Session %s resumed", self._short_id())
        return result

    def _toggle_pause(self) -> Result[SessionPhase, str]:
        if self.phase is SessionPhase.RUNNING:
            return self._pause()
        if self.phase is SessionPhase.PAUSED:
            return self._resume()
        return Err(f"Cannot toggle pause while {self.phase.value}")

    def _build_clock(self, state: SessionState) -> SessionClock:
        """Fresh clock for ``state``, picking up any timer progress saved at pause."""
        clock = SessionClock(state.generation, self.config.max_firings_per_advance)
        carried = state.timer_progress_ms
        clock.add_timer(
            "physics",
            self.config.physics_interval_ms,
            self._guarded(state.generation, self.physics.update),
            carried.get("physics", 0),
        )
        clock.add_timer(
            "spawn",
            self.config.spawn_check_interval_ms,
            self._guarded(state.generation, self.spawner.update),
            carried.get("spawn", 0),
        )
        if state.rules.timed:
            clock.add_timer(
                "countdown",
                self.config.countdown_interval_ms,
                self._guarded(state.generation, _count_down),
                carried.get("countdown", 0),
            )
        return clock

    def _guarded(self, generation: int, step: Callable[[SessionState, int], object]) -> Callable[[int], None]:
        """Wrap a timer step so it only runs for the session it was built for."""

        def fire(interval_ms: int) -> None:
            state = self._state
            if state is None or state.generation != generation or self.phase is not SessionPhase.RUNNING:
                return
            step(state, interval_ms)
            self._check_termination()

        return fire

    def _check_termination(self) -> None:
        state = self._state
        if state is None or self.phase is not SessionPhase.RUNNING:
            return
        if state.lives_exhausted():
            self._end(END_REASON_LIVES)
        elif state.time_exhausted():
            self._end(END_REASON_TIME)

    def _end(self, reason: str) -> None:
        state = self._state
        assert state is not None
        self._phases.transition(SessionPhase.ENDED, tick=state.tick, reason=reason)
        self._teardown_clock()
        self._end_reason = reason
        if state.score > self._best_score:
            self._best_score = state.score
            self._save_best_score(state.score)
        self._touch()

        logger.info(
            "Session %s ended (%s): score=%d best=%d",
            state.session_id[:8],
            reason,
            state.score,
            self._best_score,
        )
        self.event_bus.emit(
            SessionEndedEvent(
                session_id=state.session_id,
                mode=state.mode.value,
                final_score=state.score,
                reason=reason,
                best_score=self._best_score,
            )
        )

    def _teardown_clock(self) -> None:
        if self._clock is not None:
            self._clock.cancel()
            self._clock = None

    def _mint_session_id(self) -> str:
        session_id = uuid.uuid4().hex
        while session_id in self._issued_ids:
            session_id = uuid.uuid4().hex
        self._issued_ids.add(session_id)
        return session_id

    def _load_best_score(self) -> int:
        try:
            return max(0, int(self.best_score_store.load()))
        except PersistenceError as e:
            logger.warning("Best score unavailable, starting from 0: %s", e)
            return 0

    def _save_best_score(self, score: int) -> None:
        try:
            self.best_score_store.save(score)
        except PersistenceError as e:
            logger.warning("Best score not persisted: %s", e)

    def _touch(self) -> None:
        self._revision += 1

    def _tick(self) -> int:
        return self._state.tick if self._state else 0

    def _short_id(self) -> str:
        return self._state.session_id[:8] if self._state else "-"

    def get_debug_info(self) -> Dict[str, object]:
        return {
            "phase": self.phase.value,
            "generation": self._generation,
            "revision": self._revision,
            "clock": repr(self._clock),
            "pending_commands": len(self._commands),
            "physics": self.physics.get_debug_info(),
            "spawner": self.spawner.get_debug_info(),
            "resolved": self.resolver.resolved_count,
        }


def _count_down(state: SessionState, interval_ms: int) -> None:
    if state.time_left is not None and state.time_left > 0:
        state.time_left -= 1


class _ReentrancyGuard:
    """Context manager rejecting nested controller operations."""

    def __init__(self, controller: SessionController, operation: str) -> None:
        self.controller = controller
        self.operation = operation

    def __enter__(self) -> None:
        if self.controller._advancing:
            raise SessionError(f"Re-entrant controller call: {self.operation}")
        self.controller._advancing = True

    def __exit__(self, exc_type, exc, tb) -> None:
        self.controller._advancing = False
