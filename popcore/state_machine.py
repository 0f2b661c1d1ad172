"""Session phases and the table of moves between them.

A session is in exactly one of IDLE, RUNNING, PAUSED or ENDED. The
controller asks the machine before touching any timers, so a refused move
(pausing an ended session, say) leaves the clock exactly as it was:

    phases = create_session_state_machine()
    phases.transition(SessionPhase.RUNNING)
    phases.try_transition(SessionPhase.PAUSED)   # Ok(PAUSED)
    phases.try_transition(SessionPhase.PAUSED)   # Err("... PAUSED -> PAUSED ...")

Going back to IDLE is allowed from every phase, since reset must always
work.
"""

from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Deque, Dict, FrozenSet, Generic, Iterable, List, Mapping, TypeVar

from popcore.exceptions import InvalidTransitionError
from popcore.result import Err, Ok, Result

S = TypeVar("S", bound=Enum)


@dataclass(frozen=True)
class StateTransition(Generic[S]):
    """One accepted move, kept for debugging a session after the fact."""

    from_state: S
    to_state: S
    tick: int
    reason: str = ""


class StateMachine(Generic[S]):
    """Current phase plus the moves allowed out of it."""

    def __init__(
        self,
        initial_state: S,
        valid_transitions: Mapping[S, Iterable[S]],
        track_history: bool = False,
        max_history: int = 100,
    ) -> None:
        self._allowed: Dict[S, FrozenSet[S]] = {
            source: frozenset(targets) for source, targets in valid_transitions.items()
        }
        if initial_state not in self._allowed:
            raise ValueError(f"{initial_state!r} has no entry in the transition table")
        self._state = initial_state
        self._track_history = track_history
        self._history: Deque[StateTransition[S]] = deque(maxlen=max_history)

    @property
    def state(self) -> S:
        return self._state

    @property
    def history(self) -> List[StateTransition[S]]:
        """Accepted moves, oldest first. Always empty unless tracking."""
        return list(self._history)

    def can_transition(self, target: S) -> bool:
        return target in self._allowed.get(self._state, frozenset())

    def try_transition(self, target: S, tick: int = 0, reason: str = "") -> Result[S, str]:
        """Move to ``target`` if the table allows it.

        A refused move returns ``Err`` naming both phases and leaves the
        current phase untouched.
        """
        if not self.can_transition(target):
            allowed = sorted(t.name for t in self._allowed.get(self._state, ()))
            return Err(
                f"Invalid transition: {self._state.name} -> {target.name} "
                f"(allowed: {', '.join(allowed) or 'none'})"
            )
        if self._track_history:
            self._history.append(StateTransition(self._state, target, tick, reason))
        self._state = target
        return Ok(target)

    def transition(self, target: S, tick: int = 0, reason: str = "") -> S:
        """Like ``try_transition`` but raises ``InvalidTransitionError`` on refusal."""
        result = self.try_transition(target, tick, reason)
        if result.is_err():
            raise InvalidTransitionError(result.error)
        return target

    def __repr__(self) -> str:
        return f"StateMachine(state={self._state.name})"


class SessionPhase(Enum):
    IDLE = "idle"  # menu, no session
    RUNNING = "running"
    PAUSED = "paused"  # clock torn down
    ENDED = "ended"  # lives or time exhausted


SESSION_TRANSITIONS: Dict[SessionPhase, List[SessionPhase]] = {
    SessionPhase.IDLE: [SessionPhase.RUNNING, SessionPhase.IDLE],
    SessionPhase.RUNNING: [SessionPhase.PAUSED, SessionPhase.ENDED, SessionPhase.IDLE],
    SessionPhase.PAUSED: [SessionPhase.RUNNING, SessionPhase.ENDED, SessionPhase.IDLE],
    SessionPhase.ENDED: [SessionPhase.RUNNING, SessionPhase.IDLE],
}


def create_session_state_machine(track_history: bool = True) -> StateMachine[SessionPhase]:
    return StateMachine(SessionPhase.IDLE, SESSION_TRANSITIONS, track_history=track_history)
