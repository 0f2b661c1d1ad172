"""Fixed-interval timers owned by one running session.

A ``SessionClock`` is created when a session starts or resumes and torn
down when it pauses, ends or resets. It never reads the wall clock: the
driver feeds it elapsed milliseconds through ``advance()`` and the clock
fires every timer that became due, in chronological order (ties broken
by registration order). Ticks therefore cannot overlap, and a cancelled
clock cannot fire again.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from popcore.config.session import MAX_FIRINGS_PER_ADVANCE

logger = logging.getLogger(__name__)

TimerCallback = Callable[[int], None]


@dataclass
class _Timer:
    name: str
    interval_ms: int
    callback: TimerCallback
    order: int
    next_due_ms: int
    fired: int = 0


class SessionClock:
    """Accumulates elapsed time into ordered timer firings.

    Attributes:
        generation: Generation of the session this clock belongs to
    """

    def __init__(self, generation: int, max_firings_per_advance: int = MAX_FIRINGS_PER_ADVANCE) -> None:
        if max_firings_per_advance <= 0:
            raise ValueError("max_firings_per_advance must be > 0")
        self.generation = generation
        self._timers: List[_Timer] = []
        self._now_ms = 0
        self._cancelled = False
        self._max_firings = max_firings_per_advance
        self.dropped_firings = 0

    @property
    def now_ms(self) -> int:
        return self._now_ms

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def add_timer(self, name: str, interval_ms: int, callback: TimerCallback, carried_ms: int = 0) -> None:
        """Register a repeating timer that first fires after one interval.

        ``carried_ms`` is progress toward the first firing brought over from
        a torn-down clock (see ``progress``); it is clamped below one
        interval so a resumed timer never fires without time passing.
        """
        if interval_ms <= 0:
            raise ValueError(f"interval for timer {name!r} must be > 0")
        if any(timer.name == name for timer in self._timers):
            raise ValueError(f"duplicate timer: {name}")
        carried_ms = min(max(carried_ms, 0), interval_ms - 1)
        self._timers.append(
            _Timer(
                name=name,
                interval_ms=interval_ms,
                callback=callback,
                order=len(self._timers),
                next_due_ms=self._now_ms + interval_ms - carried_ms,
            )
        )

    def progress(self) -> Dict[str, int]:
        """Milliseconds each timer has accumulated since it last fired."""
        return {
            timer.name: timer.interval_ms - (timer.next_due_ms - self._now_ms)
            for timer in self._timers
        }

    def timer_names(self) -> List[str]:
        return [timer.name for timer in self._timers]

    def fired_count(self, name: str) -> int:
        for timer in self._timers:
            if timer.name == name:
                return timer.fired
        raise KeyError(name)

    def advance(self, elapsed_ms: int) -> int:
        """Move time forward and fire due timers.

        A callback may cancel the clock (e.g. the session ended); no
        further timers fire after that, not even ones already due.

        Returns:
            Number of timer firings
        """
        if elapsed_ms < 0:
            raise ValueError("elapsed_ms must be >= 0")
        if self._cancelled:
            return 0

        self._now_ms += elapsed_ms
        fired = 0
        while not self._cancelled:
            timer = self._next_due()
            if timer is None:
                break
            if fired >= self._max_firings:
                self._drop_backlog()
                break
            timer.next_due_ms += timer.interval_ms
            timer.fired += 1
            fired += 1
            timer.callback(timer.interval_ms)
        return fired

    def cancel(self) -> bool:
        """Stop the clock for good.

        Returns:
            True on the first call, False on repeated calls (no-op)
        """
        if self._cancelled:
            return False
        self._cancelled = True
        self._timers.clear()
        return True

    def _next_due(self) -> Optional[_Timer]:
        due = [timer for timer in self._timers if timer.next_due_ms <= self._now_ms]
        if not due:
            return None
        return min(due, key=lambda timer: (timer.next_due_ms, timer.order))

    def _drop_backlog(self) -> None:
        # Falling too far behind: skip the backlog instead of replaying it
        dropped = 0
        for timer in self._timers:
            while timer.next_due_ms <= self._now_ms:
                timer.next_due_ms += timer.interval_ms
                dropped += 1
        self.dropped_firings += dropped
        logger.warning(
            "Session clock (generation %d) fell behind; dropped %d timer firings",
            self.generation,
            dropped,
        )

    def __repr__(self) -> str:
        state = "cancelled" if self._cancelled else f"{len(self._timers)} timers"
        return f"SessionClock(generation={self.generation}, now={self._now_ms}ms, {state})"
