"""Grid snake simulation.

A second, much smaller game sharing the session phase machine and the
RNG conventions of the arcade engine. The snake moves one cell per
``step()``; direction changes are queued and applied at the next step,
and a change that would reverse the snake onto itself is rejected.
"""

import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

from popcore.config.snake import (
    FOOD_PLACEMENT_ATTEMPTS,
    FOOD_POINTS,
    GRID_SIZE,
    INITIAL_LENGTH,
    SNAKE_TICK_MS,
)
from popcore.result import Err, Ok, Result
from popcore.state_machine import SessionPhase, create_session_state_machine
from popcore.util.rng import require_rng_param

logger = logging.getLogger(__name__)

Cell = Tuple[int, int]


class Heading(Enum):
    UP = (0, -1)
    DOWN = (0, 1)
    LEFT = (-1, 0)
    RIGHT = (1, 0)

    @property
    def opposite(self) -> "Heading":
        dx, dy = self.value
        return Heading((-dx, -dy))


@dataclass(frozen=True)
class SnakeSnapshot:
    phase: SessionPhase
    snake: Tuple[Cell, ...]
    food: Optional[Cell]
    heading: Heading
    score: int
    best_score: int


class SnakeGame:
    """Snake on a square grid.

    The game ends when the head leaves the board, runs into the body, or
    no free cell is left for food.
    """

    def __init__(
        self,
        rng: Optional[random.Random],
        grid_size: int = GRID_SIZE,
        tick_ms: int = SNAKE_TICK_MS,
    ) -> None:
        if grid_size < INITIAL_LENGTH:
            raise ValueError(f"grid_size must be >= {INITIAL_LENGTH}")
        self.rng = require_rng_param(rng, "SnakeGame.__init__")
        self.grid_size = grid_size
        self.tick_ms = tick_ms
        self._elapsed_ms = 0
        self.phases = create_session_state_machine(track_history=False)
        self.snake: List[Cell] = []
        self.food: Optional[Cell] = None
        self.heading = Heading.RIGHT
        self._next_heading = Heading.RIGHT
        self.score = 0
        self.best_score = 0

    @property
    def phase(self) -> SessionPhase:
        return self.phases.state

    def start(self) -> Result[SessionPhase, str]:
        if self.phase not in (SessionPhase.IDLE, SessionPhase.ENDED):
            return Err(f"Cannot start while {self.phase.value}")
        result = self.phases.try_transition(SessionPhase.RUNNING, reason="start")
        if result.is_err():
            return result
        centre = self.grid_size // 2
        head_x = max(centre, INITIAL_LENGTH - 1)
        self.snake = [(head_x - i, centre) for i in range(INITIAL_LENGTH)]
        self.heading = Heading.RIGHT
        self._next_heading = Heading.RIGHT
        self.score = 0
        self._elapsed_ms = 0
        self.food = self._place_food()
        return result

    def toggle_pause(self) -> Result[SessionPhase, str]:
        if self.phase is SessionPhase.RUNNING:
            return self.phases.try_transition(SessionPhase.PAUSED, reason="pause")
        if self.phase is SessionPhase.PAUSED:
            return self.phases.try_transition(SessionPhase.RUNNING, reason="resume")
        return Err(f"Cannot toggle pause while {self.phase.value}")

    def reset(self) -> None:
        self.phases.try_transition(SessionPhase.IDLE, reason="reset")
        self.snake = []
        self.food = None
        self.score = 0

    def turn(self, heading: Heading) -> bool:
        """Queue a direction change for the next step.

        Returns:
            False if the change would reverse the snake
        """
        if heading is self.heading.opposite:
            return False
        self._next_heading = heading
        return True

    def step(self) -> Result[SessionPhase, str]:
        """Advance the snake by one cell."""
        if self.phase is not SessionPhase.RUNNING:
            return Err(f"Cannot step while {self.phase.value}")

        self.heading = self._next_heading
        dx, dy = self.heading.value
        head_x, head_y = self.snake[0]
        head = (head_x + dx, head_y + dy)

        if not self._on_board(head) or head in self.snake:
            return self._end("collision")

        self.snake.insert(0, head)
        if head == self.food:
            self.score += FOOD_POINTS
            self.food = self._place_food()
            if self.food is None:
                return self._end("board_full")
        else:
            self.snake.pop()
        return Ok(self.phase)

    def advance(self, elapsed_ms: int) -> int:
        """Run as many steps as fit in the accumulated time.

        Returns:
            Number of steps taken
        """
        if self.phase is not SessionPhase.RUNNING:
            return 0
        self._elapsed_ms += elapsed_ms
        steps = 0
        while self._elapsed_ms >= self.tick_ms and self.phase is SessionPhase.RUNNING:
            self._elapsed_ms -= self.tick_ms
            self.step()
            steps += 1
        return steps

    def snapshot(self) -> SnakeSnapshot:
        return SnakeSnapshot(
            phase=self.phase,
            snake=tuple(self.snake),
            food=self.food,
            heading=self.heading,
            score=self.score,
            best_score=self.best_score,
        )

    def _end(self, reason: str) -> Result[SessionPhase, str]:
        self.phases.transition(SessionPhase.ENDED, reason=reason)
        self.best_score = max(self.best_score, self.score)
        logger.info("Snake game over (%s): score=%d best=%d", reason, self.score, self.best_score)
        return Ok(self.phase)

    def _on_board(self, cell: Cell) -> bool:
        x, y = cell
        return 0 <= x < self.grid_size and 0 <= y < self.grid_size

    def _place_food(self) -> Optional[Cell]:
        occupied = set(self.snake)
        for _ in range(FOOD_PLACEMENT_ATTEMPTS):
            cell = (self.rng.randrange(self.grid_size), self.rng.randrange(self.grid_size))
            if cell not in occupied:
                return cell
        free = [
            (x, y)
            for y in range(self.grid_size)
            for x in range(self.grid_size)
            if (x, y) not in occupied
        ]
        if not free:
            return None
        return self.rng.choice(free)
