"""Main entry point for Pop Arcade.

This module provides command-line options to run the game engine:
- Web mode (default): FastAPI backend with WebSocket snapshots
- Headless mode: an auto-pilot plays a session faster than realtime
  (the arcade by default, or grid snake with --game snake)
"""

import argparse
import logging

logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s:%(name)s:%(message)s",
)

logger = logging.getLogger(__name__)

SEPARATOR_WIDTH = 60


def run_web_server():
    """Run the FastAPI backend."""
    import uvicorn

    from popserver.app_factory import DEFAULT_API_PORT
    from popserver.main import app

    logger.info("=" * SEPARATOR_WIDTH)
    logger.info("POP ARCADE - WEB SERVER")
    logger.info("=" * SEPARATOR_WIDTH)
    logger.info("API docs available at http://localhost:%d/docs", DEFAULT_API_PORT)
    logger.info("Press Ctrl+C to stop the server")
    logger.info("=" * SEPARATOR_WIDTH)

    uvicorn.run(app, host="0.0.0.0", port=DEFAULT_API_PORT)


def run_headless(mode: str, max_frames: int, stats_interval: int, tap_every: int, seed=None):
    """Play one session with a simple auto-pilot.

    Every ``tap_every`` frames the auto-pilot taps the non-hazard entity
    closest to the exit edge.
    """
    from popcore import GameMode, SessionConfig, SessionController
    from popcore.config.display import FRAME_RATE

    controller = SessionController(SessionConfig(seed=seed))
    controller.start(GameMode.parse(mode)).unwrap()
    frame_ms = 1000 // FRAME_RATE

    snapshot = controller.snapshot()
    for frame in range(1, max_frames + 1):
        if frame % tap_every == 0:
            targets = [entity for entity in snapshot.entities if entity.category != "hazard"]
            if targets:
                controller.activate(min(targets, key=lambda entity: entity.y).id)
        snapshot = controller.advance(frame_ms)

        if frame % stats_interval == 0:
            logger.info(
                "Frame %d: phase=%s score=%d lives=%d time_left=%s live=%d",
                frame,
                snapshot.phase.value,
                snapshot.score,
                snapshot.lives,
                snapshot.time_left,
                len(snapshot.entities),
            )
        if snapshot.ended:
            break

    logger.info("=" * SEPARATOR_WIDTH)
    logger.info(
        "Final: phase=%s score=%d best=%d reason=%s",
        snapshot.phase.value,
        snapshot.score,
        snapshot.best_score,
        controller.end_reason,
    )
    return snapshot


def run_snake_headless(max_frames: int, stats_interval: int, seed=None):
    """Play grid snake with a greedy auto-pilot that heads for the food."""
    import random

    from popcore import SessionPhase
    from popcore.snake import Heading, SnakeGame

    game = SnakeGame(random.Random(seed))
    game.start().unwrap()

    for frame in range(1, max_frames + 1):
        head_x, head_y = game.snake[0]
        food_x, food_y = game.food
        if food_x != head_x:
            if not game.turn(Heading.RIGHT if food_x > head_x else Heading.LEFT):
                game.turn(Heading.DOWN)
        elif food_y != head_y:
            if not game.turn(Heading.DOWN if food_y > head_y else Heading.UP):
                game.turn(Heading.RIGHT)
        game.advance(game.tick_ms)

        if frame % stats_interval == 0:
            logger.info("Step %d: length=%d score=%d", frame, len(game.snake), game.score)
        if game.phase is SessionPhase.ENDED:
            break

    logger.info("Final: length=%d score=%d best=%d", len(game.snake), game.score, game.best_score)
    return game.snapshot()


def main():
    """Parse command-line arguments and run the appropriate mode."""
    parser = argparse.ArgumentParser(
        description="Pop Arcade",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run web server (default)
  python main.py

  # Headless survival run, reproducible
  python main.py --headless --mode survival --seed 42

  # Long time attack run with frequent stats
  python main.py --headless --mode time_attack --max-frames 5000 --stats-interval 100

  # Grid snake auto-pilot
  python main.py --headless --game snake --seed 7
        """,
    )
    parser.add_argument("--headless", action="store_true", help="Run an auto-pilot session without the server")
    parser.add_argument(
        "--mode",
        choices=["classic", "time_attack", "survival"],
        default="classic",
        help="Game mode for headless runs (default: classic)",
    )
    parser.add_argument(
        "--max-frames", type=int, default=3000, help="Maximum frames in headless mode (default: 3000)"
    )
    parser.add_argument(
        "--stats-interval", type=int, default=300, help="Log stats every N frames (default: 300)"
    )
    parser.add_argument(
        "--tap-every", type=int, default=10, help="Auto-pilot taps every N frames (default: 10)"
    )
    parser.add_argument(
        "--game",
        choices=["arcade", "snake"],
        default="arcade",
        help="Which game headless mode plays (default: arcade)",
    )
    parser.add_argument("--seed", type=int, default=None, help="Random seed for deterministic behavior")

    args = parser.parse_args()

    if args.headless and args.game == "snake":
        logger.info("Starting headless snake game (%d steps max)", args.max_frames)
        run_snake_headless(args.max_frames, args.stats_interval, seed=args.seed)
    elif args.headless:
        logger.info("Starting headless %s session (%d frames max)", args.mode, args.max_frames)
        run_headless(args.mode, args.max_frames, args.stats_interval, max(1, args.tap_every), seed=args.seed)
    else:
        run_web_server()


if __name__ == "__main__":
    main()
