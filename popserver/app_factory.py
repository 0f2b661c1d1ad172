"""Builds the FastAPI app around one ``AppContext``.

The context owns every long-lived object (controller, runner, reporter,
broadcast task). Tests build their own context with ``run_loop=False`` and
drive the controller through the HTTP routes:

    context = AppContext(seed=7, run_loop=False)
    app = create_app(context=context)
"""

import logging
import os
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from popcore.best_score import DEFAULT_BEST_SCORE_PATH, BestScoreStore, JsonBestScoreStore
from popcore.events import EventBus
from popcore.session_controller import SessionConfig, SessionController
from popcore.telemetry import EventReporter, LoggingSink, ReportSink
from popserver.broadcast import start_broadcast, stop_broadcast
from popserver.ledger_client import HttpLedgerSink
from popserver.logging_config import configure_logging
from popserver.session_runner import SessionRunner

DEFAULT_API_PORT = 8000


def _env_seed() -> Optional[int]:
    raw = os.getenv("POP_SEED")
    return int(raw) if raw not in (None, "") else None


@dataclass
class AppContext:
    """Settings read from the environment plus the objects built from them."""

    # Settings
    api_port: int = field(default_factory=lambda: int(os.getenv("POP_API_PORT", str(DEFAULT_API_PORT))))
    ledger_url: Optional[str] = field(default_factory=lambda: os.getenv("POP_LEDGER_URL") or None)
    best_score_path: str = field(
        default_factory=lambda: os.getenv("POP_BEST_SCORE_PATH", str(DEFAULT_BEST_SCORE_PATH))
    )
    seed: Optional[int] = field(default_factory=_env_seed)
    production_mode: bool = field(
        default_factory=lambda: os.getenv("PRODUCTION", "false").lower() == "true"
    )
    allowed_origins: list = field(default_factory=lambda: os.getenv("ALLOWED_ORIGINS", "*").split(","))
    run_loop: bool = True

    # Overridable collaborators; built from settings when None
    session_config: Optional[SessionConfig] = None
    best_score_store: Optional[BestScoreStore] = None
    report_sink: Optional[ReportSink] = None

    # Built by build()
    event_bus: EventBus = field(default_factory=EventBus)
    controller: Optional[SessionController] = None
    runner: Optional[SessionRunner] = None
    reporter: Optional[EventReporter] = None
    broadcast_task: Optional[object] = None

    logger: logging.Logger = field(default_factory=lambda: logging.getLogger("pop.server"))

    def build(self) -> None:
        """Fill in whichever of controller, runner or reporter is still None."""
        if self.controller is None:
            config = self.session_config or SessionConfig(seed=self.seed)
            self.controller = SessionController(
                config,
                event_bus=self.event_bus,
                best_score_store=self.best_score_store or JsonBestScoreStore(self.best_score_path),
            )
        if self.runner is None:
            self.runner = SessionRunner(self.controller)
        if self.reporter is None:
            sink = self.report_sink
            if sink is None:
                sink = HttpLedgerSink(self.ledger_url) if self.ledger_url else LoggingSink()
            self.reporter = EventReporter(sink)
            self.reporter.attach(self.controller.event_bus)


def create_app(
    *,
    production_mode: Optional[bool] = None,
    context: Optional[AppContext] = None,
) -> FastAPI:
    """Build the app; the context ends up on ``app.state.context``.

    ``production_mode`` overrides the PRODUCTION variable, which turns off
    the docs pages and limits CORS to ``ALLOWED_ORIGINS``.
    """
    logger = configure_logging(extra_loggers=("popcore", "popserver"))

    if context is None:
        context = AppContext()
    if production_mode is not None:
        context.production_mode = production_mode
    context.logger = logger
    context.build()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Reporter loop, tick thread and broadcast task live for the app lifetime."""
        ctx = app.state.context
        try:
            ctx.reporter.start()
            if ctx.run_loop:
                ctx.runner.start()
            ctx.broadcast_task = start_broadcast(ctx.runner)
            ctx.logger.info("Session service started (tick loop %s)", "on" if ctx.run_loop else "off")
            yield
            ctx.logger.info("Session service stopping")
        except Exception as e:
            ctx.logger.error("Session service failed: %s", e, exc_info=True)
            raise
        finally:
            await stop_broadcast(ctx.broadcast_task)
            ctx.broadcast_task = None
            ctx.runner.stop()
            ctx.reporter.stop()

    app = FastAPI(
        title="Pop Arcade API",
        lifespan=lifespan,
        docs_url=None if context.production_mode else "/docs",
        redoc_url=None if context.production_mode else "/redoc",
    )
    app.state.context = context

    app.add_middleware(
        CORSMiddleware,
        allow_origins=context.allowed_origins if context.production_mode else ["*"],
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    _setup_routers(app, context)
    return app


def _setup_routers(app: FastAPI, ctx: AppContext) -> None:
    """Mount the session and websocket routers plus /health."""
    from popserver.routers import session, websocket

    app.include_router(session.setup_router(ctx.runner))
    app.include_router(websocket.setup_router(ctx.runner))

    @app.get("/health")
    async def health():
        return {"status": "ok", "phase": ctx.controller.phase.value}

    ctx.logger.debug("Routers mounted")
