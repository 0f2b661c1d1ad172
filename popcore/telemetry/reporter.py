"""Fire-and-forget event reporter.

The reporter decouples scoring from delivery. ``dispatch()`` is called
inline from the event bus during a tick; it only hands an immutable
record to a private asyncio loop running on a worker thread and returns.
The loop starts one task per record, so several reports can be in flight
at once and a slow ledger never stalls the simulation.

Delivery is best effort: failures are logged at WARNING and counted,
never retried and never fed back into the session.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import logging
import threading
from typing import Dict, Optional, Set, Union

from popcore.events import EventBus, ScoreEvent
from popcore.exceptions import ReportError
from popcore.telemetry.sinks import ReportRecord, ReportSink

logger = logging.getLogger(__name__)


class EventReporter:
    """Delivers scoring reports to a sink from a background event loop.

    Example:
        reporter = EventReporter(LoggingSink())
        reporter.start()
        reporter.attach(controller.event_bus)
        ...
        reporter.stop()
    """

    DEFAULT_MAX_IN_FLIGHT = 16
    START_TIMEOUT = 5.0

    def __init__(self, sink: ReportSink, max_in_flight: int = DEFAULT_MAX_IN_FLIGHT) -> None:
        if max_in_flight <= 0:
            raise ValueError("max_in_flight must be > 0")
        self.sink = sink
        self.max_in_flight = max_in_flight
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._thread: Optional[threading.Thread] = None
        self._ready = threading.Event()
        self._tasks: Set[asyncio.Task] = set()
        self._semaphore: Optional[asyncio.Semaphore] = None
        self._stats_lock = threading.Lock()
        self._dispatched = 0
        self._delivered = 0
        self._failed = 0
        self._dropped = 0

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the worker thread and its event loop."""
        if self.running:
            logger.warning("Event reporter already running")
            return
        self._ready.clear()
        self._thread = threading.Thread(target=self._run, name="event-reporter", daemon=True)
        self._thread.start()
        if not self._ready.wait(self.START_TIMEOUT):
            raise ReportError("Event reporter loop did not start")
        logger.info("Event reporter started (sink=%s)", type(self.sink).__name__)

    def attach(self, event_bus: EventBus) -> None:
        """Subscribe to score events on ``event_bus``."""
        event_bus.subscribe(ScoreEvent, self.dispatch)

    def detach(self, event_bus: EventBus) -> None:
        event_bus.unsubscribe(ScoreEvent, self.dispatch)

    def dispatch(self, event: Union[ScoreEvent, ReportRecord]) -> bool:
        """Queue a report without blocking.

        Returns:
            False if the reporter is not running and the report was dropped
        """
        record = event if isinstance(event, ReportRecord) else ReportRecord.from_event(event)
        loop = self._loop
        if loop is None or loop.is_closed() or not self.running:
            with self._stats_lock:
                self._dropped += 1
            logger.debug("Reporter not running; dropped report for %s", record.session_id[:8])
            return False
        with self._stats_lock:
            self._dispatched += 1
        loop.call_soon_threadsafe(self._spawn, record)
        return True

    def flush(self, timeout: Optional[float] = None) -> bool:
        """Block until every report dispatched so far has finished.

        Returns:
            True if all reports settled within ``timeout``
        """
        loop = self._loop
        if loop is None or not self.running:
            return True
        future = asyncio.run_coroutine_threadsafe(self._wait_idle(), loop)
        try:
            future.result(timeout)
            return True
        except concurrent.futures.TimeoutError:
            future.cancel()
            logger.warning("Event reporter flush timed out with %d reports in flight", len(self._tasks))
            return False

    def stop(self, timeout: float = 5.0) -> None:
        """Drain outstanding reports, close the sink and join the worker."""
        loop = self._loop
        if loop is None or not self.running:
            return
        self.flush(timeout)
        close = asyncio.run_coroutine_threadsafe(self.sink.close(), loop)
        try:
            close.result(timeout)
        except Exception as e:
            logger.warning("Report sink close failed: %s", e)
        loop.call_soon_threadsafe(loop.stop)
        if self._thread is not None:
            self._thread.join(timeout)
        self._thread = None
        logger.info("Event reporter stopped (%s)", self.get_stats())

    def get_stats(self) -> Dict[str, int]:
        with self._stats_lock:
            return {
                "dispatched": self._dispatched,
                "delivered": self._delivered,
                "failed": self._failed,
                "dropped": self._dropped,
                "in_flight": len(self._tasks),
            }

    # ------------------------------------------------------------------
    # Loop thread
    # ------------------------------------------------------------------

    def _run(self) -> None:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        self._loop = loop
        self._semaphore = asyncio.Semaphore(self.max_in_flight)
        self._ready.set()
        try:
            loop.run_forever()
        finally:
            pending = [task for task in asyncio.all_tasks(loop) if not task.done()]
            for task in pending:
                task.cancel()
            if pending:
                loop.run_until_complete(asyncio.gather(*pending, return_exceptions=True))
            loop.close()
            self._loop = None

    def _spawn(self, record: ReportRecord) -> None:
        task = asyncio.get_running_loop().create_task(self._deliver(record))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _deliver(self, record: ReportRecord) -> None:
        assert self._semaphore is not None
        async with self._semaphore:
            try:
                await self.sink.report(record)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                with self._stats_lock:
                    self._failed += 1
                logger.warning(
                    "Report for %s (%s, score=%d) failed: %s",
                    record.session_id[:8],
                    record.kind,
                    record.score,
                    e,
                )
                return
        with self._stats_lock:
            self._delivered += 1

    async def _wait_idle(self) -> None:
        # Reports spawned while waiting are included
        await asyncio.sleep(0)
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
