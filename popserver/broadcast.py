"""Pushes session snapshots to connected WebSocket clients."""

import asyncio
import logging
from typing import Optional

from popcore.config.display import FRAME_RATE
from popserver.session_runner import SessionRunner

logger = logging.getLogger(__name__)


def _handle_task_exception(task: asyncio.Task) -> None:
    """Log exceptions from the broadcast task."""
    if task.cancelled():
        logger.debug("Task %s was cancelled", task.get_name())
        return
    exc = task.exception()
    if exc is not None:
        logger.error(
            "Unhandled exception in task %s: %s",
            task.get_name(),
            exc,
            exc_info=(type(exc), exc, exc.__traceback__),
        )


async def broadcast_updates(runner: SessionRunner, interval: float = 1 / FRAME_RATE) -> None:
    """Send every new snapshot revision to all clients of ``runner``."""
    logger.info("broadcast_updates: Task started")
    last_revision = -1

    while True:
        try:
            if runner.connected_clients:
                snapshot = await runner.get_snapshot_async()
                if snapshot.revision != last_revision:
                    last_revision = snapshot.revision
                    payload = runner.serialize_state(snapshot)

                    disconnected = set()
                    for client in list(runner.connected_clients):
                        try:
                            await client.send_bytes(payload)
                        except Exception as e:
                            logger.warning("broadcast_updates: Error sending to client, removing: %s", e)
                            disconnected.add(client)
                    for client in disconnected:
                        runner.remove_client(client)

            await asyncio.sleep(interval)

        except asyncio.CancelledError:
            logger.info("broadcast_updates: Task cancelled")
            raise
        except Exception as e:
            logger.error("broadcast_updates: Unexpected error in main loop: %s", e, exc_info=True)
            await asyncio.sleep(interval)


def start_broadcast(runner: SessionRunner) -> asyncio.Task:
    task = asyncio.create_task(broadcast_updates(runner), name="broadcast-updates")
    task.add_done_callback(_handle_task_exception)
    return task


async def stop_broadcast(task: Optional[asyncio.Task]) -> None:
    if task is None or task.done():
        return
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass
