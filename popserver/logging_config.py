"""Logging setup shared by the web service and the headless runner."""

from __future__ import annotations

import logging
import os
from typing import Iterable

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

SERVICE_LOGGER = "pop.server"
UVICORN_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")


def resolve_level(level: str | None = None) -> str:
    """Explicit level, else ``POP_LOG_LEVEL``, else INFO."""
    return (level or os.getenv("POP_LOG_LEVEL") or "INFO").upper()


def configure_logging(
    *,
    level: str | None = None,
    extra_loggers: Iterable[str] = (),
    align_uvicorn: bool = True,
) -> logging.Logger:
    """Install the root handler and pin service loggers to one level.

    Engine packages log under their own module names (``popcore.*``), so
    callers pass them in ``extra_loggers`` to keep them in step with the
    service. Returns the ``pop.server`` logger.
    """
    resolved = resolve_level(level)
    logging.basicConfig(level=resolved, format=LOG_FORMAT, datefmt=LOG_DATEFMT)

    names = [SERVICE_LOGGER, *extra_loggers]
    if align_uvicorn:
        names.extend(UVICORN_LOGGERS)
    for name in names:
        logging.getLogger(name).setLevel(resolved)

    service_logger = logging.getLogger(SERVICE_LOGGER)
    service_logger.debug("log level %s applied to %s", resolved, ", ".join(names))
    return service_logger
