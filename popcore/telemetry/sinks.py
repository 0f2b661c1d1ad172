"""Report sinks: where scoring reports end up.

A sink is any object with an async ``report(record)`` coroutine and an
async ``close()``. Sinks run on the reporter's private event loop, never
on the simulation thread. They may raise; the reporter logs and counts
the failure.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, Protocol

if TYPE_CHECKING:
    from popcore.events import ScoreEvent

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReportRecord:
    """Immutable report of one scoring event.

    Holds copies of the values, never a reference to session state.
    """

    session_id: str
    kind: str
    score: int

    @classmethod
    def from_event(cls, event: "ScoreEvent") -> "ReportRecord":
        return cls(session_id=event.session_id, kind=event.kind.value, score=event.score)

    def to_payload(self) -> Dict[str, Any]:
        """JSON body understood by the ledger (game id, score, event kind)."""
        return {"gid": self.session_id, "score": self.score, "event": self.kind}


class ReportSink(Protocol):
    async def report(self, record: ReportRecord) -> None: ...

    async def close(self) -> None: ...


class LoggingSink:
    """Sink used when no ledger is configured: reports go to the log."""

    def __init__(self, level: int = logging.INFO) -> None:
        self.level = level

    async def report(self, record: ReportRecord) -> None:
        logger.log(
            self.level,
            "Score report gid=%s event=%s score=%d",
            record.session_id[:8],
            record.kind,
            record.score,
        )

    async def close(self) -> None:
        return None
