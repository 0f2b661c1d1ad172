"""In-memory report sinks for reporter and API tests."""

import asyncio


class RecordingSink:
    """Sink that remembers every record it was handed.

    ``max_active`` is the largest number of ``report`` calls seen running
    at the same time.
    """

    def __init__(self, delay: float = 0.0) -> None:
        self.delay = delay
        self.records = []
        self.closed = False
        self.active = 0
        self.max_active = 0

    async def report(self, record) -> None:
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            self.records.append(record)
        finally:
            self.active -= 1

    async def close(self) -> None:
        self.closed = True


class FailingSink(RecordingSink):
    async def report(self, record) -> None:
        raise RuntimeError("ledger down")
