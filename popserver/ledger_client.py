"""HTTP sink that posts scoring reports to an external ledger.

Each report is one JSON POST of ``{"gid", "score", "event"}``. There are
no retries: a failed report is raised as ``ReportError`` and the event
reporter logs and counts it.
"""

import logging
from typing import Dict, Optional

import httpx

from popcore.exceptions import ReportError
from popcore.telemetry.sinks import ReportRecord

logger = logging.getLogger(__name__)


class HttpLedgerSink:
    """Async HTTP client for the scoring ledger.

    The underlying ``httpx.AsyncClient`` is created lazily on the first
    report, so it is bound to the reporter's event loop.
    """

    DEFAULT_TIMEOUT = 5.0  # Seconds per report

    def __init__(
        self,
        url: str,
        timeout: float = DEFAULT_TIMEOUT,
        headers: Optional[Dict[str, str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """Initialize the sink.

        Args:
            url: Ledger endpoint receiving the POST
            timeout: Request timeout in seconds
            headers: Extra headers (e.g. an API key)
            transport: Custom transport, used by tests
        """
        self.url = url
        self._timeout = timeout
        self._headers = dict(headers or {})
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self):
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def start(self) -> None:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self._timeout),
                limits=httpx.Limits(max_keepalive_connections=10, max_connections=20),
                headers=self._headers,
                transport=self._transport,
            )
            logger.debug("Ledger HTTP client started for %s", self.url)

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None
            logger.debug("Ledger HTTP client closed")

    async def report(self, record: ReportRecord) -> None:
        """POST one record.

        Raises:
            ReportError: On transport errors or a non-2xx response
        """
        if self._client is None:
            await self.start()

        try:
            response = await self._client.post(self.url, json=record.to_payload())
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise ReportError(
                f"Ledger rejected {record.kind} report for {record.session_id[:8]}: "
                f"HTTP {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise ReportError(f"Ledger unreachable at {self.url}: {e}") from e

        logger.debug("Reported %s score=%d for %s", record.kind, record.score, record.session_id[:8])
