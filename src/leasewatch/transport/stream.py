"""Event stream consumer feeding the reconciliation engine."""

import logging
from typing import Optional

import httpx

from leasewatch.config import settings
from leasewatch.engine import InvalidRecord, LeaseWatchEngine, TransportInterrupted
from leasewatch.transport.sse import iter_events

logger = logging.getLogger("leasewatch.stream")


class StreamConsumer:
    """
    Reads the lease server's event stream and hands each event to the engine.

    The consumer does not reconnect. When the stream fails or ends it marks
    the engine interrupted and raises TransportInterrupted; the owner decides
    what happens next. Rows keep aging out through the clock ticker in the
    meantime.

    Usage:
        consumer = StreamConsumer(engine, "http://guardian:5877/stream")
        await consumer.run()
    """

    def __init__(
        self,
        engine: LeaseWatchEngine,
        url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        connect_timeout: Optional[float] = None,
    ):
        self.engine = engine
        self.url = url or settings.stream_url
        self._transport = transport
        self._connect_timeout = connect_timeout or settings.stream_connect_timeout_seconds
        self.events_received = 0

    async def run(self) -> None:
        """Consume the stream until it fails or closes."""
        if not self.url:
            raise TransportInterrupted("no stream url configured")

        timeout = httpx.Timeout(None, connect=self._connect_timeout)
        headers = {"Accept": "text/event-stream", "Cache-Control": "no-cache"}
        try:
            async with httpx.AsyncClient(timeout=timeout, transport=self._transport) as client:
                async with client.stream("GET", self.url, headers=headers) as response:
                    response.raise_for_status()
                    logger.info(f"Connected to event stream {self.url}")
                    async for event in iter_events(response.aiter_lines()):
                        self.events_received += 1
                        self._dispatch(event.event, event.data)
        except httpx.HTTPError as e:
            error = TransportInterrupted(f"{type(e).__name__}: {e}")
            self.engine.transport_interrupted(error)
            raise error from e

        error = TransportInterrupted("stream closed by server")
        self.engine.transport_interrupted(error)
        raise error

    def _dispatch(self, name: str, data: str) -> None:
        try:
            self.engine.handle_event(name, data)
        except InvalidRecord as e:
            # Upstream schema break: surface loudly, keep reading.
            logger.error(f"Rejected {name} event: {e.message}", exc_info=True)
