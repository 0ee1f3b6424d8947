"""Clock ticker background task."""

import asyncio
import logging
from datetime import datetime
from typing import Callable, Optional

from leasewatch.config import settings
from leasewatch.engine import LeaseWatchEngine
from leasewatch.utils.time import utc_now

logger = logging.getLogger("leasewatch.ticker")


class ClockTicker:
    """
    Fixed-period timer driving the engine's tick.

    Each tick refreshes every relative-time label and sweeps lease rows whose
    death instant has passed. It only touches locally held state, so it keeps
    running while the event stream is down. The owner keeps the ticker and
    must stop it on teardown.
    """

    def __init__(
        self,
        engine: LeaseWatchEngine,
        interval: Optional[float] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.engine = engine
        self.interval = interval or settings.tick_interval_seconds
        self.clock = clock or engine.clock
        self.ticks = 0
        self._task: Optional[asyncio.Task] = None
        self._shutdown_event: Optional[asyncio.Event] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def _loop(self) -> None:
        logger.info(f"Clock ticker started (interval: {self.interval}s)")

        while not self._shutdown_event.is_set():
            try:
                self.engine.tick(self.clock())
                self.ticks += 1
            except Exception as e:
                logger.error(f"Clock tick error: {e}", exc_info=True)

            # Wait for next tick or shutdown
            try:
                await asyncio.wait_for(
                    self._shutdown_event.wait(),
                    timeout=self.interval,
                )
            except asyncio.TimeoutError:
                pass

        logger.info("Clock ticker stopped")

    async def start(self) -> None:
        """Start the ticker task. Starting a running ticker is a no-op."""
        if self.running:
            return
        self._shutdown_event = asyncio.Event()
        self._task = asyncio.create_task(self._loop())

    async def stop(self) -> None:
        """Stop the ticker task, cancelling it if it does not stop in time."""
        if self._shutdown_event:
            self._shutdown_event.set()

        if self._task:
            try:
                await asyncio.wait_for(
                    self._task, timeout=settings.tick_shutdown_timeout_seconds
                )
            except asyncio.TimeoutError:
                logger.warning("Clock ticker did not stop gracefully, cancelling")
                self._task.cancel()
                try:
                    await self._task
                except asyncio.CancelledError:
                    pass

        self._task = None
        self._shutdown_event = None
