"""LeaseWatch main application."""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI

from leasewatch import __version__
from leasewatch.api import router
from leasewatch.config import settings
from leasewatch.engine import LeaseWatchEngine, TransportInterrupted
from leasewatch.render import lease_table, policy_table
from leasewatch.tasks import ClockTicker
from leasewatch.transport import StreamConsumer

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger("leasewatch")


def build_engine() -> LeaseWatchEngine:
    """Create an engine wired to fresh lease and policy tables."""
    return LeaseWatchEngine(lease_view=lease_table(), policy_view=policy_table())


async def consume_stream(engine: LeaseWatchEngine) -> None:
    """Run the stream consumer once; a failure leaves the view up but stale."""
    try:
        await StreamConsumer(engine).run()
    except TransportInterrupted as e:
        logger.warning(f"Event stream ended: {e.reason}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info("Starting LeaseWatch...")
    logger.info(f"Environment: {settings.env.value}")

    engine = build_engine()
    app.state.engine = engine

    ticker = ClockTicker(engine)
    await ticker.start()
    app.state.ticker = ticker
    logger.info("Clock ticker started")

    stream_task: Optional[asyncio.Task] = None
    if settings.stream_enabled:
        stream_task = asyncio.create_task(consume_stream(engine))
        logger.info(f"Consuming event stream from {settings.stream_url}")

    yield

    # Cleanup
    logger.info("Shutting down LeaseWatch...")
    if stream_task:
        stream_task.cancel()
        try:
            await stream_task
        except asyncio.CancelledError:
            pass
    await ticker.stop()
    logger.info("Shutdown complete")


# Create FastAPI application
app = FastAPI(
    title="LeaseWatch",
    description="Live reconciled view of resource leases and policies",
    version=__version__,
    lifespan=lifespan,
)

# Include API router
app.include_router(router)


def main():
    """Entry point for the application."""
    uvicorn.run(
        "leasewatch.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
