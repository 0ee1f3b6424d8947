"""API dependencies."""

import logging

from fastapi import HTTPException, Request

from leasewatch.engine import LeaseWatchEngine

logger = logging.getLogger("leasewatch.api")


async def get_engine(request: Request) -> LeaseWatchEngine:
    """Return the engine attached to the application, or 503 before startup."""
    engine = getattr(request.app.state, "engine", None)
    if engine is None:
        raise HTTPException(status_code=503, detail="View not initialized")
    return engine
