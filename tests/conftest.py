"""
Pytest fixtures for LeaseWatch tests.
"""

import os
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import pytest
from httpx import ASGITransport, AsyncClient

# Ensure test config is set before importing leasewatch modules.
os.environ.setdefault("LEASEWATCH_STREAM_ENABLED", "false")
os.environ.setdefault("LEASEWATCH_ENV", "development")

from leasewatch.engine import LeaseWatchEngine
from leasewatch.observability import metrics
from leasewatch.render import lease_table, policy_table

NOW = datetime(2024, 1, 1, 0, 0, 0, tzinfo=timezone.utc)
SECOND_NS = 1_000_000_000


class FrozenClock:
    """Manually advanced clock shared by the engine and its tables."""

    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


def iso(when: datetime) -> str:
    return when.isoformat().replace("+00:00", "Z")


def lease_payload(
    lease_id: str,
    resource: str = "gpu",
    status: str = "active",
    renewed: Optional[datetime] = NOW,
    released: Optional[datetime] = None,
    duration_s: float = 60,
    decay_s: float = 5,
    properties: Optional[dict[str, str]] = None,
    user: str = "alice",
    host: str = "ws-01",
) -> dict[str, Any]:
    """Build a lease record as it appears on the event stream."""
    payload: dict[str, Any] = {
        "instance": {"id": lease_id, "user": user, "host": host},
        "resource": resource,
        "status": status,
        "started": iso(NOW - timedelta(minutes=5)),
        "duration": int(duration_s * SECOND_NS),
        "decay": int(decay_s * SECOND_NS),
        "properties": properties or {},
    }
    if renewed is not None:
        payload["renewed"] = iso(renewed)
    if released is not None:
        payload["released"] = iso(released)
    return payload


@pytest.fixture(autouse=True)
def reset_metrics():
    """Metrics are process-global; start every test from zero."""
    metrics.reset()
    yield
    metrics.reset()


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def engine(clock: FrozenClock) -> LeaseWatchEngine:
    """Engine wired to in-memory tables sharing the frozen clock."""
    return LeaseWatchEngine(
        lease_view=lease_table(clock),
        policy_view=policy_table(clock),
        clock=clock,
    )


@pytest.fixture
async def client(engine: LeaseWatchEngine):
    """Async test client over the read-only API, lifespan disabled."""
    from leasewatch.main import app

    app.state.engine = engine

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.state.engine = None
