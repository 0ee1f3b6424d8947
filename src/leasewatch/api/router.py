"""Read-only REST API over the rendered view."""

from fastapi import APIRouter, Depends

from leasewatch import __version__
from leasewatch.api.deps import get_engine
from leasewatch.api.schemas import HealthResponse, MetricsResponse, ViewResponse
from leasewatch.engine import LeaseWatchEngine
from leasewatch.observability import metrics
from leasewatch.render.table import TableView

router = APIRouter(prefix="/v1")


@router.get("/health", response_model=HealthResponse)
async def health_check(engine: LeaseWatchEngine = Depends(get_engine)):
    """Health check endpoint."""
    return HealthResponse(status="healthy", version=__version__, connected=engine.connected)


@router.get("/view", response_model=ViewResponse)
async def get_view(engine: LeaseWatchEngine = Depends(get_engine)):
    """
    Current lease and policy tables.

    Relative labels are refreshed to the request time; reconciliation state
    is not touched.
    """
    now = engine.clock()
    engine.refresh_labels(now)

    leases = engine.lease_view.snapshot() if isinstance(engine.lease_view, TableView) else []
    policies = engine.policy_view.snapshot() if isinstance(engine.policy_view, TableView) else []
    return ViewResponse(
        status=engine.status,
        generated_at=now,
        last_event_at=engine.last_event_at,
        leases=leases,
        policies=policies,
    )


@router.get("/metrics", response_model=MetricsResponse)
async def get_metrics():
    """In-process engine metrics."""
    return MetricsResponse(**metrics.snapshot())
