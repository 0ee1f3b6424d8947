"""API response schemas."""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    connected: bool = Field(..., description="False after a transport failure until the next event")


class TableRowSchema(BaseModel):
    """A rendered row: identity plus column texts in display order."""

    id: str
    cells: dict[str, str]


class ViewResponse(BaseModel):
    """Current rendered projection."""

    status: str = Field(..., description="Connection banner; empty when healthy")
    generated_at: datetime
    last_event_at: Optional[datetime] = None
    leases: list[TableRowSchema] = Field(default_factory=list)
    policies: list[TableRowSchema] = Field(default_factory=list)


class MetricsResponse(BaseModel):
    counters: dict[str, float]
    gauges: dict[str, float]
    timings: dict[str, dict[str, Any]]
