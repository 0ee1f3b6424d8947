"""Lease models - wire records and view rows."""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from leasewatch.models.enums import LeaseStatus
from leasewatch.utils.time import ensure_utc


class InstanceRef(BaseModel):
    """Identifies a specific leaseholder instance."""

    model_config = ConfigDict(extra="ignore")

    id: Optional[str] = None
    user: str = ""
    host: str = ""


class LeaseRecord(BaseModel):
    """A lease as it arrives on the event stream."""

    model_config = ConfigDict(extra="ignore")

    instance: Optional[InstanceRef] = None
    resource: Optional[str] = None
    status: str = ""
    started: Optional[datetime] = None
    renewed: Optional[datetime] = None
    released: Optional[datetime] = None
    duration: int = Field(default=0, description="Nominal lease length in nanoseconds")
    decay: int = Field(default=0, description="Grace period in nanoseconds")
    properties: dict[str, str] = Field(default_factory=dict)

    @field_validator("started", "renewed", "released")
    @classmethod
    def normalize_timestamp(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v)

    @field_validator("properties", mode="before")
    @classmethod
    def default_properties(cls, v: Any) -> Any:
        if v is None:
            return {}
        if isinstance(v, dict):
            return {str(key): str(value) for key, value in v.items() if value is not None}
        return v

    @property
    def instance_id(self) -> Optional[str]:
        return self.instance.id if self.instance else None


class LeaseRow(BaseModel):
    """
    Reconciled view state for a single lease.

    Rows are replaced wholesale on every sighting; the death instant is kept
    so the clock ticker can age the row out without further events.
    """

    id: str
    resource: str
    program: str
    user: str = ""
    host: str = ""
    pid: str = ""
    status: str
    started: Optional[datetime] = None
    released: Optional[datetime] = None
    death: Optional[datetime] = None

    @property
    def row_id(self) -> str:
        return self.id

    @property
    def status_order(self) -> int:
        return LeaseStatus.order_of(self.status)

    def is_dead(self, now: datetime) -> bool:
        """Check if the lease must no longer be displayed at now."""
        return self.death is not None and self.death <= now

    def fields(self) -> dict[str, Any]:
        """Column values handed to the rendering collaborator."""
        return {
            "program": self.program,
            "user": self.user,
            "computer": self.host,
            "pid": self.pid,
            "status": self.status,
            "started": self.started,
            "remaining": self.death,
            "resource": self.resource,
            "released": self.released,
            "order": self.status_order,
        }
