"""Event payloads published on the lease server's event stream."""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from leasewatch.models.lease import LeaseRecord
from leasewatch.models.policy import ConsumptionStats, PolicyRecord

POLICIES_EVENT = "policies"
LEASES_EVENT = "leases"


class PoliciesEvent(BaseModel):
    """Full policy set."""

    model_config = ConfigDict(extra="ignore")

    policies: list[PolicyRecord] = Field(default_factory=list)

    @field_validator("policies", mode="before")
    @classmethod
    def default_policies(cls, v: Any) -> Any:
        return [] if v is None else v


class LeasesEvent(BaseModel):
    """Lease snapshot, optionally scoped to one resource at a revision."""

    model_config = ConfigDict(extra="ignore")

    resource: Optional[str] = None
    revision: Optional[int] = None
    leases: list[LeaseRecord] = Field(default_factory=list)
    stats: Optional[ConsumptionStats] = None

    @field_validator("leases", mode="before")
    @classmethod
    def default_leases(cls, v: Any) -> Any:
        return [] if v is None else v
