"""Policy models - wire records, consumption statistics and view rows."""

from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from leasewatch.models.enums import Strategy

POLICY_ROW_PREFIX = "policy-"


class Tally(BaseModel):
    """Lease counts for one counting strategy."""

    model_config = ConfigDict(extra="ignore")

    active: int = Field(default=0, validation_alias=AliasChoices("active", "Active"))
    released: int = Field(default=0, validation_alias=AliasChoices("released", "Released"))
    queued: int = Field(default=0, validation_alias=AliasChoices("queued", "Queued"))
    consumed: int = Field(default=0, validation_alias=AliasChoices("consumed", "Consumed"))


class ConsumptionStats(BaseModel):
    """Per-strategy consumption statistics pushed alongside lease snapshots."""

    model_config = ConfigDict(extra="ignore")

    consumer: Optional[Tally] = Field(
        default=None, validation_alias=AliasChoices("consumer", "Consumer")
    )
    instance: Optional[Tally] = Field(
        default=None, validation_alias=AliasChoices("instance", "Instance")
    )

    def consumed(self, strategy: str) -> int:
        """Return the consumed count for a strategy; unknown strategies yield zero."""
        if strategy == Strategy.CONSUMER.value:
            tally = self.consumer
        elif strategy == Strategy.INSTANCE.value:
            tally = self.instance
        else:
            return 0
        return tally.consumed if tally else 0


class PolicyRecord(BaseModel):
    """A policy as it arrives on the event stream."""

    model_config = ConfigDict(extra="ignore")

    resource: Optional[str] = None
    strategy: Optional[str] = None
    limit: int = 0
    properties: dict[str, str] = Field(default_factory=dict)

    @field_validator("properties", mode="before")
    @classmethod
    def default_properties(cls, v: Any) -> Any:
        if v is None:
            return {}
        if isinstance(v, dict):
            return {str(key): str(value) for key, value in v.items() if value is not None}
        return v


class PolicyRow(BaseModel):
    """Reconciled view state for a single policy."""

    resource: str
    program: str
    strategy: str = Strategy.INSTANCE.value
    limit: int = 0
    stats: Optional[ConsumptionStats] = None

    @property
    def row_id(self) -> str:
        return f"{POLICY_ROW_PREFIX}{self.resource}"

    @property
    def consumed(self) -> Optional[int]:
        """Consumed count for the row's strategy, or None before any stats arrive."""
        if self.stats is None:
            return None
        return self.stats.consumed(self.strategy)

    @property
    def available(self) -> Optional[int]:
        consumed = self.consumed
        if consumed is None:
            return None
        return self.limit - consumed

    def fields(self) -> dict[str, Any]:
        """Column values handed to the rendering collaborator."""
        return {
            "program": self.program,
            "consumed": self.consumed,
            "available": self.available,
            "total": self.limit,
            "resource": self.resource,
            "strategy": self.strategy,
        }
