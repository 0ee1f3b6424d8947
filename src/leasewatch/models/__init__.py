"""LeaseWatch data models."""

from leasewatch.models.diff import Diff, RowInstruction
from leasewatch.models.enums import InstructionKind, LeaseStatus, Strategy
from leasewatch.models.events import LEASES_EVENT, POLICIES_EVENT, LeasesEvent, PoliciesEvent
from leasewatch.models.lease import InstanceRef, LeaseRecord, LeaseRow
from leasewatch.models.policy import ConsumptionStats, PolicyRecord, PolicyRow, Tally

__all__ = [
    "ConsumptionStats",
    "Diff",
    "InstanceRef",
    "InstructionKind",
    "LEASES_EVENT",
    "LeaseRecord",
    "LeaseRow",
    "LeaseStatus",
    "LeasesEvent",
    "POLICIES_EVENT",
    "PoliciesEvent",
    "PolicyRecord",
    "PolicyRow",
    "RowInstruction",
    "Strategy",
    "Tally",
]
