"""LeaseWatch engine - reconciliation core."""

from leasewatch.engine.core import STATUS_CONNECTION_FAILURE, LeaseWatchEngine
from leasewatch.engine.errors import (
    InvalidRecord,
    LeaseWatchError,
    StaleRevision,
    TransportInterrupted,
)
from leasewatch.engine.expiry import death_instant
from leasewatch.engine.leases import LeaseReconciler, parse_lease
from leasewatch.engine.policies import PolicyReconciler, parse_policy
from leasewatch.engine.revision import RevisionGate

__all__ = [
    "InvalidRecord",
    "LeaseReconciler",
    "LeaseWatchEngine",
    "LeaseWatchError",
    "PolicyReconciler",
    "RevisionGate",
    "STATUS_CONNECTION_FAILURE",
    "StaleRevision",
    "TransportInterrupted",
    "death_instant",
    "parse_lease",
    "parse_policy",
]
