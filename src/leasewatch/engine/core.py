"""LeaseWatch core engine - routes stream events through the reconcilers."""

import json
import logging
from datetime import datetime
from typing import Any, Callable, Optional, Union

from pydantic import ValidationError

from leasewatch.engine.errors import InvalidRecord, StaleRevision, TransportInterrupted
from leasewatch.engine.leases import LeaseReconciler
from leasewatch.engine.policies import PolicyReconciler
from leasewatch.engine.revision import RevisionGate
from leasewatch.models import (
    LEASES_EVENT,
    POLICIES_EVENT,
    Diff,
    InstructionKind,
    LeaseRow,
    LeasesEvent,
    PoliciesEvent,
    PolicyRow,
)
from leasewatch.observability import metrics
from leasewatch.observability.metrics import (
    EVENTS_INVALID,
    EVENTS_LEASES,
    EVENTS_POLICIES,
    EVENTS_STALE_DISCARDED,
    LEASES_ADDED,
    LEASES_EXPIRED_SWEPT,
    LEASES_REMOVED,
    LEASES_UPDATED,
    LEASE_ROWS,
    POLICIES_ADDED,
    POLICIES_REMOVED,
    POLICIES_UPDATED,
    POLICY_ROWS,
    RECONCILE_DURATION_MS,
    TRANSPORT_INTERRUPTED,
)
from leasewatch.render.table import Renderer
from leasewatch.utils.time import utc_now

logger = logging.getLogger(__name__)

STATUS_CONNECTION_FAILURE = "Connection Failure"


class LeaseWatchEngine:
    """
    Reconciliation core for the lease and policy view.

    Owns the revision gate, both reconcilers and the connection status, and
    forwards every diff to the rendering collaborators as add/update/remove
    instructions. Not thread-safe: events and ticks must be processed one at
    a time.
    """

    def __init__(
        self,
        lease_view: Optional[Renderer] = None,
        policy_view: Optional[Renderer] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.gate = RevisionGate()
        self.leases = LeaseReconciler()
        self.policies = PolicyReconciler()
        self.lease_view = lease_view
        self.policy_view = policy_view
        self.clock = clock
        self.status = ""
        self.last_event_at: Optional[datetime] = None

    @property
    def connected(self) -> bool:
        return self.status != STATUS_CONNECTION_FAILURE

    # =========================================================================
    # Stream events
    # =========================================================================

    def handle_event(
        self,
        name: str,
        data: Union[str, bytes, dict[str, Any]],
        now: Optional[datetime] = None,
    ) -> Optional[Diff]:
        """
        Dispatch a decoded stream event by name.

        Payloads may be raw JSON text or an already decoded mapping. Unknown
        event names are ignored. Raises InvalidRecord for undecodable
        payloads or records missing their identity.
        """
        if name not in (POLICIES_EVENT, LEASES_EVENT):
            logger.debug(f"Ignoring unknown event {name!r}")
            return None

        if isinstance(data, (str, bytes)):
            try:
                data = json.loads(data)
            except json.JSONDecodeError as e:
                metrics.inc_counter(EVENTS_INVALID)
                raise InvalidRecord(f"{name} event is not valid JSON: {e}") from e

        try:
            if name == POLICIES_EVENT:
                event = PoliciesEvent.model_validate(data)
            else:
                event = LeasesEvent.model_validate(data)
        except ValidationError as e:
            metrics.inc_counter(EVENTS_INVALID)
            raise InvalidRecord(f"malformed {name} event: {e.error_count()} validation error(s)", data) from e

        if isinstance(event, PoliciesEvent):
            return self.handle_policies(event)
        return self.handle_leases(event, now)

    def handle_policies(self, event: PoliciesEvent) -> Diff[PolicyRow]:
        """Apply a full policy list."""
        metrics.inc_counter(EVENTS_POLICIES)
        try:
            with metrics.timed(RECONCILE_DURATION_MS):
                diff = self.policies.reconcile_policies(event.policies)
        except InvalidRecord:
            metrics.inc_counter(EVENTS_INVALID)
            raise

        self._emit(self.policy_view, diff)
        metrics.inc_counter(POLICIES_ADDED, len(diff.added))
        metrics.inc_counter(POLICIES_UPDATED, len(diff.updated))
        metrics.inc_counter(POLICIES_REMOVED, len(diff.removed))
        self._processed()
        return diff

    def handle_leases(
        self,
        event: LeasesEvent,
        now: Optional[datetime] = None,
    ) -> Optional[Diff[LeaseRow]]:
        """
        Apply a lease snapshot and any consumption statistics it carries.

        Returns None when the event is discarded for a stale revision. The
        revision is only recorded once the snapshot has been applied, so a
        rejected InvalidRecord event leaves both the rows and the gate as
        they were.
        """
        now = now or self.clock()
        metrics.inc_counter(EVENTS_LEASES)

        try:
            self.gate.check(event.resource, event.revision)
        except StaleRevision as e:
            logger.debug(f"Discarding lease event: {e.message}")
            metrics.inc_counter(EVENTS_STALE_DISCARDED)
            self._processed()
            return None

        try:
            with metrics.timed(RECONCILE_DURATION_MS):
                diff = self.leases.reconcile(event.resource, event.leases, now)
        except InvalidRecord:
            metrics.inc_counter(EVENTS_INVALID)
            raise
        self.gate.accept(event.resource, event.revision)

        if event.resource and event.stats is not None:
            self.apply_consumption(event.resource, event.stats)

        self._emit(self.lease_view, diff)
        metrics.inc_counter(LEASES_ADDED, len(diff.added))
        metrics.inc_counter(LEASES_UPDATED, len(diff.updated))
        metrics.inc_counter(LEASES_REMOVED, len(diff.removed))
        self._processed()
        return diff

    def apply_consumption(self, resource: str, stats: Any) -> Optional[PolicyRow]:
        """Push consumption statistics to an existing policy row."""
        row = self.policies.apply_consumption(resource, stats)
        if row is not None:
            self._emit(self.policy_view, Diff(updated=[row]))
            metrics.inc_counter(POLICIES_UPDATED)
        return row

    def transport_interrupted(self, error: Union[TransportInterrupted, str]) -> None:
        """Record a transport failure. Row state is left intact."""
        if isinstance(error, str):
            error = TransportInterrupted(error)
        logger.warning(error.message)
        metrics.inc_counter(TRANSPORT_INTERRUPTED)
        self.status = STATUS_CONNECTION_FAILURE

    # =========================================================================
    # Clock
    # =========================================================================

    def tick(self, now: Optional[datetime] = None) -> Diff[LeaseRow]:
        """Refresh relative labels and age out expired lease rows."""
        now = now or self.clock()
        self.refresh_labels(now)
        return self.sweep(now)

    def refresh_labels(self, now: Optional[datetime] = None) -> None:
        now = now or self.clock()
        for view in (self.lease_view, self.policy_view):
            if view is not None:
                view.refresh_relative_labels(now)

    def sweep(self, now: Optional[datetime] = None) -> Diff[LeaseRow]:
        """Remove every lease row whose death instant has passed."""
        now = now or self.clock()
        diff = self.leases.sweep(now)
        if diff.removed:
            logger.debug(f"Expired {len(diff.removed)} lease rows")
            self._emit(self.lease_view, diff)
            metrics.inc_counter(LEASES_EXPIRED_SWEPT, len(diff.removed))
            self._update_gauges()
        return diff

    # =========================================================================
    # Projection
    # =========================================================================

    def rebuild(self, now: Optional[datetime] = None) -> None:
        """Clear the rendering collaborators and replay every live row."""
        now = now or self.clock()
        swept = self.leases.sweep(now)
        if swept.removed:
            metrics.inc_counter(LEASES_EXPIRED_SWEPT, len(swept.removed))
            self._update_gauges()
        if self.lease_view is not None:
            self.lease_view.clear()
            self._emit(self.lease_view, Diff(added=self.leases.rows()))
        if self.policy_view is not None:
            self.policy_view.clear()
            self._emit(self.policy_view, Diff(added=self.policies.rows()))

    def _emit(self, view: Optional[Renderer], diff: Diff) -> None:
        if view is None:
            return
        for instruction in diff.instructions():
            if instruction.kind is InstructionKind.ADD:
                view.add(instruction.row_id, instruction.fields)
            elif instruction.kind is InstructionKind.UPDATE:
                view.update(instruction.row_id, instruction.fields)
            else:
                view.remove(instruction.row_id)

    def _processed(self) -> None:
        self.status = ""
        self.last_event_at = self.clock()
        self._update_gauges()

    def _update_gauges(self) -> None:
        metrics.set_gauge(LEASE_ROWS, len(self.leases))
        metrics.set_gauge(POLICY_ROWS, len(self.policies))
