"""Lease reconciler - maps lease snapshots onto view rows."""

import logging
from datetime import datetime
from typing import Iterable, Optional, Union

from pydantic import ValidationError

from leasewatch.engine.errors import InvalidRecord
from leasewatch.engine.expiry import death_instant
from leasewatch.models.diff import Diff
from leasewatch.models.lease import LeaseRecord, LeaseRow
from leasewatch.utils.properties import (
    HOST_KEYS,
    PID_KEYS,
    PROCESS_CREATION_KEYS,
    PROGRAM_KEYS,
    USER_KEYS,
    resolve,
)
from leasewatch.utils.time import parse_timestamp

logger = logging.getLogger(__name__)

RawLease = Union[LeaseRecord, dict]


def parse_lease(raw: RawLease) -> LeaseRow:
    """
    Build a view row from a lease record.

    Raises InvalidRecord when the record has no instance id or no resource.
    """
    try:
        record = raw if isinstance(raw, LeaseRecord) else LeaseRecord.model_validate(raw)
    except ValidationError as e:
        raise InvalidRecord(f"malformed lease: {e.error_count()} validation error(s)", raw) from e
    if not record.instance_id:
        raise InvalidRecord("lease has no instance id", record)
    if not record.resource:
        raise InvalidRecord(f"lease {record.instance_id} has no resource", record)

    props = record.properties
    instance = record.instance
    started = parse_timestamp(resolve(props, PROCESS_CREATION_KEYS)) or record.started

    return LeaseRow(
        id=record.instance_id,
        resource=record.resource,
        program=resolve(props, PROGRAM_KEYS, record.resource),
        user=resolve(props, USER_KEYS, instance.user),
        host=resolve(props, HOST_KEYS, instance.host),
        pid=resolve(props, PID_KEYS),
        status=record.status,
        started=started,
        released=record.released,
        death=death_instant(
            record.status,
            record.duration,
            record.decay,
            renewed=record.renewed,
            released=record.released,
            started=record.started,
        ),
    )


class LeaseReconciler:
    """Owns lease view rows keyed by instance id and diffs snapshots against them."""

    def __init__(self):
        self._rows: dict[str, LeaseRow] = {}

    def get(self, lease_id: str) -> Optional[LeaseRow]:
        return self._rows.get(lease_id)

    def rows(self) -> list[LeaseRow]:
        return list(self._rows.values())

    def __contains__(self, lease_id: object) -> bool:
        return lease_id in self._rows

    def __len__(self) -> int:
        return len(self._rows)

    def reconcile(
        self,
        resource_scope: Optional[str],
        records: Iterable[RawLease],
        now: datetime,
    ) -> Diff[LeaseRow]:
        """
        Apply a lease snapshot and return the resulting diff.

        With a resource scope only rows tagged with that resource are
        candidates for removal; without one only dead-on-arrival ids are.
        Records whose death instant is at or before now count as absent. All
        records are parsed before any state changes, so an InvalidRecord
        leaves the rows untouched.
        """
        parsed = [parse_lease(raw) for raw in records]

        incoming: dict[str, LeaseRow] = {}
        dead: set[str] = set()
        for row in parsed:
            if row.is_dead(now):
                logger.debug(f"Dead lease detected on arrival: {row.id} ({row.resource})")
                incoming.pop(row.id, None)
                dead.add(row.id)
                continue
            dead.discard(row.id)
            incoming[row.id] = row

        diff: Diff[LeaseRow] = Diff()
        for lease_id, row in incoming.items():
            if lease_id in self._rows:
                diff.updated.append(row)
            else:
                diff.added.append(row)

        for lease_id, existing in self._rows.items():
            if lease_id in incoming:
                continue
            in_scope = resource_scope is not None and existing.resource == resource_scope
            if in_scope or lease_id in dead:
                diff.removed.append(lease_id)

        for lease_id in diff.removed:
            del self._rows[lease_id]
        self._rows.update(incoming)

        return diff

    def expired(self, now: datetime) -> list[LeaseRow]:
        """Return known rows whose death instant is at or before now."""
        return [row for row in self._rows.values() if row.is_dead(now)]

    def sweep(self, now: datetime) -> Diff[LeaseRow]:
        """Drop every expired row and return them as removals."""
        diff: Diff[LeaseRow] = Diff()
        for row in self.expired(now):
            del self._rows[row.id]
            diff.removed.append(row.id)
        return diff

    def clear(self) -> None:
        self._rows.clear()
