"""Policy reconciler - policy definitions and consumption statistics."""

import logging
from typing import Iterable, Optional, Union

from pydantic import ValidationError

from leasewatch.engine.errors import InvalidRecord
from leasewatch.models.diff import Diff
from leasewatch.models.enums import Strategy
from leasewatch.models.policy import ConsumptionStats, PolicyRecord, PolicyRow
from leasewatch.utils.properties import PROGRAM_KEYS, resolve

logger = logging.getLogger(__name__)

RawPolicy = Union[PolicyRecord, dict]


def parse_policy(raw: RawPolicy) -> PolicyRow:
    """Build a view row from a policy record. Raises InvalidRecord without a resource."""
    try:
        record = raw if isinstance(raw, PolicyRecord) else PolicyRecord.model_validate(raw)
    except ValidationError as e:
        raise InvalidRecord(f"malformed policy: {e.error_count()} validation error(s)", raw) from e
    if not record.resource:
        raise InvalidRecord("policy has no resource", record)

    return PolicyRow(
        resource=record.resource,
        program=resolve(record.properties, PROGRAM_KEYS, record.resource),
        strategy=record.strategy or Strategy.INSTANCE.value,
        limit=record.limit,
    )


class PolicyReconciler:
    """
    Owns policy view rows keyed by resource.

    Definitions arrive as complete lists; consumption statistics arrive per
    resource on their own cadence and only ever touch rows that already exist.
    """

    def __init__(self):
        self._rows: dict[str, PolicyRow] = {}

    def get(self, resource: str) -> Optional[PolicyRow]:
        return self._rows.get(resource)

    def rows(self) -> list[PolicyRow]:
        return list(self._rows.values())

    def __contains__(self, resource: object) -> bool:
        return resource in self._rows

    def __len__(self) -> int:
        return len(self._rows)

    def reconcile_policies(self, records: Iterable[RawPolicy]) -> Diff[PolicyRow]:
        """
        Apply a full policy list.

        Rows keep the last statistics they received, so a changed strategy or
        limit is reflected in consumed/available immediately.
        """
        incoming: dict[str, PolicyRow] = {}
        for raw in records:
            row = parse_policy(raw)
            existing = self._rows.get(row.resource)
            if existing is not None and existing.stats is not None:
                row = row.model_copy(update={"stats": existing.stats})
            incoming[row.resource] = row

        diff: Diff[PolicyRow] = Diff()
        for resource, row in incoming.items():
            if resource in self._rows:
                diff.updated.append(row)
            else:
                diff.added.append(row)

        for resource, existing in self._rows.items():
            if resource not in incoming:
                diff.removed.append(existing.row_id)

        self._rows = incoming
        return diff

    def apply_consumption(
        self,
        resource: str,
        stats: Union[ConsumptionStats, dict],
    ) -> Optional[PolicyRow]:
        """
        Recompute consumed/available for one policy.

        Returns the updated row, or None when no policy is known for the
        resource (statistics are dropped, not buffered).
        """
        existing = self._rows.get(resource)
        if existing is None:
            logger.debug(f"Dropping consumption stats for unknown policy {resource}")
            return None
        if not isinstance(stats, ConsumptionStats):
            stats = ConsumptionStats.model_validate(stats)

        row = existing.model_copy(update={"stats": stats})
        self._rows[resource] = row
        return row

    def clear(self) -> None:
        self._rows.clear()
