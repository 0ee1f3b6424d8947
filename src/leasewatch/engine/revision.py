"""Per-resource revision gate."""

import logging
from typing import Optional

from leasewatch.engine.errors import StaleRevision

logger = logging.getLogger(__name__)


class RevisionGate:
    """
    Discards events whose revision is not newer than the last accepted one.

    Each resource is an independent channel. Events without a revision are
    always accepted and leave the table untouched.
    """

    def __init__(self):
        self._revisions: dict[str, int] = {}

    def last(self, resource: str) -> Optional[int]:
        """Return the last accepted revision for a resource, if any."""
        return self._revisions.get(resource)

    def check(self, resource: Optional[str], revision: Optional[int]) -> None:
        """Raise StaleRevision if the revision would be rejected. Never records."""
        if resource is None or revision is None:
            return
        last = self._revisions.get(resource)
        if last is not None and revision <= last:
            raise StaleRevision(resource, revision, last)

    def accept(self, resource: Optional[str], revision: Optional[int]) -> bool:
        """Accept and record a revision, or reject it without side effects."""
        try:
            self.check(resource, revision)
        except StaleRevision:
            return False
        if resource is not None and revision is not None:
            self._revisions[resource] = revision
        return True

    def __len__(self) -> int:
        return len(self._revisions)
