"""Death instant computation for leases."""

from datetime import datetime
from typing import Optional

from leasewatch.models.enums import LeaseStatus
from leasewatch.utils.time import nanos_to_timedelta


def death_instant(
    status: str,
    duration: int,
    decay: int,
    renewed: Optional[datetime] = None,
    released: Optional[datetime] = None,
    started: Optional[datetime] = None,
) -> Optional[datetime]:
    """
    Compute the instant after which a lease must no longer be displayed.

    Durations are nanoseconds.

    - active: renewed + duration + decay (renewed falls back to started)
    - released: released + decay (an unset release time decays from the
      nominal expiration instead)
    - any other status, or a missing anchor timestamp: None (never dies)
    """
    if status == LeaseStatus.RELEASED.value and released is not None:
        return released + nanos_to_timedelta(decay)
    if status in (LeaseStatus.ACTIVE.value, LeaseStatus.RELEASED.value):
        anchor = renewed or started
        if anchor is None:
            return None
        return anchor + nanos_to_timedelta(duration) + nanos_to_timedelta(decay)
    return None
