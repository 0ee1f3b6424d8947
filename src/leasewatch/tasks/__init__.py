"""LeaseWatch background tasks."""

from leasewatch.tasks.ticker import ClockTicker

__all__ = ["ClockTicker"]
