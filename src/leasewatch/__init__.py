"""LeaseWatch - live reconciled view of resource leases and policies."""

__version__ = "0.1.0"
