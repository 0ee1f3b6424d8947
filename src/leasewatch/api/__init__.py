"""LeaseWatch read-only API."""

from leasewatch.api.router import router

__all__ = ["router"]
