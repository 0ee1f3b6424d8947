"""Observability helpers for LeaseWatch."""

from leasewatch.observability.metrics import metrics

__all__ = ["metrics"]
