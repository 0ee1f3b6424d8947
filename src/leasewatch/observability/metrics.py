"""In-process metrics for the reconciliation engine."""

from collections import defaultdict
from contextlib import contextmanager
from dataclasses import asdict, dataclass
from threading import Lock
from time import perf_counter
from typing import Any, Iterator, Optional

EVENTS_POLICIES = "events.policies"
EVENTS_LEASES = "events.leases"
EVENTS_STALE_DISCARDED = "events.stale_discarded"
EVENTS_INVALID = "events.invalid"
LEASES_ADDED = "leases.added"
LEASES_UPDATED = "leases.updated"
LEASES_REMOVED = "leases.removed"
LEASES_EXPIRED_SWEPT = "leases.expired_swept"
POLICIES_ADDED = "policies.added"
POLICIES_UPDATED = "policies.updated"
POLICIES_REMOVED = "policies.removed"
TRANSPORT_INTERRUPTED = "transport.interrupted"
LEASE_ROWS = "leases.rows"
POLICY_ROWS = "policies.rows"
RECONCILE_DURATION_MS = "reconcile.duration_ms"


@dataclass
class Timing:
    """Running summary of one timed operation, in milliseconds."""

    count: int = 0
    total_ms: float = 0.0
    last_ms: Optional[float] = None
    max_ms: Optional[float] = None

    def record(self, elapsed_ms: float) -> None:
        self.count += 1
        self.total_ms += elapsed_ms
        self.last_ms = elapsed_ms
        self.max_ms = elapsed_ms if self.max_ms is None else max(self.max_ms, elapsed_ms)

    @property
    def mean_ms(self) -> float:
        return self.total_ms / self.count if self.count else 0.0


class MetricsRegistry:
    """
    Counters, row gauges and reconcile timings keyed by metric name.

    All access is serialized through one lock.
    """

    def __init__(self) -> None:
        self._lock = Lock()
        self._counters: defaultdict[str, float] = defaultdict(float)
        self._gauges: dict[str, float] = {}
        self._timings: defaultdict[str, Timing] = defaultdict(Timing)

    def inc_counter(self, name: str, amount: float = 1.0) -> None:
        if not amount:
            return
        with self._lock:
            self._counters[name] += amount

    def counter(self, name: str) -> float:
        with self._lock:
            return self._counters.get(name, 0.0)

    def set_gauge(self, name: str, value: float) -> None:
        with self._lock:
            self._gauges[name] = float(value)

    def gauge(self, name: str) -> Optional[float]:
        with self._lock:
            return self._gauges.get(name)

    def observe(self, name: str, elapsed_ms: float) -> None:
        with self._lock:
            self._timings[name].record(elapsed_ms)

    @contextmanager
    def timed(self, name: str) -> Iterator[None]:
        """Observe the wall time of the block in milliseconds."""
        start = perf_counter()
        try:
            yield
        finally:
            self.observe(name, (perf_counter() - start) * 1000)

    def reset(self) -> None:
        with self._lock:
            self._counters.clear()
            self._gauges.clear()
            self._timings.clear()

    def snapshot(self) -> dict[str, Any]:
        with self._lock:
            return {
                "counters": dict(self._counters),
                "gauges": dict(self._gauges),
                "timings": {
                    name: {**asdict(timing), "mean_ms": timing.mean_ms}
                    for name, timing in self._timings.items()
                },
            }


metrics = MetricsRegistry()
