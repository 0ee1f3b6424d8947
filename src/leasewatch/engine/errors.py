"""LeaseWatch engine errors."""

from typing import Any, Optional


class LeaseWatchError(Exception):
    """Base error for LeaseWatch operations."""

    def __init__(self, message: str, code: str = "LEASEWATCH_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class StaleRevision(LeaseWatchError):
    """Event revision is not newer than the last accepted one for its resource."""

    def __init__(self, resource: str, revision: int, last: int):
        super().__init__(
            f"Stale revision {revision} for {resource} (last accepted: {last})",
            "STALE_REVISION",
        )
        self.resource = resource
        self.revision = revision
        self.last = last


class InvalidRecord(LeaseWatchError):
    """A record lacks the identity or resource it must carry."""

    def __init__(self, reason: str, record: Optional[Any] = None):
        super().__init__(f"Invalid record: {reason}", "INVALID_RECORD")
        self.reason = reason
        self.record = record


class TransportInterrupted(LeaseWatchError):
    """The event stream disconnected or failed."""

    def __init__(self, reason: str = "connection lost"):
        super().__init__(f"Transport interrupted: {reason}", "TRANSPORT_INTERRUPTED")
        self.reason = reason
