"""LeaseWatch enumerations."""

from enum import Enum


class LeaseStatus(str, Enum):
    """Lease lifecycle status as published by the lease server."""

    ACTIVE = "active"
    RELEASED = "released"
    QUEUED = "queued"

    @classmethod
    def order_of(cls, status: str) -> int:
        """
        Return the display sort order for a raw status value.

        active 0, released 1, queued 2, anything unrecognized 3.
        """
        ordering = {cls.ACTIVE.value: 0, cls.RELEASED.value: 1, cls.QUEUED.value: 2}
        return ordering.get(status, 3)


class Strategy(str, Enum):
    """Resource counting strategy of a policy."""

    CONSUMER = "consumer"
    INSTANCE = "instance"


class InstructionKind(str, Enum):
    """Kinds of row instructions sent to the rendering collaborator."""

    ADD = "add"
    UPDATE = "update"
    REMOVE = "remove"
