"""Event stream transport."""

from leasewatch.transport.sse import ServerSentEvent, SSEDecoder, iter_events
from leasewatch.transport.stream import StreamConsumer

__all__ = ["SSEDecoder", "ServerSentEvent", "StreamConsumer", "iter_events"]
