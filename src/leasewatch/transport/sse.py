"""text/event-stream decoding."""

from dataclasses import dataclass
from typing import AsyncIterable, AsyncIterator, Optional

DEFAULT_EVENT = "message"


@dataclass(frozen=True)
class ServerSentEvent:
    event: str = DEFAULT_EVENT
    data: str = ""
    id: Optional[str] = None
    retry: Optional[int] = None


class SSEDecoder:
    """
    Incremental decoder for server-sent event framing.

    Feed one line at a time (without its terminator). A blank line
    dispatches the pending event; events with no data lines are dropped.
    """

    def __init__(self):
        self._event = ""
        self._data: list[str] = []
        self._last_event_id: Optional[str] = None
        self._retry: Optional[int] = None

    @property
    def last_event_id(self) -> Optional[str]:
        return self._last_event_id

    def decode(self, line: str) -> Optional[ServerSentEvent]:
        line = line.rstrip("\r\n")
        if not line:
            return self._dispatch()
        if line.startswith(":"):
            return None

        name, _, value = line.partition(":")
        if value.startswith(" "):
            value = value[1:]

        if name == "event":
            self._event = value
        elif name == "data":
            self._data.append(value)
        elif name == "id":
            if "\0" not in value:
                self._last_event_id = value
        elif name == "retry":
            if value.isdigit():
                self._retry = int(value)
        return None

    def _dispatch(self) -> Optional[ServerSentEvent]:
        if not self._data and not self._event:
            return None
        event = None
        if self._data:
            event = ServerSentEvent(
                event=self._event or DEFAULT_EVENT,
                data="\n".join(self._data),
                id=self._last_event_id,
                retry=self._retry,
            )
        self._event = ""
        self._data = []
        return event


async def iter_events(lines: AsyncIterable[str]) -> AsyncIterator[ServerSentEvent]:
    """Decode an async stream of lines into server-sent events."""
    decoder = SSEDecoder()
    async for line in lines:
        event = decoder.decode(line)
        if event is not None:
            yield event
