"""Single-writer event channel connecting the orchestrator to a response."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator

from fathom.models.event import Event, EventType

logger = logging.getLogger(__name__)


class EventChannel:
    """An ordered, unbounded queue of events for one turn.

    The orchestrator is the only writer. Once the channel is closed (turn
    finished or the caller went away) every further write is dropped.
    """

    def __init__(self, turn: int) -> None:
        self.turn = turn
        self._queue: asyncio.Queue[Event | None] = asyncio.Queue()
        self._closed = False
        self.sent = 0

    @property
    def closed(self) -> bool:
        return self._closed

    def send(self, event_type: EventType, **data) -> None:
        self._put(Event(type=event_type, turn=self.turn, data=data))

    def token(self, text: str) -> None:
        self._put(Event(type=EventType.TOKEN, turn=self.turn, text=text))

    def _put(self, event: Event) -> None:
        if self._closed:
            logger.debug("Dropping %s event on closed channel (turn %d)", event.type.value, self.turn)
            return
        self._queue.put_nowait(event)
        self.sent += 1

    def close(self) -> None:
        """Stop accepting events and wake the reader."""
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(None)

    async def __aiter__(self) -> AsyncIterator[Event]:
        while True:
            event = await self._queue.get()
            if event is None:
                return
            yield event
