"""Ordered event stream delivered to debate observers."""

import logging
from datetime import datetime
from typing import Any

from .types import ChunkCallback, DebateEvent, EventCallback

logger = logging.getLogger(__name__)


class EventEmitter:
    """Delivers named events for one session to a sink, in emission order.

    Every message is a dict ``{"type": <event name>, "sessionId": ..., "timestamp": ..., **payload}``
    which is the shape the WebSocket and SSE endpoints forward as-is.
    """

    def __init__(self, session_id: int, sink: EventCallback | None = None):
        self.session_id = session_id
        self._sink = sink
        self.sequence = 0

    async def emit(self, event: DebateEvent, **data: Any) -> None:
        self.sequence += 1
        message: dict[str, Any] = {
            "type": event.value,
            "sessionId": self.session_id,
            "sequence": self.sequence,
            "timestamp": datetime.now().isoformat(),
            **data,
        }
        if event is DebateEvent.ERROR:
            logger.warning(f"Session {self.session_id} error event: {data.get('message')}")
        else:
            logger.debug(f"Session {self.session_id} event {event.value}")

        if self._sink is not None:
            await self._sink(message)

    async def error(self, message: str) -> None:
        await self.emit(DebateEvent.ERROR, message=message)

    def text_stream(self, event: DebateEvent, **fields: Any) -> ChunkCallback:
        """Adapt a ``(chunk, is_complete)`` callback into chunk events.

        Each chunk event carries the delta and the text accumulated so far; the
        single completion event carries an empty chunk and the final text.
        """
        parts: list[str] = []
        finished = False

        async def relay(chunk: str, is_complete: bool) -> None:
            nonlocal finished
            if finished:
                logger.debug(f"Ignoring {event.value} chunk after completion")
                return
            if is_complete:
                finished = True
                await self.emit(event, chunk="", content="".join(parts), complete=True, **fields)
                return
            if not chunk:
                return
            parts.append(chunk)
            await self.emit(event, chunk=chunk, content="".join(parts), complete=False, **fields)

        return relay
