"""Background streaming tasks and observer fan-out for debate sessions."""

import asyncio
import logging
from typing import Any, Dict, List

from fastapi import WebSocket

from aidebate.debate_engine.core import DebateEngine
from aidebate.debate_engine.exceptions import SessionBusyError
from aidebate.debate_engine.session import DebateSession

logger = logging.getLogger(__name__)


class DebateManager:
    """Runs session streams as tasks and relays their events to observers.

    Observers are WebSocket connections and SSE subscriber queues. A ``None``
    is put on every subscriber queue when a session's stream ends, and the
    finished task is dropped. Observer lists are dropped once empty.
    """

    def __init__(self, engine: DebateEngine):
        self.engine = engine
        self.tasks: Dict[int, asyncio.Task[None]] = {}
        self.connections: Dict[int, List[WebSocket]] = {}
        self.subscribers: Dict[int, List[asyncio.Queue[dict[str, Any] | None]]] = {}

    def is_running(self, session_id: int) -> bool:
        task = self.tasks.get(session_id)
        return task is not None and not task.done()

    def start_stream(self, session_id: int) -> asyncio.Task[None]:
        """Begin or continue streaming a session in the background."""
        if self.is_running(session_id) or self.engine.is_streaming(session_id):
            raise SessionBusyError(session_id)

        task = asyncio.create_task(self._run_stream(session_id))
        self.tasks[session_id] = task
        logger.info(f"Started stream task for session {session_id}")
        return task

    async def _run_stream(self, session_id: int) -> None:
        async def sink(message: dict[str, Any]) -> None:
            await self._broadcast_to_session(session_id, message)

        try:
            await self.engine.stream(session_id, sink)
        finally:
            for queue in self.subscribers.get(session_id, []):
                queue.put_nowait(None)
            if self.tasks.get(session_id) is asyncio.current_task():
                del self.tasks[session_id]

    async def cancel_stream(self, session_id: int) -> bool:
        """Cancel a running stream and wait for it to unwind."""
        task = self.tasks.get(session_id)
        if task is None or task.done():
            return False

        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            logger.info(f"Stream task for session {session_id} cancelled successfully")
        return True

    async def abort_session(self, session_id: int) -> DebateSession:
        """Cancel any running stream, then mark the session aborted."""
        if await self.cancel_stream(session_id):
            logger.info(f"Cancelled running stream of session {session_id} before abort")
        session = self.engine.abort_session(session_id)
        await self._broadcast_to_session(
            session_id,
            {"type": "error", "sessionId": session_id, "message": "Debate was aborted"},
        )
        return session

    async def shutdown(self) -> None:
        for session_id in list(self.tasks):
            await self.cancel_stream(session_id)

    async def _broadcast_to_session(self, session_id: int, message: Dict[str, Any]) -> None:
        """Broadcast message to all observers of a session."""
        for queue in self.subscribers.get(session_id, []):
            queue.put_nowait(message)

        dead_connections = []
        for websocket in self.connections.get(session_id, []):
            try:
                await websocket.send_json(message)
            except Exception as e:
                logger.debug(f"WebSocket send failed: {e}")
                dead_connections.append(websocket)

        for conn in dead_connections:
            self.remove_connection(session_id, conn)

    def subscribe(self, session_id: int) -> asyncio.Queue[dict[str, Any] | None]:
        queue: asyncio.Queue[dict[str, Any] | None] = asyncio.Queue()
        self.subscribers.setdefault(session_id, []).append(queue)
        return queue

    def unsubscribe(self, session_id: int, queue: asyncio.Queue[dict[str, Any] | None]) -> None:
        queues = self.subscribers.get(session_id, [])
        if queue in queues:
            queues.remove(queue)
        if not queues:
            self.subscribers.pop(session_id, None)

    def add_connection(self, session_id: int, websocket: WebSocket) -> None:
        """Add WebSocket connection for a session."""
        self.connections.setdefault(session_id, []).append(websocket)

    def remove_connection(self, session_id: int, websocket: WebSocket) -> None:
        """Remove WebSocket connection."""
        connections = self.connections.get(session_id, [])
        if websocket in connections:
            connections.remove(websocket)
        if not connections:
            self.connections.pop(session_id, None)
