"""In-process realtime notification hub.

Keeps the open WebSocket connections per user and pushes every newly created
notification to them. State is local to one API process; clients connected to
another process only see the notification on their next poll.

Pushes are queued on the database session and sent once it commits, so a
rolled-back notification never reaches a client.
"""

import asyncio
import uuid
from collections import defaultdict
from typing import Any

from fastapi import WebSocket, WebSocketDisconnect
from libs.common.logging import get_logger
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

logger = get_logger(__name__)

PENDING_KEY = "realtime_pending"


class NotificationHub:
    def __init__(self) -> None:
        self._connections: dict[str, set[WebSocket]] = defaultdict(set)
        self._lock = asyncio.Lock()
        self._tasks: set[asyncio.Task] = set()

    async def connect(self, user_id: uuid.UUID, websocket: WebSocket) -> None:
        await websocket.accept()
        async with self._lock:
            self._connections[str(user_id)].add(websocket)
        logger.info(f"Realtime connection opened for user {user_id}")

    async def disconnect(self, user_id: uuid.UUID, websocket: WebSocket) -> None:
        async with self._lock:
            sockets = self._connections.get(str(user_id))
            if sockets is None:
                return
            sockets.discard(websocket)
            if not sockets:
                self._connections.pop(str(user_id), None)
        logger.info(f"Realtime connection closed for user {user_id}")

    def connection_count(self, user_id: uuid.UUID | None = None) -> int:
        if user_id is None:
            return sum(len(s) for s in self._connections.values())
        return len(self._connections.get(str(user_id), ()))

    async def publish(self, user_id: uuid.UUID, event: str, data: dict[str, Any]) -> int:
        """Send ``{"event", "data"}`` to every socket of the user; returns deliveries."""
        sockets = list(self._connections.get(str(user_id), ()))
        delivered = 0
        for websocket in sockets:
            try:
                await websocket.send_json({"event": event, "data": data})
                delivered += 1
            except (WebSocketDisconnect, RuntimeError, ConnectionError) as e:
                logger.warning(f"Dropping stale socket for user {user_id}: {e}")
                await self.disconnect(user_id, websocket)
        return delivered

    def publish_after_commit(
        self, db: AsyncSession, user_id: uuid.UUID, event: str, data: dict[str, Any]
    ) -> None:
        """Queue a push until ``db`` commits; a rollback drops it."""
        db.sync_session.info.setdefault(PENDING_KEY, []).append((user_id, event, data))

    def _schedule(self, pending: list[tuple]) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning(f"No running event loop; dropped {len(pending)} realtime push(es)")
            return
        for user_id, event_name, data in pending:
            task = loop.create_task(self.publish(user_id, event_name, data))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)


hub = NotificationHub()


@event.listens_for(Session, "after_commit")
def _push_committed(session: Session) -> None:
    pending = session.info.pop(PENDING_KEY, None)
    if pending:
        hub._schedule(pending)


@event.listens_for(Session, "after_rollback")
def _drop_rolled_back(session: Session) -> None:
    session.info.pop(PENDING_KEY, None)
