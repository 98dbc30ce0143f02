import asyncio
import logging
import uuid
from typing import Any, Dict

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Live WebSocket connections, each with its own outbound queue.

    send() never awaits: it drops the frame on the connection's queue and a
    per-connection writer task does the actual socket write. Frames to one
    connection leave in the order they were queued.
    """

    def __init__(self):
        self.active_connections: Dict[str, WebSocket] = {}
        self._outboxes: Dict[str, asyncio.Queue] = {}
        self._writers: Dict[str, asyncio.Task] = {}

    async def connect(self, websocket: WebSocket) -> str:
        await websocket.accept()
        connection_id = uuid.uuid4().hex
        outbox: asyncio.Queue = asyncio.Queue()
        self.active_connections[connection_id] = websocket
        self._outboxes[connection_id] = outbox
        self._writers[connection_id] = asyncio.create_task(
            self._write_loop(connection_id, websocket, outbox)
        )
        logger.info(f"Connection {connection_id} accepted")
        self.send(connection_id, "connected", {"connectionId": connection_id})
        return connection_id

    def is_connected(self, connection_id: str) -> bool:
        return connection_id in self._outboxes

    def send(self, connection_id: str, event: str, data: Any) -> bool:
        outbox = self._outboxes.get(connection_id)
        if outbox is None:
            logger.debug(f"Dropping '{event}' for unknown connection {connection_id}")
            return False
        outbox.put_nowait({"event": event, "data": data})
        return True

    async def _write_loop(self, connection_id: str, websocket: WebSocket, outbox: asyncio.Queue):
        try:
            while True:
                frame = await outbox.get()
                await websocket.send_json(frame)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(f"Error sending to connection {connection_id}: {e}")
            # later sends are dropped instead of queueing behind a dead writer
            if self._outboxes.get(connection_id) is outbox:
                del self._outboxes[connection_id]

    async def disconnect(self, connection_id: str):
        self.active_connections.pop(connection_id, None)
        self._outboxes.pop(connection_id, None)
        writer = self._writers.pop(connection_id, None)
        if writer is not None:
            writer.cancel()
            try:
                await writer
            except asyncio.CancelledError:
                pass
        logger.info(f"Connection {connection_id} closed")

    async def close_all(self):
        for connection_id in list(self._writers):
            await self.disconnect(connection_id)

    def __len__(self):
        return len(self._outboxes)
