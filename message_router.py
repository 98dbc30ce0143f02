import logging
from typing import Any, Dict

from room_manager import RoomStore

logger = logging.getLogger(__name__)


class MessageRouter:
    """Addressing only: payloads are forwarded as-is, never inspected.

    `connections` is anything with a non-blocking
    ``send(connection_id, event, data) -> bool``; ConnectionManager in
    production, a recorder in tests.
    """

    def __init__(self, store: RoomStore, connections):
        self.store = store
        self.connections = connections

    def send(self, connection_id: str, kind: str, payload: Any) -> bool:
        return self.connections.send(connection_id, kind, payload)

    def relay_targeted(self, kind: str, target_id: str, payload: Dict[str, Any], from_id: str) -> bool:
        message = dict(payload)
        message["from"] = from_id
        delivered = self.connections.send(target_id, kind, message)
        if delivered:
            logger.debug(f"Relayed {kind} {from_id} -> {target_id}")
        else:
            logger.debug(f"Dropped {kind} from {from_id}: target {target_id} not connected")
        return delivered

    def broadcast(self, kind: str, room_id: str, payload: Any, exclude: str = None) -> int:
        delivered = 0
        for connection_id in self.store.members(room_id):
            if connection_id == exclude:
                continue
            if self.connections.send(connection_id, kind, payload):
                delivered += 1
        logger.debug(f"Broadcast {kind} to {delivered} member(s) of room {room_id}")
        return delivered
