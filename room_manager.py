from typing import Dict, List, Optional
import logging
import time

from models.schemas import Participant

logger = logging.getLogger(__name__)


class MembershipConflict(ValueError):
    """A connection was added to a room while it is a member of another one"""


class Room:
    def __init__(self, room_id: str):
        self.id = room_id
        self.participants: Dict[str, Participant] = {}
        self.created_at = int(time.time())

    def __len__(self):
        return len(self.participants)


class ConnectionIndex:
    """Reverse index connection id -> room id.

    Kept in step with RoomStore by the store itself, so lookups on
    disconnect are O(1) instead of a scan over every room.
    """

    def __init__(self):
        self._rooms_by_connection: Dict[str, str] = {}

    def locate_room(self, connection_id: str) -> Optional[str]:
        return self._rooms_by_connection.get(connection_id)

    def bind(self, connection_id: str, room_id: str):
        self._rooms_by_connection[connection_id] = room_id

    def unbind(self, connection_id: str, room_id: str):
        if self._rooms_by_connection.get(connection_id) == room_id:
            del self._rooms_by_connection[connection_id]

    def __len__(self):
        return len(self._rooms_by_connection)


class RoomStore:
    """In-memory room registry: room id -> {connection id: Participant}.

    A room only exists while it has participants; callers remove the last
    participant and delete the room in the same handler. No locking here,
    every mutation happens on the event loop thread.
    """

    def __init__(self, index: ConnectionIndex = None):
        self._rooms: Dict[str, Room] = {}
        self.index = index if index is not None else ConnectionIndex()

    def get(self, room_id: str) -> Optional[Room]:
        return self._rooms.get(room_id)

    def get_or_create(self, room_id: str) -> Room:
        room = self._rooms.get(room_id)
        if room is None:
            room = Room(room_id)
            self._rooms[room_id] = room
            logger.info(f"Room {room_id} initialized")
        return room

    def add(self, room_id: str, participant: Participant):
        connection_id = participant.connectionId
        current = self.index.locate_room(connection_id)
        if current is not None and current != room_id:
            raise MembershipConflict(
                f"Connection {connection_id} is already in room {current}, cannot add it to {room_id}"
            )
        room = self.get_or_create(room_id)
        room.participants[connection_id] = participant
        self.index.bind(connection_id, room_id)

    def remove(self, room_id: str, connection_id: str) -> Optional[Participant]:
        room = self._rooms.get(room_id)
        if room is None:
            return None
        participant = room.participants.pop(connection_id, None)
        if participant is not None:
            self.index.unbind(connection_id, room_id)
        return participant

    def is_empty(self, room_id: str) -> bool:
        room = self._rooms.get(room_id)
        return room is None or not room.participants

    def delete(self, room_id: str):
        room = self._rooms.pop(room_id, None)
        if room is None:
            return
        for connection_id in room.participants:
            self.index.unbind(connection_id, room_id)
        logger.info(f"Room {room_id} deleted")

    def participant(self, room_id: str, connection_id: str) -> Optional[Participant]:
        room = self._rooms.get(room_id)
        if room is None:
            return None
        return room.participants.get(connection_id)

    def members(self, room_id: str) -> List[str]:
        room = self._rooms.get(room_id)
        if room is None:
            return []
        return list(room.participants)

    def snapshot(self, room_id: str, excluding: str = None) -> List[Participant]:
        room = self._rooms.get(room_id)
        if room is None:
            return []
        return [
            participant.model_copy()
            for connection_id, participant in room.participants.items()
            if connection_id != excluding
        ]

    def locate_room(self, connection_id: str) -> Optional[str]:
        return self.index.locate_room(connection_id)

    def rooms(self) -> List[Room]:
        return list(self._rooms.values())

    def __contains__(self, room_id: str):
        return room_id in self._rooms

    def __len__(self):
        return len(self._rooms)
