import logging
from enum import Enum
from typing import Dict, Optional

from message_router import MessageRouter
from models.schemas import LeftNotice, Participant, ToggleNotice
from room_manager import RoomStore

logger = logging.getLogger(__name__)


class ConnectionState(str, Enum):
    UNJOINED = "unjoined"
    ACTIVE = "active"
    LEFT = "left"


class LifecycleCoordinator:
    """Drives each connection through join / active / leave.

    Every method is synchronous and runs to completion before the next
    event is handled, which is what keeps RoomStore consistent without
    locks. Explicit leave and disconnect both end in _remove_participant.
    """

    def __init__(self, store: RoomStore, router: MessageRouter, rejoin_policy: str = "reject"):
        self.store = store
        self.router = router
        self.rejoin_policy = rejoin_policy
        self.states: Dict[str, ConnectionState] = {}

    def open(self, connection_id: str):
        self.states[connection_id] = ConnectionState.UNJOINED

    def state_of(self, connection_id: str) -> ConnectionState:
        return self.states.get(connection_id, ConnectionState.UNJOINED)

    def join(self, connection_id: str, room_id: str, name: str) -> bool:
        state = self.state_of(connection_id)
        if state is ConnectionState.LEFT:
            logger.warning(f"Connection {connection_id} already left, ignoring join to {room_id}")
            return False
        if state is ConnectionState.ACTIVE:
            current_room = self.store.locate_room(connection_id)
            if self.rejoin_policy != "switch":
                logger.warning(f"Connection {connection_id} is active in room {current_room}, ignoring join to {room_id}")
                return False
            if current_room is not None:
                logger.info(f"Connection {connection_id} switching from room {current_room} to {room_id}")
                self._remove_participant(connection_id, current_room)

        self.store.get_or_create(room_id)
        participant = Participant(connectionId=connection_id, name=name)
        self.store.add(room_id, participant)
        self.states[connection_id] = ConnectionState.ACTIVE
        logger.info(f"{name} ({connection_id}) joined room {room_id}")

        # roster goes out before anyone else hears about the join
        roster = self.store.snapshot(room_id, excluding=connection_id)
        self.router.send(connection_id, "existing-participants", [p.model_dump() for p in roster])
        self.router.broadcast("user-joined", room_id, participant.model_dump(), exclude=connection_id)
        logger.info(f"Room {room_id} now has {len(roster) + 1} participant(s)")
        return True

    def toggle_camera(self, connection_id: str, room_id: str, enabled: bool) -> bool:
        return self._toggle(connection_id, room_id, "cameraOn", enabled, "user-toggle-camera")

    def toggle_mic(self, connection_id: str, room_id: str, enabled: bool) -> bool:
        return self._toggle(connection_id, room_id, "micOn", enabled, "user-toggle-mic")

    def _toggle(self, connection_id: str, room_id: str, flag: str, enabled: bool, notice: str) -> bool:
        if self.state_of(connection_id) is not ConnectionState.ACTIVE:
            return False
        participant = self.store.participant(room_id, connection_id)
        if participant is None:
            logger.debug(f"Ignoring {notice} from {connection_id}: not a member of room {room_id}")
            return False
        setattr(participant, flag, enabled)
        payload = ToggleNotice(connectionId=connection_id, enabled=enabled).model_dump()
        self.router.broadcast(notice, room_id, payload, exclude=connection_id)
        return True

    def leave(self, connection_id: str, room_id: str) -> bool:
        if self.state_of(connection_id) is not ConnectionState.ACTIVE:
            logger.debug(f"Ignoring leave from {connection_id}: not active")
            return False
        if self.store.locate_room(connection_id) != room_id:
            logger.debug(f"Ignoring leave from {connection_id}: not a member of room {room_id}")
            return False
        logger.info(f"Connection {connection_id} leaving room {room_id}")
        self._remove_participant(connection_id, room_id)
        self.states[connection_id] = ConnectionState.LEFT
        return True

    def disconnect(self, connection_id: str) -> Optional[str]:
        """Implicit leave; returns the room the connection was removed from"""
        room_id = self.store.locate_room(connection_id)
        if room_id is not None:
            self._remove_participant(connection_id, room_id)
        self.states.pop(connection_id, None)
        return room_id

    def _remove_participant(self, connection_id: str, room_id: str) -> Optional[Participant]:
        participant = self.store.remove(room_id, connection_id)
        if participant is not None:
            logger.info(f"{participant.name} ({connection_id}) left room {room_id}")
            notice = LeftNotice(connectionId=connection_id, name=participant.name).model_dump()
            self.router.broadcast("user-left", room_id, notice, exclude=connection_id)
        if self.store.is_empty(room_id):
            self.store.delete(room_id)
        else:
            logger.info(f"Room {room_id} now has {len(self.store.members(room_id))} participant(s)")
        return participant
