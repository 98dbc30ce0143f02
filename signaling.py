import json
import logging
from typing import Any, Callable, Dict

from fastapi import Depends, WebSocket
from pydantic import ValidationError

from config.settings import settings
from connection_manager import ConnectionManager
from lifecycle import LifecycleCoordinator
from message_router import MessageRouter
from models.schemas import (
    ErrorNotice,
    InboundFrame,
    JoinRoomRequest,
    LeaveRoomRequest,
    SendMessageRequest,
    TargetedSignal,
    ToggleRequest,
)
from room_manager import RoomStore

logger = logging.getLogger(__name__)

RELAY_EVENTS = ("offer", "answer", "ice-candidate")


class SignalingServer:
    """Routes inbound events to the lifecycle coordinator or the message router.

    Handlers are plain functions, none of them await. One frame is fully
    applied to room state before the next one is looked at.
    """

    def __init__(self, connections=None, rejoin_policy: str = None, emit_error_events: bool = None):
        self.connections = connections if connections is not None else ConnectionManager()
        self.store = RoomStore()
        self.router = MessageRouter(self.store, self.connections)
        self.lifecycle = LifecycleCoordinator(
            self.store,
            self.router,
            rejoin_policy=rejoin_policy or settings.rejoin_policy,
        )
        self.emit_error_events = settings.emit_error_events if emit_error_events is None else emit_error_events
        self._handlers: Dict[str, Callable[[str, str, Any], None]] = {
            "join-room": self.on_join_room,
            "send-message": self.on_send_message,
            "toggle-camera": self.on_toggle_camera,
            "toggle-mic": self.on_toggle_mic,
            "leave-room": self.on_leave_room,
        }
        for relay_event in RELAY_EVENTS:
            self._handlers[relay_event] = self.on_relay

    def open(self, connection_id: str):
        self.lifecycle.open(connection_id)

    def handle_text(self, connection_id: str, text: str):
        try:
            frame = InboundFrame.model_validate(json.loads(text))
        except json.JSONDecodeError:
            self.reject(connection_id, None, "Invalid JSON format")
            return
        except ValidationError as e:
            self.reject(connection_id, None, f"Invalid frame: {e.errors()[0]['msg']}")
            return
        self.handle_event(connection_id, frame.event, frame.data)

    def handle_bytes(self, connection_id: str, raw: bytes):
        """Binary frames carry the same JSON envelope, UTF-8 encoded"""
        try:
            text = raw.decode("utf-8")
        except UnicodeDecodeError:
            self.reject(connection_id, None, "Binary frame is not valid UTF-8")
            return
        self.handle_text(connection_id, text)

    def handle_event(self, connection_id: str, event: str, data: Any):
        handler = self._handlers.get(event)
        if handler is None:
            self.reject(connection_id, event, f"Unknown event: {event}")
            return
        try:
            handler(connection_id, event, data)
        except ValidationError as e:
            self.reject(connection_id, event, f"Invalid payload: {e.errors()[0]['msg']}")
        except Exception as e:
            logger.error(f"Error handling '{event}' from {connection_id}: {e}", exc_info=True)

    def handle_disconnect(self, connection_id: str):
        room_id = self.lifecycle.disconnect(connection_id)
        if room_id is not None:
            logger.info(f"Connection {connection_id} disconnected from room {room_id}")

    def reject(self, connection_id: str, event: str, message: str):
        logger.warning(f"Ignoring '{event}' from {connection_id}: {message}")
        if self.emit_error_events:
            self.router.send(connection_id, "error", ErrorNotice(event=event, message=message).model_dump())

    # event handlers

    def on_join_room(self, connection_id: str, event: str, data: Any):
        request = JoinRoomRequest.model_validate(data)
        joined = self.lifecycle.join(connection_id, request.roomId, request.userName)
        if not joined and self.emit_error_events:
            notice = ErrorNotice(event=event, message=f"Cannot join room {request.roomId} from this connection")
            self.router.send(connection_id, "error", notice.model_dump())

    def on_relay(self, connection_id: str, event: str, data: Any):
        signal = TargetedSignal.model_validate(data)
        payload = signal.forward_payload()
        if event == "ice-candidate" and not payload.get("candidate"):
            logger.debug(f"Dropping empty ice-candidate from {connection_id}")
            return
        self.router.relay_targeted(event, signal.to, payload, connection_id)

    def on_send_message(self, connection_id: str, event: str, data: Any):
        request = SendMessageRequest.model_validate(data)
        if self.store.locate_room(connection_id) != request.roomId:
            logger.debug(f"Ignoring message from {connection_id}: not a member of room {request.roomId}")
            return
        message = dict(request.message)
        message["senderId"] = connection_id
        self.router.broadcast("receive-message", request.roomId, message, exclude=connection_id)

    def on_toggle_camera(self, connection_id: str, event: str, data: Any):
        request = ToggleRequest.model_validate(data)
        self.lifecycle.toggle_camera(connection_id, request.roomId, request.enabled)

    def on_toggle_mic(self, connection_id: str, event: str, data: Any):
        request = ToggleRequest.model_validate(data)
        self.lifecycle.toggle_mic(connection_id, request.roomId, request.enabled)

    def on_leave_room(self, connection_id: str, event: str, data: Any):
        if isinstance(data, str):
            data = {"roomId": data}
        request = LeaveRoomRequest.model_validate(data)
        self.lifecycle.leave(connection_id, request.roomId)


signaling_server = SignalingServer()


def get_signaling_server() -> SignalingServer:
    return signaling_server


async def signaling_endpoint(websocket: WebSocket, server: SignalingServer = Depends(get_signaling_server)):
    connection_id = await server.connections.connect(websocket)
    server.open(connection_id)

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                logger.info(f"WebSocket disconnected: {connection_id}")
                break
            if message.get("text") is not None:
                server.handle_text(connection_id, message["text"])
            elif message.get("bytes") is not None:
                server.handle_bytes(connection_id, message["bytes"])
    except Exception as e:
        logger.error(f"Error in WebSocket connection {connection_id}: {e}")
    finally:
        try:
            server.handle_disconnect(connection_id)
        except Exception as e:
            logger.error(f"Error cleaning up connection {connection_id}: {e}", exc_info=True)
        await server.connections.disconnect(connection_id)
