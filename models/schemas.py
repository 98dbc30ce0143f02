# models/schemas.py
from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Optional

# Frame envelope
class InboundFrame(BaseModel):
    event: str = Field(min_length=1)
    data: Any = None

# Participant record, also the wire shape used in rosters and join notices
class Participant(BaseModel):
    connectionId: str
    name: str
    cameraOn: bool = True
    micOn: bool = True

# Client -> server payloads
class JoinRoomRequest(BaseModel):
    roomId: str = Field(min_length=1)
    userName: str

class LeaveRoomRequest(BaseModel):
    roomId: str = Field(min_length=1)

class ToggleRequest(BaseModel):
    roomId: str = Field(min_length=1)
    enabled: bool

class SendMessageRequest(BaseModel):
    roomId: str = Field(min_length=1)
    message: Dict[str, Any]

class TargetedSignal(BaseModel):
    """offer / answer / ice-candidate; everything besides `to` is opaque"""
    model_config = ConfigDict(extra="allow")

    to: str = Field(min_length=1)

    def forward_payload(self) -> Dict[str, Any]:
        payload = dict(self.model_extra or {})
        payload.pop("from", None)
        return payload

# Server -> client payloads
class ToggleNotice(BaseModel):
    connectionId: str
    enabled: bool

class LeftNotice(BaseModel):
    connectionId: str
    name: str

class ErrorNotice(BaseModel):
    event: Optional[str] = None
    message: str

# REST responses
class RoomSummary(BaseModel):
    roomId: str
    numParticipants: int
    creationTime: int

class RoomInfo(BaseModel):
    roomId: str
    numParticipants: int
    participants: List[str]
    creationTime: int

class ParticipantList(BaseModel):
    roomId: str
    participants: List[Participant]
    total: int
