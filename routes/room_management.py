from fastapi import APIRouter, Depends, HTTPException, status
import logging
from models.schemas import RoomInfo, RoomSummary
from signaling import SignalingServer, get_signaling_server

logger = logging.getLogger(__name__)
router = APIRouter()

@router.get("/rooms")
async def list_rooms(server: SignalingServer = Depends(get_signaling_server)):
    """
    List all active rooms
    """
    room_list = [
        RoomSummary(
            roomId=room.id,
            numParticipants=len(room),
            creationTime=room.created_at,
        )
        for room in server.store.rooms()
    ]
    return {
        "rooms": room_list,
        "total": len(room_list)
    }

@router.get("/room/{room_id}", response_model=RoomInfo)
async def get_room_info(room_id: str, server: SignalingServer = Depends(get_signaling_server)):
    """
    Get information about a specific room
    """
    room = server.store.get(room_id)
    if room is None:
        logger.info(f"Room info requested for unknown room: {room_id}")
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Room '{room_id}' not found"
        )

    return RoomInfo(
        roomId=room.id,
        numParticipants=len(room),
        participants=[p.name for p in room.participants.values()],
        creationTime=room.created_at,
    )
