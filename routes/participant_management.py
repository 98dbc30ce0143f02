# routes/participant_management.py
from fastapi import APIRouter, Depends, HTTPException, status
import logging
from models.schemas import ParticipantList
from signaling import SignalingServer, get_signaling_server

logger = logging.getLogger(__name__)
router = APIRouter()

@router.get("/room/{room_id}/participants", response_model=ParticipantList)
async def get_room_participants(room_id: str, server: SignalingServer = Depends(get_signaling_server)):
    """
    Get list of participants in a room, with their camera and mic state
    """
    if room_id not in server.store:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Room '{room_id}' not found"
        )

    participants = server.store.snapshot(room_id)
    return ParticipantList(
        roomId=room_id,
        participants=participants,
        total=len(participants)
    )
