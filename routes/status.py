from fastapi import APIRouter, Depends, HTTPException, Request, status
import logging
from typing import List
from models.schemas import MemberInfo, RoomDetail, RoomSummary, StatusResponse
from room_manager import Room
from signaling import SignalingService

logger = logging.getLogger(__name__)
router = APIRouter()

def get_signaling(request: Request) -> SignalingService:
    return request.app.state.signaling

def room_summary(room_id: str, room: Room) -> RoomSummary:
    return RoomSummary(
        roomId=room_id,
        memberCount=len(room.members),
        callActive=room.call_active,
        creatorUserId=room.creator_user_id,
    )

@router.get("/status", response_model=StatusResponse)
async def get_status(signaling: SignalingService = Depends(get_signaling)):
    """
    Room count and live connection count
    """
    return StatusResponse(**signaling.status())

@router.get("/rooms", response_model=List[RoomSummary])
async def list_rooms(signaling: SignalingService = Depends(get_signaling)):
    return [room_summary(room_id, room) for room_id, room in signaling.registry]

@router.get("/rooms/{room_id}", response_model=RoomDetail)
async def get_room_info(room_id: str, signaling: SignalingService = Depends(get_signaling)):
    """
    Members and call state of a single room
    """
    room = signaling.registry.get_room(room_id)
    if room is None:
        logger.info(f"Room lookup failed: {room_id}")
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Room '{room_id}' not found"
        )

    summary = room_summary(room_id, room)
    return RoomDetail(
        **summary.model_dump(),
        members=[MemberInfo(**member) for member in room.members_list()],
    )
