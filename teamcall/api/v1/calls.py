from __future__ import annotations

from fastapi import APIRouter, HTTPException

from teamcall.runtime.hub import get_hub
from teamcall.schemas.call import CallDetailOut, CallListOut, CallMemberOut, CallOut
from teamcall.schemas.ws import PresenceListOut

router = APIRouter()


@router.get("/presence", response_model=PresenceListOut)
async def list_presence() -> PresenceListOut:
    return get_hub().presence.snapshot()


@router.get("/calls", response_model=CallListOut)
async def list_calls() -> CallListOut:
    rooms = get_hub().relay.rooms()
    return CallListOut(
        calls=[CallOut(room_id=room_id, participant_count=count) for room_id, count in rooms.items()]
    )


@router.get("/calls/{room_id}", response_model=CallDetailOut)
async def get_call(room_id: str) -> CallDetailOut:
    members = get_hub().relay.room_members(room_id)
    if members is None:
        raise HTTPException(status_code=404, detail="room not found")

    return CallDetailOut(
        room_id=room_id,
        members=[CallMemberOut(connection_id=cid, user_id=uid) for cid, uid in members.items()],
    )
