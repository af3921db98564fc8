from __future__ import annotations

from pydantic import BaseModel
from typing import List


class CallMemberOut(BaseModel):
    connection_id: str
    user_id: str


class CallOut(BaseModel):
    room_id: str
    participant_count: int = 0


class CallDetailOut(BaseModel):
    room_id: str
    members: List[CallMemberOut]


class CallListOut(BaseModel):
    calls: List[CallOut]
