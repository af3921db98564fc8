from __future__ import annotations

from typing import Annotated, Any, Literal, List, Union
from pydantic import BaseModel, Field, TypeAdapter


# ---- client -> server ----

class RegisterIdentityIn(BaseModel):
    type: Literal["register_identity"] = "register_identity"
    user_id: str | None = None  # falsy ids are ignored by the registry
    profile: Any = None  # opaque display data, stored as sent


class JoinRoomIn(BaseModel):
    type: Literal["join_room"] = "join_room"
    room_id: str = Field(..., min_length=1)
    user_id: str = Field(..., min_length=1)


class LeaveRoomIn(BaseModel):
    type: Literal["leave_room"] = "leave_room"
    room_id: str = Field(..., min_length=1)


class CallSignalIn(BaseModel):
    type: Literal["call_signal"] = "call_signal"
    target: str = Field(..., min_length=1)  # connection_id or user_id
    payload: Any = None  # offer / answer / candidate, passed through as-is


ClientToServer = Annotated[
    Union[RegisterIdentityIn, JoinRoomIn, LeaveRoomIn, CallSignalIn],
    Field(discriminator="type"),
]

client_message_adapter: TypeAdapter[ClientToServer] = TypeAdapter(ClientToServer)


# ---- server -> clients ----

class PresenceEntryOut(BaseModel):
    user_id: str
    connection_id: str
    profile: Any = {}


class PresenceListOut(BaseModel):
    type: Literal["presence_list"] = "presence_list"
    users: List[PresenceEntryOut] = []


class PeerJoinedOut(BaseModel):
    type: Literal["peer_joined"] = "peer_joined"
    room_id: str
    user_id: str
    connection_id: str


class PeerLeftOut(BaseModel):
    type: Literal["peer_left"] = "peer_left"
    room_id: str
    user_id: str
    connection_id: str


class CallSignalOut(BaseModel):
    type: Literal["call_signal"] = "call_signal"
    from_connection_id: str
    from_user_id: str | None = None
    payload: Any = None


ServerToClient = Union[PresenceListOut, PeerJoinedOut, PeerLeftOut, CallSignalOut]
