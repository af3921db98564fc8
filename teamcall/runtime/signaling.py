from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable

from teamcall.runtime.connections import ConnectionManager
from teamcall.runtime.presence import PresenceRegistry
from teamcall.schemas.ws import CallSignalOut, PeerJoinedOut, PeerLeftOut


logger = logging.getLogger(__name__)


@dataclass
class Room:
    room_id: str
    # connection_id -> user_id, in join order
    members: Dict[str, str] = field(default_factory=dict)


class SignalingRelay:
    """
    Room membership plus unicast call signaling.

    A room exists only while it has members. Call payloads are forwarded
    untouched to exactly one connection and never broadcast.
    """

    def __init__(self, connections: ConnectionManager, presence: PresenceRegistry):
        self._connections = connections
        self._presence = presence
        self._rooms: Dict[str, Room] = {}

    def join_room(self, connection_id: str, room_id: str, user_id: str) -> bool:
        conn = self._connections.get(connection_id)
        if conn is None:
            return False

        room = self._rooms.get(room_id)
        if room is None:
            room = Room(room_id=room_id)
            self._rooms[room_id] = room
            logger.debug("room %s active", room_id)

        room.members[connection_id] = user_id
        conn.joined_rooms.add(room_id)
        logger.info("user %s joined room %s", user_id, room_id)

        self._connections.broadcast(
            PeerJoinedOut(room_id=room_id, user_id=user_id, connection_id=connection_id),
            connection_ids=list(room.members),
            exclude=connection_id,
        )
        return True

    def leave_room(self, connection_id: str, room_id: str) -> bool:
        room = self._rooms.get(room_id)
        if room is None or connection_id not in room.members:
            return False

        user_id = room.members.pop(connection_id)
        conn = self._connections.get(connection_id)
        if conn is not None:
            conn.joined_rooms.discard(room_id)
        logger.info("user %s left room %s", user_id, room_id)

        if not room.members:
            del self._rooms[room_id]
            logger.debug("room %s empty, removed", room_id)
            return True

        self._connections.broadcast(
            PeerLeftOut(room_id=room_id, user_id=user_id, connection_id=connection_id),
            connection_ids=list(room.members),
        )
        return True

    def relay_call(self, connection_id: str, target: str, payload: Any) -> bool:
        """Forward a call signal to `target` (a connection_id, else a user_id)."""
        sender = self._connections.get(connection_id)
        if sender is None:
            return False

        target_id = self._resolve_target(target)
        if target_id is None:
            logger.debug("call signal from %s to unknown target %s dropped", connection_id, target)
            return False

        return self._connections.send(
            target_id,
            CallSignalOut(
                from_connection_id=connection_id,
                from_user_id=sender.user_id,
                payload=payload,
            ),
        )

    def drop_connection(self, connection_id: str, room_ids: Iterable[str]) -> list[str]:
        """Leave every room a closing connection had joined."""
        left: list[str] = []
        for room_id in sorted(room_ids):
            if self.leave_room(connection_id, room_id):
                left.append(room_id)
        return left

    def _resolve_target(self, target: str) -> str | None:
        if target in self._connections:
            return target
        entry = self._presence.lookup(target)
        if entry is not None and entry.connection_id in self._connections:
            return entry.connection_id
        return None

    def room_members(self, room_id: str) -> Dict[str, str] | None:
        room = self._rooms.get(room_id)
        if room is None:
            return None
        return dict(room.members)

    def rooms(self) -> Dict[str, int]:
        """room_id -> member count for every active room."""
        return {room_id: len(room.members) for room_id, room in self._rooms.items()}

    def clear(self) -> None:
        self._rooms.clear()
