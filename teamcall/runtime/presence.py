from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict

from teamcall.runtime.connections import ConnectionManager
from teamcall.schemas.ws import PresenceEntryOut, PresenceListOut


logger = logging.getLogger(__name__)


@dataclass
class PresenceEntry:
    user_id: str
    connection_id: str
    profile: Any = field(default_factory=dict)


class PresenceRegistry:
    """
    Online users, at most one entry per user_id.

    The first registration for a user wins: a second tab registering the
    same user_id is ignored until the first connection goes away.
    Every change is followed by a full `presence_list` broadcast.
    """

    def __init__(self, connections: ConnectionManager):
        self._connections = connections
        # user_id -> entry; dict order is insertion order
        self._entries: Dict[str, PresenceEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def register(self, connection_id: str, user_id: str | None, profile: Any = None) -> bool:
        if not user_id:
            return False
        conn = self._connections.get(connection_id)
        if conn is None:
            return False
        if user_id in self._entries:
            logger.debug("user %s already online, ignoring registration from %s", user_id, connection_id)
            return False

        self._entries[user_id] = PresenceEntry(
            user_id=user_id,
            connection_id=connection_id,
            profile=profile if profile is not None else {},
        )
        conn.user_id = user_id
        logger.info("user %s online via %s", user_id, connection_id)

        self.broadcast()
        return True

    def unregister(self, connection_id: str) -> list[PresenceEntry]:
        removed = [e for e in self._entries.values() if e.connection_id == connection_id]
        for entry in removed:
            del self._entries[entry.user_id]
            logger.info("user %s offline", entry.user_id)

        self.broadcast()
        return removed

    def list(self) -> list[PresenceEntry]:
        return list(self._entries.values())

    def lookup(self, user_id: str) -> PresenceEntry | None:
        return self._entries.get(user_id)

    def snapshot(self) -> PresenceListOut:
        return PresenceListOut(
            users=[
                PresenceEntryOut(user_id=e.user_id, connection_id=e.connection_id, profile=e.profile)
                for e in self._entries.values()
            ]
        )

    def broadcast(self) -> None:
        self._connections.broadcast(self.snapshot())

    def clear(self) -> None:
        self._entries.clear()
