from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Protocol, Set

from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel


logger = logging.getLogger(__name__)


class JsonSocket(Protocol):
    """The part of a websocket the runtime needs (starlette's WebSocket fits)."""

    async def send_json(self, data: Any) -> None: ...

    async def close(self, code: int = 1000, reason: str | None = None) -> None: ...


@dataclass
class Connection:
    connection_id: str
    socket: JsonSocket
    outbox: asyncio.Queue[BaseModel]
    user_id: str | None = None
    auth_user_id: str | None = None  # set when the socket presented a valid token
    joined_rooms: Set[str] = field(default_factory=set)
    closed: bool = False

    async def pump(self) -> None:
        """
        Writer loop: send queued messages one at a time, in order.
        A failed send is logged and only affects this connection.
        """
        while True:
            model = await self.outbox.get()
            try:
                await self.socket.send_json(jsonable_encoder(model))
            except Exception as e:
                logger.warning("send to %s failed: %s", self.connection_id, e)
            finally:
                self.outbox.task_done()


class ConnectionManager:
    """Live connections keyed by connection_id."""

    def __init__(self, *, outbox_max_size: int = 256):
        self._connections: Dict[str, Connection] = {}
        self._outbox_max_size = outbox_max_size

    def __len__(self) -> int:
        return len(self._connections)

    def __contains__(self, connection_id: object) -> bool:
        return connection_id in self._connections

    def open(self, connection_id: str, socket: JsonSocket, *, auth_user_id: str | None = None) -> Connection:
        if connection_id in self._connections:
            raise ValueError(f"connection {connection_id} already open")
        conn = Connection(
            connection_id=connection_id,
            socket=socket,
            outbox=asyncio.Queue(maxsize=self._outbox_max_size),
            auth_user_id=auth_user_id,
        )
        self._connections[connection_id] = conn
        return conn

    def close(self, connection_id: str) -> Connection | None:
        """Remove a connection. Returns it the first time only."""
        conn = self._connections.pop(connection_id, None)
        if conn is not None:
            conn.closed = True
        return conn

    def get(self, connection_id: str) -> Connection | None:
        return self._connections.get(connection_id)

    def ids(self) -> list[str]:
        return list(self._connections)

    def all(self) -> list[Connection]:
        return list(self._connections.values())

    def send(self, connection_id: str, model: BaseModel) -> bool:
        """Queue a message for one connection. False when it was not queued."""
        conn = self._connections.get(connection_id)
        if conn is None:
            return False
        try:
            conn.outbox.put_nowait(model)
        except asyncio.QueueFull:
            logger.warning("outbox full for %s, dropping %s", connection_id, type(model).__name__)
            return False
        return True

    def broadcast(
        self,
        model: BaseModel,
        *,
        connection_ids: Iterable[str] | None = None,
        exclude: str | None = None,
    ) -> int:
        """
        Queue a message for many connections (all of them by default).
        Returns how many outboxes accepted it.
        """
        targets = self.ids() if connection_ids is None else list(connection_ids)
        delivered = 0
        for connection_id in targets:
            if connection_id == exclude:
                continue
            if self.send(connection_id, model):
                delivered += 1
        return delivered
