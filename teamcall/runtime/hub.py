from __future__ import annotations

import asyncio
import json
import logging
import uuid
from typing import Dict

from pydantic import ValidationError

from teamcall.runtime.connections import Connection, ConnectionManager, JsonSocket
from teamcall.runtime.presence import PresenceRegistry
from teamcall.runtime.signaling import SignalingRelay
from teamcall.schemas.ws import (
    CallSignalIn,
    JoinRoomIn,
    LeaveRoomIn,
    RegisterIdentityIn,
    client_message_adapter,
)


logger = logging.getLogger(__name__)


class SignalingHub:
    """
    Owns every piece of realtime state in the process: live connections,
    the presence registry and the signaling relay.

    All mutations run synchronously on the event loop, so each operation is
    atomic with respect to the others. Only outbound sends are async; they
    run in one writer task per connection.
    """

    def __init__(self, *, outbox_max_size: int = 256):
        self.connections = ConnectionManager(outbox_max_size=outbox_max_size)
        self.presence = PresenceRegistry(self.connections)
        self.relay = SignalingRelay(self.connections, self.presence)
        self._writers: Dict[str, asyncio.Task] = {}

    def connect(
        self,
        socket: JsonSocket,
        connection_id: str | None = None,
        *,
        auth_user_id: str | None = None,
    ) -> Connection:
        """Track a freshly accepted socket and start its writer task."""
        conn = self.connections.open(connection_id or uuid.uuid4().hex, socket, auth_user_id=auth_user_id)
        self._writers[conn.connection_id] = asyncio.create_task(conn.pump())
        logger.info("connection %s opened (%d live)", conn.connection_id, len(self.connections))
        return conn

    async def disconnect(self, connection_id: str) -> bool:
        """Clean up after a closed socket. Only the first call does anything."""
        conn = self.connections.close(connection_id)
        if conn is None:
            return False

        self.relay.drop_connection(connection_id, conn.joined_rooms)
        conn.joined_rooms.clear()
        self.presence.unregister(connection_id)
        await self._stop_writer(connection_id)

        logger.info("connection %s closed (%d live)", connection_id, len(self.connections))
        return True

    async def _stop_writer(self, connection_id: str) -> None:
        writer = self._writers.pop(connection_id, None)
        if writer is not None:
            writer.cancel()
            try:
                await writer
            except asyncio.CancelledError:
                pass

    def dispatch(self, connection_id: str, raw: str) -> None:
        """
        Apply one client message. Anything malformed is dropped.

        A connection that authenticated with a token always acts as that
        user: the user_id it claims in a message is replaced.
        """
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            logger.debug("non-JSON frame from %s dropped", connection_id)
            return

        try:
            msg = client_message_adapter.validate_python(data)
        except ValidationError as e:
            logger.debug("malformed message from %s dropped: %s", connection_id, e.errors())
            return

        if isinstance(msg, (RegisterIdentityIn, JoinRoomIn)):
            conn = self.connections.get(connection_id)
            if conn is not None and conn.auth_user_id and msg.user_id != conn.auth_user_id:
                logger.debug("%s claimed user %s, using %s", connection_id, msg.user_id, conn.auth_user_id)
                msg.user_id = conn.auth_user_id

        if isinstance(msg, RegisterIdentityIn):
            self.presence.register(connection_id, msg.user_id, msg.profile)
        elif isinstance(msg, JoinRoomIn):
            self.relay.join_room(connection_id, msg.room_id, msg.user_id)
        elif isinstance(msg, LeaveRoomIn):
            self.relay.leave_room(connection_id, msg.room_id)
        elif isinstance(msg, CallSignalIn):
            self.relay.relay_call(connection_id, msg.target, msg.payload)

    async def drain(self) -> None:
        """Wait until every queued outbound message has been attempted."""
        for conn in self.connections.all():
            await conn.outbox.join()

    async def close(self, reason: str = "server shutdown") -> None:
        """Close every socket. Nothing is broadcast while tearing down."""
        self.relay.clear()
        self.presence.clear()

        for conn in self.connections.all():
            self.connections.close(conn.connection_id)
            await self._stop_writer(conn.connection_id)
            try:
                await conn.socket.close(code=1001, reason=reason)
            except Exception as e:
                logger.debug("closing %s failed: %s", conn.connection_id, e)


# Process-wide hub; created on startup, torn down on shutdown.
_HUB: SignalingHub | None = None


def init_hub(*, outbox_max_size: int = 256) -> SignalingHub:
    global _HUB
    if _HUB is not None:
        raise RuntimeError("signaling hub already initialised")
    _HUB = SignalingHub(outbox_max_size=outbox_max_size)
    return _HUB


def get_hub() -> SignalingHub:
    if _HUB is None:
        raise RuntimeError("signaling hub not initialised")
    return _HUB


async def shutdown_hub() -> None:
    global _HUB
    hub, _HUB = _HUB, None
    if hub is not None:
        await hub.close()
